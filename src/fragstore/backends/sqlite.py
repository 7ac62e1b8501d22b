"""FragmentBackend implementation backed by a local SQLite database."""

from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS fragments (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id TEXT NOT NULL,
    id TEXT NOT NULL,
    record_json TEXT NOT NULL,
    UNIQUE (owner_id, id)
);
CREATE TABLE IF NOT EXISTS payloads (
    owner_id TEXT NOT NULL,
    id TEXT NOT NULL,
    data BLOB NOT NULL,
    PRIMARY KEY (owner_id, id)
);
"""


class SQLiteBackend:
    """FragmentBackend using SQLite with WAL mode.

    Metadata records live as JSON in ``fragments``; payloads as BLOBs in
    ``payloads``. Listing follows the ``seq`` column, which an upsert of an
    existing record leaves untouched, so order is first-write order.
    """

    def __init__(self, db_path: str = ".fragstore/fragments.db") -> None:
        path = Path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        self.db_path = str(path)
        # isolation_level=None => autocommit; each statement is its own transaction
        self._conn = sqlite3.connect(
            self.db_path, isolation_level=None, timeout=5, check_same_thread=False
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        self._lock = threading.Lock()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> SQLiteBackend:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- metadata ----------------------------------------------------------------

    def put_metadata(self, owner_id: str, record: dict[str, Any]) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO fragments (owner_id, id, record_json) VALUES (?, ?, ?) "
                "ON CONFLICT (owner_id, id) DO UPDATE SET record_json = excluded.record_json",
                (owner_id, record["id"], json.dumps(record)),
            )

    def get_metadata(self, owner_id: str, fragment_id: str) -> dict[str, Any] | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT record_json FROM fragments WHERE owner_id = ? AND id = ?",
                (owner_id, fragment_id),
            ).fetchone()
        return json.loads(row[0]) if row is not None else None

    def list_metadata(self, owner_id: str) -> list[dict[str, Any]]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT record_json FROM fragments WHERE owner_id = ? ORDER BY seq ASC",
                (owner_id,),
            ).fetchall()
        return [json.loads(r[0]) for r in rows]

    def delete_metadata(self, owner_id: str, fragment_id: str) -> bool:
        with self._lock:
            cursor = self._conn.execute(
                "DELETE FROM fragments WHERE owner_id = ? AND id = ?",
                (owner_id, fragment_id),
            )
        return cursor.rowcount > 0

    # -- payloads ----------------------------------------------------------------

    def put_payload(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO payloads (owner_id, id, data) VALUES (?, ?, ?) "
                "ON CONFLICT (owner_id, id) DO UPDATE SET data = excluded.data",
                (owner_id, fragment_id, sqlite3.Binary(bytes(data))),
            )

    def get_payload(self, owner_id: str, fragment_id: str) -> bytes | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT data FROM payloads WHERE owner_id = ? AND id = ?",
                (owner_id, fragment_id),
            ).fetchone()
        return bytes(row[0]) if row is not None else None

    def delete_payload(self, owner_id: str, fragment_id: str) -> bool:
        with self._lock:
            cursor = self._conn.execute(
                "DELETE FROM payloads WHERE owner_id = ? AND id = ?",
                (owner_id, fragment_id),
            )
        return cursor.rowcount > 0

    # -- extras ------------------------------------------------------------------

    def stats(self) -> dict[str, int]:
        """Count stored records and total payload bytes."""
        with self._lock:
            fragments = self._conn.execute("SELECT COUNT(*) FROM fragments").fetchone()[0]
            payload_bytes = self._conn.execute(
                "SELECT COALESCE(SUM(LENGTH(data)), 0) FROM payloads"
            ).fetchone()[0]
        return {"fragments": fragments, "payload_bytes": payload_bytes}
