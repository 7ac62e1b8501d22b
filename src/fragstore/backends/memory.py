"""FragmentBackend kept entirely in process memory."""

from __future__ import annotations

import copy
import threading
from typing import Any


class InMemoryBackend:
    """Dict-based backend for development and testing.

    Records are deep-copied on the way in and out so callers can't reach
    into the stored state.
    """

    def __init__(self) -> None:
        self._records: dict[str, dict[str, dict[str, Any]]] = {}
        self._payloads: dict[tuple[str, str], bytes] = {}
        self._lock = threading.Lock()

    def put_metadata(self, owner_id: str, record: dict[str, Any]) -> None:
        with self._lock:
            self._records.setdefault(owner_id, {})[record["id"]] = copy.deepcopy(record)

    def get_metadata(self, owner_id: str, fragment_id: str) -> dict[str, Any] | None:
        with self._lock:
            record = self._records.get(owner_id, {}).get(fragment_id)
            return copy.deepcopy(record) if record is not None else None

    def list_metadata(self, owner_id: str) -> list[dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._records.get(owner_id, {}).values()]

    def delete_metadata(self, owner_id: str, fragment_id: str) -> bool:
        with self._lock:
            return self._records.get(owner_id, {}).pop(fragment_id, None) is not None

    def put_payload(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        with self._lock:
            self._payloads[(owner_id, fragment_id)] = bytes(data)

    def get_payload(self, owner_id: str, fragment_id: str) -> bytes | None:
        with self._lock:
            return self._payloads.get((owner_id, fragment_id))

    def delete_payload(self, owner_id: str, fragment_id: str) -> bool:
        with self._lock:
            return self._payloads.pop((owner_id, fragment_id), None) is not None
