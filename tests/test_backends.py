"""Tests for the FragmentBackend implementations (in-memory and SQLite)."""

from __future__ import annotations

import pytest

from fragstore.backends import InMemoryBackend, SQLiteBackend, create_backend
from fragstore.config.models import BackendConfig
from fragstore.interfaces import FragmentBackend


def _record(fragment_id: str, owner_id: str = "owner-a", size: int = 0) -> dict:
    return {
        "id": fragment_id,
        "ownerId": owner_id,
        "type": "text/plain",
        "size": size,
        "created": "2025-01-01T00:00:00Z",
        "updated": "2025-01-01T00:00:00Z",
    }


@pytest.fixture(params=["memory", "sqlite"])
def any_backend(request, tmp_path):
    if request.param == "memory":
        yield InMemoryBackend()
    else:
        backend = SQLiteBackend(db_path=str(tmp_path / "db" / "fragments.db"))
        yield backend
        backend.close()


# ---------------------------------------------------------------------------
# Protocol conformance
# ---------------------------------------------------------------------------


class TestProtocol:
    def test_satisfies_fragment_backend(self, any_backend):
        assert isinstance(any_backend, FragmentBackend)


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


class TestMetadata:
    def test_put_get(self, any_backend):
        any_backend.put_metadata("owner-a", _record("f1"))
        assert any_backend.get_metadata("owner-a", "f1") == _record("f1")

    def test_get_missing(self, any_backend):
        assert any_backend.get_metadata("owner-a", "nope") is None

    def test_owner_scoped(self, any_backend):
        any_backend.put_metadata("owner-a", _record("f1"))
        assert any_backend.get_metadata("owner-b", "f1") is None
        assert any_backend.list_metadata("owner-b") == []

    def test_same_id_different_owners(self, any_backend):
        any_backend.put_metadata("owner-a", _record("f1", size=1))
        any_backend.put_metadata("owner-b", _record("f1", owner_id="owner-b", size=2))
        assert any_backend.get_metadata("owner-a", "f1")["size"] == 1
        assert any_backend.get_metadata("owner-b", "f1")["size"] == 2

    def test_overwrite(self, any_backend):
        any_backend.put_metadata("owner-a", _record("f1", size=1))
        any_backend.put_metadata("owner-a", _record("f1", size=5))
        assert any_backend.get_metadata("owner-a", "f1")["size"] == 5
        assert len(any_backend.list_metadata("owner-a")) == 1

    def test_list_insertion_order(self, any_backend):
        for fid in ["c", "a", "b"]:
            any_backend.put_metadata("owner-a", _record(fid))
        any_backend.put_metadata("owner-a", _record("c", size=9))
        assert [r["id"] for r in any_backend.list_metadata("owner-a")] == ["c", "a", "b"]

    def test_delete(self, any_backend):
        any_backend.put_metadata("owner-a", _record("f1"))
        assert any_backend.delete_metadata("owner-a", "f1") is True
        assert any_backend.get_metadata("owner-a", "f1") is None
        assert any_backend.delete_metadata("owner-a", "f1") is False

    def test_returned_record_is_a_copy(self, any_backend):
        any_backend.put_metadata("owner-a", _record("f1"))
        got = any_backend.get_metadata("owner-a", "f1")
        got["size"] = 999
        assert any_backend.get_metadata("owner-a", "f1")["size"] == 0


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class TestPayloads:
    def test_put_get(self, any_backend):
        any_backend.put_payload("owner-a", "f1", b"\x00\x01\xff")
        assert any_backend.get_payload("owner-a", "f1") == b"\x00\x01\xff"

    def test_empty_payload(self, any_backend):
        any_backend.put_payload("owner-a", "f1", b"")
        assert any_backend.get_payload("owner-a", "f1") == b""

    def test_get_missing(self, any_backend):
        assert any_backend.get_payload("owner-a", "nope") is None

    def test_overwrite(self, any_backend):
        any_backend.put_payload("owner-a", "f1", b"one")
        any_backend.put_payload("owner-a", "f1", b"two")
        assert any_backend.get_payload("owner-a", "f1") == b"two"

    def test_owner_scoped(self, any_backend):
        any_backend.put_payload("owner-a", "f1", b"a")
        assert any_backend.get_payload("owner-b", "f1") is None

    def test_delete(self, any_backend):
        any_backend.put_payload("owner-a", "f1", b"a")
        assert any_backend.delete_payload("owner-a", "f1") is True
        assert any_backend.get_payload("owner-a", "f1") is None
        assert any_backend.delete_payload("owner-a", "f1") is False


# ---------------------------------------------------------------------------
# SQLite specifics
# ---------------------------------------------------------------------------


class TestSQLiteBackend:
    def test_persists_across_instances(self, tmp_path):
        db = str(tmp_path / "fragments.db")
        with SQLiteBackend(db_path=db) as first:
            first.put_metadata("owner-a", _record("f1"))
            first.put_payload("owner-a", "f1", b"kept")
        with SQLiteBackend(db_path=db) as second:
            assert second.get_metadata("owner-a", "f1") == _record("f1")
            assert second.get_payload("owner-a", "f1") == b"kept"

    def test_creates_parent_dirs(self, tmp_path):
        db = tmp_path / "a" / "b" / "fragments.db"
        with SQLiteBackend(db_path=str(db)):
            pass
        assert db.exists()

    def test_stats(self, tmp_path):
        with SQLiteBackend(db_path=str(tmp_path / "f.db")) as backend:
            backend.put_metadata("owner-a", _record("f1"))
            backend.put_payload("owner-a", "f1", b"12345")
            assert backend.stats() == {"fragments": 1, "payload_bytes": 5}


# ---------------------------------------------------------------------------
# create_backend
# ---------------------------------------------------------------------------


class TestCreateBackend:
    def test_memory(self):
        assert isinstance(create_backend(BackendConfig(provider="memory")), InMemoryBackend)

    def test_sqlite(self, tmp_path):
        backend = create_backend(BackendConfig(provider="sqlite", path=str(tmp_path / "x.db")))
        assert isinstance(backend, SQLiteBackend)
        backend.close()
