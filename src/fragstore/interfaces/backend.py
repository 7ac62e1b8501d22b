"""Metadata/payload backend interface."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class FragmentBackend(Protocol):
    """Per-owner key-value storage for fragment records and raw payloads.

    Records are plain dicts in the persisted layout
    (``{id, ownerId, type, size, created, updated}``); payloads are bytes.
    Both are keyed by ``(owner_id, id)``. ``list_metadata`` returns records in
    the order they were first written.
    """

    def put_metadata(self, owner_id: str, record: dict[str, Any]) -> None: ...

    def get_metadata(self, owner_id: str, fragment_id: str) -> dict[str, Any] | None: ...

    def list_metadata(self, owner_id: str) -> list[dict[str, Any]]: ...

    def delete_metadata(self, owner_id: str, fragment_id: str) -> bool: ...

    def put_payload(self, owner_id: str, fragment_id: str, data: bytes) -> None: ...

    def get_payload(self, owner_id: str, fragment_id: str) -> bytes | None: ...

    def delete_payload(self, owner_id: str, fragment_id: str) -> bool: ...
