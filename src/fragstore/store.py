"""FragmentStore: the only thing that talks to a FragmentBackend."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from fragstore.clock import SYSTEM_CLOCK, Clock
from fragstore.errors import (
    FragstoreError,
    NotFoundError,
    StorageError,
    TypeMismatchError,
    ValidationError,
)
from fragstore.interfaces.backend import FragmentBackend
from fragstore.model.fragment import Fragment
from fragstore.registry import DEFAULT_REGISTRY, TypeRegistry, parse_media_type

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FragmentStore:
    """Persist fragments, keeping metadata and payload in step.

    Every payload write is paired with a metadata write carrying the new
    size and ``updated`` time. Mutations of one ``(owner_id, id)`` are
    serialized by a per-key lock; different keys never wait on each other
    and reads take no lock.

    Backend exceptions are re-raised as StorageError. Nothing is retried.
    """

    def __init__(
        self,
        backend: FragmentBackend,
        clock: Clock | None = None,
        registry: TypeRegistry | None = None,
    ) -> None:
        self._backend = backend
        self._clock = clock or SYSTEM_CLOCK
        self._registry = registry or DEFAULT_REGISTRY
        self._locks: dict[tuple[str, str], list[Any]] = {}
        self._locks_guard = threading.Lock()

    @property
    def backend(self) -> FragmentBackend:
        return self._backend

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create(self, owner_id: str, type: str, data: bytes) -> Fragment:
        """Build, validate and persist a new fragment with its payload.

        If the payload write fails the metadata record is deleted again
        before StorageError is raised.
        """
        fragment = Fragment(owner_id=owner_id, type=type, clock=self._clock, registry=self._registry)
        fragment.replace_payload(data, fragment.updated)

        with self._locked(owner_id, fragment.id):
            self._call("write metadata", self._backend.put_metadata, owner_id, fragment.to_record())
            try:
                self._backend.put_payload(owner_id, fragment.id, bytes(data))
            except Exception as e:
                logger.error("Payload write failed for %s, rolling back metadata", fragment.id, exc_info=True)
                try:
                    self._backend.delete_metadata(owner_id, fragment.id)
                except Exception as rollback_err:
                    logger.error("Rollback failed for %s", fragment.id, exc_info=True)
                    raise StorageError("rollback of partial create", rollback_err) from e
                raise StorageError("write payload", e) from e

        logger.debug("Created fragment %s (%s, %d bytes)", fragment.id, fragment.type, fragment.size)
        return fragment

    def get(self, owner_id: str, fragment_id: str) -> Fragment:
        record = self._call("read metadata", self._backend.get_metadata, owner_id, fragment_id)
        if record is None:
            raise NotFoundError(owner_id, fragment_id)
        return self._from_record(record)

    def get_data(self, owner_id: str, fragment_id: str) -> bytes:
        """Raw payload bytes for a fragment."""
        data = self._call("read payload", self._backend.get_payload, owner_id, fragment_id)
        if data is None:
            raise NotFoundError(owner_id, fragment_id)
        return data

    def list_for_owner(self, owner_id: str, expand: bool = False) -> list[str] | list[Fragment]:
        """Ids (or full fragments when ``expand``) in backend insertion order."""
        records = self._call("list metadata", self._backend.list_metadata, owner_id)
        if expand:
            return [self._from_record(r) for r in records]
        return [r["id"] for r in records]

    def update(self, owner_id: str, fragment_id: str, data: bytes, content_type: str) -> Fragment:
        """Replace a fragment's payload. The content type must match the stored one."""
        with self._locked(owner_id, fragment_id):
            fragment = self.get(owner_id, fragment_id)
            try:
                requested = parse_media_type(content_type)
            except ValueError as e:
                raise ValidationError(str(e)) from e
            if requested != fragment.media_type:
                logger.warning(
                    "Type mismatch updating %s: stored %s, got %s", fragment_id, fragment.type, content_type
                )
                raise TypeMismatchError(fragment.type, content_type)
            self._write_payload(fragment, data)
        return fragment

    def replace_payload(self, fragment: Fragment, data: bytes) -> Fragment:
        """Set new bytes on an existing fragment and persist size + payload together."""
        with self._locked(fragment.owner_id, fragment.id):
            exists = self._call("read metadata", self._backend.get_metadata, fragment.owner_id, fragment.id)
            if exists is None:
                raise NotFoundError(fragment.owner_id, fragment.id)
            self._write_payload(fragment, data)
        return fragment

    def save(self, fragment: Fragment) -> Fragment:
        """Refresh ``updated`` and write the metadata record only."""
        with self._locked(fragment.owner_id, fragment.id):
            fragment.touch(self._clock.now())
            self._call("write metadata", self._backend.put_metadata, fragment.owner_id, fragment.to_record())
        return fragment

    def delete(self, owner_id: str, fragment_id: str) -> None:
        """Remove metadata and payload. A half-finished delete is a StorageError."""
        with self._locked(owner_id, fragment_id):
            record = self._call("read metadata", self._backend.get_metadata, owner_id, fragment_id)
            if record is None:
                raise NotFoundError(owner_id, fragment_id)
            self._call("delete metadata", self._backend.delete_metadata, owner_id, fragment_id)
            try:
                self._backend.delete_payload(owner_id, fragment_id)
            except Exception as e:
                logger.error("Metadata for %s deleted but payload delete failed", fragment_id, exc_info=True)
                raise StorageError("delete payload", e) from e
        logger.debug("Deleted fragment %s", fragment_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _write_payload(self, fragment: Fragment, data: bytes) -> None:
        # caller holds the fragment's lock
        fragment.replace_payload(data, self._clock.now())
        self._call("write metadata", self._backend.put_metadata, fragment.owner_id, fragment.to_record())
        try:
            self._backend.put_payload(fragment.owner_id, fragment.id, bytes(data))
        except Exception as e:
            logger.error(
                "Metadata for %s now says %d bytes but payload write failed",
                fragment.id,
                fragment.size,
                exc_info=True,
            )
            raise StorageError("write payload", e) from e
        logger.debug("Replaced payload of %s (%d bytes)", fragment.id, fragment.size)

    def _from_record(self, record: dict[str, Any]) -> Fragment:
        try:
            return Fragment.from_record(record)
        except ValidationError as e:
            logger.error("Stored record is invalid: %s", record, exc_info=True)
            raise StorageError("decode metadata", e) from e

    def _call(self, operation: str, fn: Callable[..., T], *args: Any) -> T:
        try:
            return fn(*args)
        except FragstoreError:
            raise
        except Exception as e:
            logger.error("Backend %s failed", operation, exc_info=True)
            raise StorageError(operation, e) from e

    @contextmanager
    def _locked(self, owner_id: str, fragment_id: str) -> Iterator[None]:
        key = (owner_id, fragment_id)
        with self._locks_guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]
