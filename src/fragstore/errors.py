"""Error taxonomy for fragstore.

Every failure surfaced by the store, the converter or the service is one of
these. ``status_code`` is the HTTP status class a transport layer should use.
"""

from __future__ import annotations


class FragstoreError(Exception):
    """Base exception for all fragstore errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(FragstoreError):
    """Bad construction input. Always fixable by the caller."""

    status_code = 400


class TypeMismatchError(FragstoreError):
    """An update tried to change a fragment's immutable type."""

    status_code = 400

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Content type {actual!r} doesn't match the existing fragment's type {expected!r}"
        )


class NotFoundError(FragstoreError):
    """No fragment with this id exists for the owner."""

    status_code = 404

    def __init__(self, owner_id: str, fragment_id: str) -> None:
        self.owner_id = owner_id
        self.fragment_id = fragment_id
        super().__init__(f"No fragment with id {fragment_id!r}")


class UnsupportedConversionError(FragstoreError):
    """The requested representation is not renderable from the stored type."""

    status_code = 415

    def __init__(self, source: str, target: str | None, extension: str | None = None) -> None:
        self.source = source
        self.target = target
        self.extension = extension
        wanted = target or extension or "unknown"
        super().__init__(f"A {source} fragment cannot be returned as {wanted}")


class ConversionFailed(FragstoreError):
    """A permitted conversion failed while running (bad source bytes, codec error)."""

    status_code = 500

    def __init__(self, source: str, target: str, cause: Exception | None = None) -> None:
        self.source = source
        self.target = target
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Converting {source} to {target} failed{detail}")
        if cause is not None:
            self.__cause__ = cause


class StorageError(FragstoreError):
    """The metadata/payload backend failed."""

    status_code = 500

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        self.operation = operation
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Storage {operation} failed{detail}")
        if cause is not None:
            self.__cause__ = cause
