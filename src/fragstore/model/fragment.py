"""Fragment: an owner-scoped, typed byte payload and its metadata."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator
from pydantic import ValidationError as PydanticValidationError

from fragstore.clock import SYSTEM_CLOCK, Clock
from fragstore.errors import ValidationError
from fragstore.registry import DEFAULT_REGISTRY, TypeRegistry, formats_for, parse_media_type

logger = logging.getLogger(__name__)


def new_fragment_id() -> str:
    return str(uuid.uuid4())


def _describe(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "fragment"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class Fragment(BaseModel):
    """Metadata for one stored fragment.

    ``id``, ``owner_id``, ``type`` and ``created`` are fixed once built;
    ``size`` and ``updated`` change only through :meth:`replace_payload` and
    :meth:`touch`. Construction validates everything up front and raises
    :class:`fragstore.errors.ValidationError` instead of returning a
    half-built object.

    Timestamps default to ``clock.now()`` only when absent, so rebuilding a
    fragment from a stored record keeps its original times.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    id: str = Field(default_factory=new_fragment_id, frozen=True)
    owner_id: str = Field(alias="ownerId", frozen=True)
    type: str = Field(frozen=True)
    size: StrictInt = Field(default=0, ge=0)
    created: datetime = Field(frozen=True)
    updated: datetime

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        registry: TypeRegistry | None = None,
        **data: Any,
    ) -> None:
        clock = clock or SYSTEM_CLOCK
        registry = registry or DEFAULT_REGISTRY
        if data.get("id") is None:
            data.pop("id", None)
        if data.get("created") is None or data.get("updated") is None:
            now = clock.now()
            if data.get("created") is None:
                data["created"] = now
            if data.get("updated") is None:
                data["updated"] = now
        try:
            super().__init__(**data)
        except PydanticValidationError as e:
            raise ValidationError(_describe(e)) from e
        if not registry.is_supported(self.type):
            logger.warning("Rejected fragment with unsupported type %r", self.type)
            raise ValidationError(f"type: unsupported content type {self.type!r}")

    @field_validator("id", "owner_id", "type")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cannot be empty or whitespace")
        return v

    # -- derived -----------------------------------------------------------------

    @property
    def media_type(self) -> str:
        """The type without parameters: "text/html; charset=utf-8" -> "text/html"."""
        return parse_media_type(self.type)

    @property
    def is_text(self) -> bool:
        return self.media_type.startswith("text/")

    @property
    def formats(self) -> frozenset[str]:
        """Media types this fragment can be returned as."""
        return formats_for(self.media_type)

    # -- mutation ----------------------------------------------------------------

    def touch(self, now: datetime) -> None:
        self.updated = now

    def replace_payload(self, data: bytes, now: datetime) -> None:
        """Record a new payload's size. Persisting it is the store's job."""
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ValidationError(f"data must be bytes, not {type(data).__name__}")
        self.size = memoryview(data).nbytes
        self.updated = now

    # -- records -----------------------------------------------------------------

    def to_record(self) -> dict[str, Any]:
        """The persisted layout: camelCase keys, ISO-8601 timestamps."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls, record: dict[str, Any], registry: TypeRegistry | None = None) -> Fragment:
        return cls(registry=registry, **record)
