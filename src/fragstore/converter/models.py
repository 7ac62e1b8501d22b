"""Pydantic models for the conversion engine."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ConversionResult(BaseModel):
    """Bytes ready to hand back to a caller, plus how to label them."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    media_type: str
    content_type: str
    converted: bool = False


class ConversionRejected(BaseModel):
    """The target is not one of the source type's renderable formats.

    A normal outcome, not a fault: returned, never raised.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    target: str | None
    reason: str
