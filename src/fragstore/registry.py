"""Supported content types and the formats each one can be rendered as."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum

logger = logging.getLogger(__name__)


class MediaType(str, Enum):
    """Media types accepted when creating a fragment."""

    text_plain = "text/plain"
    text_markdown = "text/markdown"
    text_html = "text/html"
    application_json = "application/json"
    image_png = "image/png"
    image_jpeg = "image/jpeg"
    image_webp = "image/webp"
    image_gif = "image/gif"


IMAGE_TYPES: frozenset[str] = frozenset(
    {
        MediaType.image_png.value,
        MediaType.image_jpeg.value,
        MediaType.image_webp.value,
        MediaType.image_gif.value,
    }
)

FORMATS: dict[str, frozenset[str]] = {
    MediaType.text_plain.value: frozenset({"text/plain"}),
    MediaType.text_markdown.value: frozenset({"text/plain", "text/markdown", "text/html"}),
    MediaType.text_html.value: frozenset({"text/plain", "text/html"}),
    MediaType.application_json.value: frozenset({"text/plain", "application/json"}),
    MediaType.image_png.value: IMAGE_TYPES,
    MediaType.image_jpeg.value: IMAGE_TYPES,
    MediaType.image_webp.value: IMAGE_TYPES,
    MediaType.image_gif.value: IMAGE_TYPES,
}

EXTENSIONS: dict[str, str] = {
    ".txt": MediaType.text_plain.value,
    ".md": MediaType.text_markdown.value,
    ".html": MediaType.text_html.value,
    ".json": MediaType.application_json.value,
    ".png": MediaType.image_png.value,
    ".jpg": MediaType.image_jpeg.value,
    ".jpeg": MediaType.image_jpeg.value,
    ".webp": MediaType.image_webp.value,
    ".gif": MediaType.image_gif.value,
}


def parse_media_type(value: str) -> str:
    """Return the lowercased ``type/subtype`` of a Content-Type value.

    "text/html; charset=iso-8859-1" -> "text/html". Raises ValueError when the
    value has no ``type/subtype`` part.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("content type is empty")
    media_type = value.split(";", 1)[0].strip().lower()
    parts = media_type.split("/")
    if len(parts) != 2 or not all(p and not any(c.isspace() for c in p) for p in parts):
        raise ValueError(f"malformed content type: {value!r}")
    return media_type


def is_supported_type(candidate: str) -> bool:
    """True if we know how to work with this Content-Type (type/subtype only)."""
    try:
        media_type = parse_media_type(candidate)
    except ValueError:
        return False
    return media_type in FORMATS


def formats_for(media_type: str) -> frozenset[str]:
    """Media types ``media_type`` can be rendered as, itself included."""
    try:
        key = parse_media_type(media_type)
    except ValueError:
        return frozenset()
    return FORMATS.get(key, frozenset())


def extension_to_type(extension: str) -> str | None:
    """Map ``.html`` / ``html`` to its media type, or None when unknown."""
    ext = extension.strip().lower()
    if not ext:
        return None
    if not ext.startswith("."):
        ext = "." + ext
    return EXTENSIONS.get(ext)


class TypeRegistry:
    """A view over the type table, optionally narrowed to a subset of types.

    The table itself is fixed; configuration can only turn types off.
    """

    def __init__(self, supported: Iterable[str] | None = None) -> None:
        if supported is None:
            self._types = frozenset(FORMATS)
        else:
            requested = {parse_media_type(t) for t in supported}
            unknown = requested - set(FORMATS)
            if unknown:
                raise ValueError(f"unknown media types: {', '.join(sorted(unknown))}")
            self._types = frozenset(requested)
        logger.debug("TypeRegistry enabled types: %s", sorted(self._types))

    @property
    def media_types(self) -> frozenset[str]:
        return self._types

    def is_supported(self, candidate: str) -> bool:
        try:
            return parse_media_type(candidate) in self._types
        except ValueError:
            return False

    def formats_for(self, media_type: str) -> frozenset[str]:
        fmts = formats_for(media_type)
        if not fmts:
            return fmts
        return fmts if parse_media_type(media_type) in self._types else frozenset()


DEFAULT_REGISTRY = TypeRegistry()
