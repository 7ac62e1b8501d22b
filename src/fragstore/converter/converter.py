"""Render stored fragment bytes as another media type."""

from __future__ import annotations

import io
import json
import logging
from collections.abc import Callable

import markdown
from bs4 import BeautifulSoup
from PIL import Image

from fragstore.config.models import ConversionConfig
from fragstore.converter.models import ConversionRejected, ConversionResult
from fragstore.errors import ConversionFailed
from fragstore.registry import IMAGE_TYPES, extension_to_type, formats_for, parse_media_type

logger = logging.getLogger(__name__)

PIL_FORMATS: dict[str, str] = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/webp": "WEBP",
    "image/gif": "GIF",
}

# Elements that end a line when reducing HTML to plain text
_BLOCK_TAGS = [
    "address", "article", "aside", "blockquote", "br", "dd", "div", "dl", "dt",
    "figcaption", "figure", "footer", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section", "table",
    "tr", "ul",
]

_JPEG_MODES = {"RGB", "L", "CMYK"}


def _charset(content_type: str) -> str:
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"')
    return "utf-8"


def _content_type(media_type: str) -> str:
    if media_type.startswith("text/"):
        return f"{media_type}; charset=utf-8"
    return media_type


def html_to_text(html: str) -> str:
    """Reduce HTML to plain text.

    Scripts and styles are dropped, block elements end a line, lines are
    right-stripped and runs of blank lines collapse to one.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.insert_after("\n")

    lines: list[str] = []
    for line in soup.get_text().splitlines():
        line = line.rstrip()
        if not line and (not lines or not lines[-1]):
            continue
        lines.append(line)
    return "\n".join(lines).strip()


class FragmentConverter:
    """Decides whether a stored payload may be rendered as a target type, and does it."""

    def __init__(self, config: ConversionConfig | None = None) -> None:
        self._config = config or ConversionConfig()
        self._text_transforms: dict[tuple[str, str], Callable[[bytes, str], bytes]] = {
            ("text/markdown", "text/html"): self._markdown_to_html,
            ("text/markdown", "text/plain"): self._markdown_to_text,
            ("text/html", "text/plain"): self._html_to_text,
            ("application/json", "text/plain"): self._json_to_text,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @staticmethod
    def resolve_target_type(extension: str) -> str | None:
        """Map a requested suffix such as ``.html`` to a media type."""
        return extension_to_type(extension)

    def convert(
        self, source_type: str, target_type: str | None, data: bytes
    ) -> ConversionResult | ConversionRejected:
        """Render ``data`` (stored as ``source_type``) as ``target_type``.

        Returns ConversionRejected when the target isn't allowed for the
        source. Raises ConversionFailed when an allowed conversion breaks.
        """
        source = parse_media_type(source_type)
        if target_type is None:
            return ConversionRejected(source=source, target=None, reason="unknown target type")
        try:
            target = parse_media_type(target_type)
        except ValueError:
            return ConversionRejected(source=source, target=target_type, reason="malformed target type")

        if target not in formats_for(source):
            logger.debug("Rejected conversion %s -> %s", source, target)
            return ConversionRejected(
                source=source,
                target=target,
                reason=f"{source} cannot be rendered as {target}",
            )

        if source == target:
            return ConversionResult(data=data, media_type=source, content_type=source_type)

        logger.debug("Converting %d bytes %s -> %s", len(data), source, target)
        if source in IMAGE_TYPES:
            out = self._convert_image(data, source, target)
        else:
            out = self._text_transforms[(source, target)](data, source_type)
        return ConversionResult(
            data=out,
            media_type=target,
            content_type=_content_type(target),
            converted=True,
        )

    # ------------------------------------------------------------------
    # Text transforms
    # ------------------------------------------------------------------

    def _decode(self, data: bytes, source_type: str, target: str) -> str:
        try:
            return data.decode(_charset(source_type))
        except (UnicodeDecodeError, LookupError) as e:
            raise ConversionFailed(parse_media_type(source_type), target, e) from e

    def _render_markdown(self, data: bytes, source_type: str, target: str) -> str:
        text = self._decode(data, source_type, target)
        try:
            return markdown.markdown(text, extensions=self._config.markdown.extensions)
        except (ImportError, ValueError) as e:
            # unknown extension names surface here
            raise ConversionFailed("text/markdown", target, e) from e

    def _markdown_to_html(self, data: bytes, source_type: str) -> bytes:
        return self._render_markdown(data, source_type, "text/html").encode("utf-8")

    def _markdown_to_text(self, data: bytes, source_type: str) -> bytes:
        html = self._render_markdown(data, source_type, "text/plain")
        return html_to_text(html).encode("utf-8")

    def _html_to_text(self, data: bytes, source_type: str) -> bytes:
        return html_to_text(self._decode(data, source_type, "text/plain")).encode("utf-8")

    def _json_to_text(self, data: bytes, source_type: str) -> bytes:
        text = self._decode(data, source_type, "text/plain")
        try:
            json.loads(text)
        except json.JSONDecodeError as e:
            raise ConversionFailed("application/json", "text/plain", e) from e
        return data

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def _convert_image(self, data: bytes, source: str, target: str) -> bytes:
        fmt = PIL_FORMATS[target]
        try:
            with Image.open(io.BytesIO(data)) as img:
                limit = self._config.max_image_pixels
                if limit is not None and img.width * img.height > limit:
                    raise ConversionFailed(
                        source, target, ValueError(f"image too large: {img.width}x{img.height}")
                    )
                img.load()
                frame = img
                if fmt == "JPEG" and img.mode not in _JPEG_MODES:
                    frame = self._flatten(img)
                elif fmt != "JPEG" and img.mode == "CMYK":
                    frame = img.convert("RGB")
                out = io.BytesIO()
                frame.save(out, format=fmt, **self._save_options(fmt))
        except ConversionFailed:
            raise
        except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
            logger.warning("Image conversion %s -> %s failed", source, target, exc_info=True)
            raise ConversionFailed(source, target, e) from e
        return out.getvalue()

    def _flatten(self, img: Image.Image) -> Image.Image:
        """Drop alpha onto the configured background colour."""
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, self._config.images.background)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background

    def _save_options(self, fmt: str) -> dict[str, object]:
        images = self._config.images
        if fmt == "JPEG":
            return {"quality": images.jpeg_quality}
        if fmt == "WEBP":
            return {"quality": images.webp_quality, "lossless": images.webp_lossless}
        return {}
