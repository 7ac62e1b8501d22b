"""Fragment conversion engine: markdown, HTML, JSON and image re-encoding."""

from fragstore.converter.converter import PIL_FORMATS, FragmentConverter, html_to_text
from fragstore.converter.models import ConversionRejected, ConversionResult

__all__ = [
    "ConversionRejected",
    "ConversionResult",
    "FragmentConverter",
    "PIL_FORMATS",
    "html_to_text",
]
