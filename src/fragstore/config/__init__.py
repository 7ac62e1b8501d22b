from .loader import DEFAULT_CONFIG_TEMPLATE, load_config
from .models import (
    BackendConfig,
    ConversionConfig,
    FragstoreConfig,
    ImageConfig,
    MarkdownConfig,
)

__all__ = [
    "BackendConfig",
    "ConversionConfig",
    "DEFAULT_CONFIG_TEMPLATE",
    "FragstoreConfig",
    "ImageConfig",
    "MarkdownConfig",
    "load_config",
]
