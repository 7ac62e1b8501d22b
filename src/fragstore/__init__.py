"""fragstore - per-user fragment storage with on-read format conversion."""

from fragstore.backends import InMemoryBackend, SQLiteBackend, create_backend
from fragstore.clock import Clock, ManualClock, SystemClock
from fragstore.config import FragstoreConfig, load_config
from fragstore.converter import ConversionRejected, ConversionResult, FragmentConverter
from fragstore.errors import (
    ConversionFailed,
    FragstoreError,
    NotFoundError,
    StorageError,
    TypeMismatchError,
    UnsupportedConversionError,
    ValidationError,
)
from fragstore.interfaces import FragmentBackend
from fragstore.model import Fragment
from fragstore.registry import MediaType, TypeRegistry, formats_for, is_supported_type
from fragstore.service import FragmentService
from fragstore.store import FragmentStore

__version__ = "0.1.0"

__all__ = [
    "Clock",
    "ConversionFailed",
    "ConversionRejected",
    "ConversionResult",
    "Fragment",
    "FragmentBackend",
    "FragmentConverter",
    "FragmentService",
    "FragmentStore",
    "FragstoreConfig",
    "FragstoreError",
    "InMemoryBackend",
    "ManualClock",
    "MediaType",
    "NotFoundError",
    "SQLiteBackend",
    "StorageError",
    "SystemClock",
    "TypeMismatchError",
    "TypeRegistry",
    "UnsupportedConversionError",
    "ValidationError",
    "create_backend",
    "formats_for",
    "is_supported_type",
    "load_config",
]
