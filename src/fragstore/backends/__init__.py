"""Concrete FragmentBackend implementations."""

from __future__ import annotations

from fragstore.backends.memory import InMemoryBackend
from fragstore.backends.sqlite import SQLiteBackend
from fragstore.config.models import BackendConfig
from fragstore.interfaces.backend import FragmentBackend

__all__ = ["InMemoryBackend", "SQLiteBackend", "create_backend"]


def create_backend(config: BackendConfig) -> FragmentBackend:
    """Build the backend named by ``config.provider``."""
    if config.provider == "memory":
        return InMemoryBackend()
    if config.provider == "sqlite":
        return SQLiteBackend(db_path=config.path)
    raise ValueError(f"Unknown backend provider: {config.provider}")
