"""Interfaces for pluggable fragstore backends."""

from fragstore.interfaces.backend import FragmentBackend

__all__ = ["FragmentBackend"]
