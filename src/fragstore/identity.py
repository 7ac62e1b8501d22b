"""Owner ids: callers are partitioned by a hash of their email address."""

from __future__ import annotations

import hashlib


def owner_id_for(email: str) -> str:
    """SHA-256 hex digest of the trimmed, lowercased email."""
    normalized = email.strip().lower()
    if not normalized:
        raise ValueError("email cannot be empty")
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()
