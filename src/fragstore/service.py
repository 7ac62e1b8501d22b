"""The fragment operations a transport layer exposes, one method per route.

    POST   /v1/fragments             -> create_fragment
    GET    /v1/fragments?expand=1    -> list_fragments
    GET    /v1/fragments/:id/info    -> get_fragment_info
    GET    /v1/fragments/:id[.ext]   -> get_fragment_data
    PUT    /v1/fragments/:id         -> update_fragment
    DELETE /v1/fragments/:id         -> delete_fragment

Errors are raised as FragstoreError subclasses; ``error_response`` turns one
into a status code and JSON body.
"""

from __future__ import annotations

import logging
from typing import Any

from fragstore.backends import create_backend
from fragstore.clock import Clock
from fragstore.config.models import FragstoreConfig
from fragstore.converter import ConversionRejected, ConversionResult, FragmentConverter
from fragstore.errors import FragstoreError, UnsupportedConversionError
from fragstore.model.fragment import Fragment
from fragstore.registry import TypeRegistry
from fragstore.store import FragmentStore

logger = logging.getLogger(__name__)


def split_fragment_ref(ref: str) -> tuple[str, str | None]:
    """Split ``"abc.html"`` into ``("abc", ".html")``; no dot means no extension."""
    fragment_id, sep, ext = ref.partition(".")
    return fragment_id, (f".{ext}" if sep else None)


def success_response(**fields: Any) -> dict[str, Any]:
    return {"status": "ok", **fields}


def error_response(exc: Exception) -> tuple[int, dict[str, Any]]:
    """Status code and body for a failed request."""
    if isinstance(exc, FragstoreError):
        code, message = exc.status_code, exc.message
    else:
        code, message = 500, "Internal server error"
    return code, {"status": "error", "error": {"code": code, "message": message}}


class FragmentService:
    """Owner-scoped fragment operations over a FragmentStore and FragmentConverter."""

    def __init__(
        self,
        store: FragmentStore,
        converter: FragmentConverter | None = None,
        api_url: str = "http://localhost:8080",
    ) -> None:
        self.store = store
        self.converter = converter or FragmentConverter()
        self.api_url = api_url.rstrip("/")

    @classmethod
    def from_config(cls, config: FragstoreConfig, clock: Clock | None = None) -> FragmentService:
        backend = create_backend(config.backend)
        store = FragmentStore(backend, clock=clock, registry=TypeRegistry(config.supported_types))
        return cls(store, FragmentConverter(config.conversion), api_url=config.api_url)

    def location(self, fragment_id: str) -> str:
        return f"{self.api_url}/v1/fragments/{fragment_id}"

    # ------------------------------------------------------------------

    def create_fragment(self, owner_id: str, content_type: str, data: bytes) -> tuple[Fragment, str]:
        fragment = self.store.create(owner_id, content_type, data)
        return fragment, self.location(fragment.id)

    def list_fragments(self, owner_id: str, expand: bool = False) -> list[str] | list[Fragment]:
        return self.store.list_for_owner(owner_id, expand=expand)

    def get_fragment_info(self, owner_id: str, fragment_ref: str) -> Fragment:
        fragment_id, _ = split_fragment_ref(fragment_ref)
        return self.store.get(owner_id, fragment_id)

    def get_fragment_data(self, owner_id: str, fragment_ref: str) -> ConversionResult:
        """Stored bytes, converted when ``fragment_ref`` carries an extension.

        Raises UnsupportedConversionError (415) when the extension is unknown
        or names a type this fragment can't be rendered as.
        """
        fragment_id, ext = split_fragment_ref(fragment_ref)
        fragment = self.store.get(owner_id, fragment_id)
        data = self.store.get_data(owner_id, fragment_id)

        if ext is None:
            return ConversionResult(data=data, media_type=fragment.media_type, content_type=fragment.type)

        target = self.converter.resolve_target_type(ext)
        result = self.converter.convert(fragment.type, target, data)
        if isinstance(result, ConversionRejected):
            logger.info("Fragment %s can't be returned as %s: %s", fragment_id, ext, result.reason)
            raise UnsupportedConversionError(fragment.media_type, target, ext)
        return result

    def update_fragment(
        self, owner_id: str, fragment_ref: str, content_type: str, data: bytes
    ) -> tuple[Fragment, str]:
        fragment_id, _ = split_fragment_ref(fragment_ref)
        fragment = self.store.update(owner_id, fragment_id, data, content_type)
        return fragment, self.location(fragment.id)

    def delete_fragment(self, owner_id: str, fragment_ref: str) -> None:
        fragment_id, _ = split_fragment_ref(fragment_ref)
        self.store.delete(owner_id, fragment_id)
