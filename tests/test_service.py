"""Tests for FragmentService - the transport-facing operations and response helpers."""

from __future__ import annotations

import io
import json

import pytest
from PIL import Image

from fragstore.config import FragstoreConfig
from fragstore.config.models import BackendConfig
from fragstore.errors import (
    ConversionFailed,
    NotFoundError,
    StorageError,
    TypeMismatchError,
    UnsupportedConversionError,
    ValidationError,
)
from fragstore.service import FragmentService, error_response, split_fragment_ref, success_response

OWNER = "owner-a"
OTHER = "owner-b"


class TestSplitFragmentRef:
    def test_plain_id(self):
        assert split_fragment_ref("abc") == ("abc", None)

    def test_with_extension(self):
        assert split_fragment_ref("abc.html") == ("abc", ".html")

    def test_trailing_dot(self):
        assert split_fragment_ref("abc.") == ("abc", ".")


# ---------------------------------------------------------------------------
# create / list / info
# ---------------------------------------------------------------------------


class TestCreateFragment:
    def test_returns_location(self, service):
        fragment, location = service.create_fragment(OWNER, "text/plain", b"This is fragment")
        assert location == f"http://test.local/v1/fragments/{fragment.id}"
        assert fragment.size == 16

    def test_unsupported_type(self, service):
        with pytest.raises(ValidationError):
            service.create_fragment(OWNER, "application/msword", b"doc")


class TestListFragments:
    def test_three_ids_for_owner_only(self, service):
        ids = [service.create_fragment(OWNER, "text/plain", b"x")[0].id for _ in range(3)]
        service.create_fragment(OTHER, "text/plain", b"y")
        listed = service.list_fragments(OWNER)
        assert listed == ids

    def test_expand(self, service):
        service.create_fragment(OWNER, "text/markdown", b"# a")
        (fragment,) = service.list_fragments(OWNER, expand=True)
        assert fragment.type == "text/markdown"
        assert fragment.size == 3


class TestGetFragmentInfo:
    def test_info(self, service):
        fragment, _ = service.create_fragment(OWNER, "application/json", b"{}")
        assert service.get_fragment_info(OWNER, fragment.id) == fragment

    def test_info_ignores_extension(self, service):
        fragment, _ = service.create_fragment(OWNER, "application/json", b"{}")
        assert service.get_fragment_info(OWNER, f"{fragment.id}.txt").id == fragment.id

    def test_missing(self, service):
        with pytest.raises(NotFoundError):
            service.get_fragment_info(OWNER, "randomid")


# ---------------------------------------------------------------------------
# get data
# ---------------------------------------------------------------------------


class TestGetFragmentData:
    def test_raw(self, service):
        fragment, _ = service.create_fragment(OWNER, "text/plain; charset=utf-8", b"This is fragment")
        result = service.get_fragment_data(OWNER, fragment.id)
        assert result.data == b"This is fragment"
        assert result.content_type == "text/plain; charset=utf-8"
        assert result.media_type == "text/plain"

    def test_same_extension_is_passthrough(self, service):
        fragment, _ = service.create_fragment(OWNER, "text/markdown", b"# x")
        result = service.get_fragment_data(OWNER, f"{fragment.id}.md")
        assert result.data == b"# x"

    def test_markdown_as_html(self, service):
        fragment, _ = service.create_fragment(OWNER, "text/markdown", b"# Title")
        result = service.get_fragment_data(OWNER, f"{fragment.id}.html")
        assert b"<h1>Title</h1>" in result.data
        assert result.media_type == "text/html"
        assert result.content_type == "text/html; charset=utf-8"

    def test_markdown_as_text(self, service):
        fragment, _ = service.create_fragment(OWNER, "text/markdown", b"# This is fragment 2")
        result = service.get_fragment_data(OWNER, f"{fragment.id}.txt")
        assert result.data == b"This is fragment 2"
        assert result.content_type == "text/plain; charset=utf-8"

    def test_plain_text_as_png_is_415(self, service):
        fragment, _ = service.create_fragment(OWNER, "text/plain", b"hi")
        with pytest.raises(UnsupportedConversionError) as exc_info:
            service.get_fragment_data(OWNER, f"{fragment.id}.png")
        assert exc_info.value.status_code == 415

    def test_unknown_extension_is_415(self, service):
        fragment, _ = service.create_fragment(OWNER, "text/plain", b"hi")
        with pytest.raises(UnsupportedConversionError):
            service.get_fragment_data(OWNER, f"{fragment.id}.exe")

    def test_jpeg_as_webp(self, service, jpeg_bytes):
        fragment, _ = service.create_fragment(OWNER, "image/jpeg", jpeg_bytes)
        result = service.get_fragment_data(OWNER, f"{fragment.id}.webp")
        img = Image.open(io.BytesIO(result.data))
        assert img.format == "WEBP"
        assert img.size == Image.open(io.BytesIO(jpeg_bytes)).size

    def test_corrupt_image_is_conversion_failed(self, service):
        fragment, _ = service.create_fragment(OWNER, "image/png", b"not really a png")
        with pytest.raises(ConversionFailed):
            service.get_fragment_data(OWNER, f"{fragment.id}.jpg")

    def test_conversion_does_not_touch_stored_fragment(self, service):
        fragment, _ = service.create_fragment(OWNER, "text/markdown", b"# Title")
        service.get_fragment_data(OWNER, f"{fragment.id}.html")
        assert service.get_fragment_data(OWNER, fragment.id).data == b"# Title"
        assert service.get_fragment_info(OWNER, fragment.id) == fragment

    def test_missing(self, service):
        with pytest.raises(NotFoundError):
            service.get_fragment_data(OWNER, "randomid.html")

    def test_other_owner(self, service):
        fragment, _ = service.create_fragment(OWNER, "text/plain", b"mine")
        with pytest.raises(NotFoundError):
            service.get_fragment_data(OTHER, fragment.id)


# ---------------------------------------------------------------------------
# update / delete
# ---------------------------------------------------------------------------


class TestUpdateFragment:
    def test_update(self, service):
        fragment, _ = service.create_fragment(OWNER, "text/plain", b"old")
        updated, location = service.update_fragment(OWNER, fragment.id, "text/plain", b"newer")
        assert updated.size == 5
        assert location.endswith(fragment.id)
        assert service.get_fragment_data(OWNER, fragment.id).data == b"newer"

    def test_type_change_rejected(self, service):
        fragment, _ = service.create_fragment(OWNER, "text/plain", b"old")
        with pytest.raises(TypeMismatchError):
            service.update_fragment(OWNER, fragment.id, "text/html", b"<p>new</p>")

    def test_missing(self, service):
        with pytest.raises(NotFoundError):
            service.update_fragment(OWNER, "randomid", "text/plain", b"x")


class TestDeleteFragment:
    def test_delete(self, service):
        fragment, _ = service.create_fragment(OWNER, "text/plain", b"bye")
        service.delete_fragment(OWNER, fragment.id)
        with pytest.raises(NotFoundError):
            service.get_fragment_info(OWNER, fragment.id)
        assert service.list_fragments(OWNER) == []

    def test_delete_with_extension(self, service):
        fragment, _ = service.create_fragment(OWNER, "text/plain", b"bye")
        service.delete_fragment(OWNER, f"{fragment.id}.txt")
        assert service.list_fragments(OWNER) == []

    def test_missing(self, service):
        with pytest.raises(NotFoundError):
            service.delete_fragment(OWNER, "randomid")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class TestResponses:
    def test_success(self):
        assert success_response(fragments=["a"]) == {"status": "ok", "fragments": ["a"]}

    @pytest.mark.parametrize(
        ("exc", "code"),
        [
            (ValidationError("bad"), 400),
            (TypeMismatchError("text/plain", "text/html"), 400),
            (NotFoundError(OWNER, "x"), 404),
            (UnsupportedConversionError("text/plain", "image/png", ".png"), 415),
            (ConversionFailed("image/png", "image/jpeg"), 500),
            (StorageError("write payload"), 500),
        ],
    )
    def test_status_classes(self, exc, code):
        status, body = error_response(exc)
        assert status == code
        assert body["status"] == "error"
        assert body["error"]["code"] == code
        assert body["error"]["message"] == exc.message

    def test_unexpected_exception_hides_details(self):
        status, body = error_response(RuntimeError("db password is hunter2"))
        assert status == 500
        assert "hunter2" not in json.dumps(body)


# ---------------------------------------------------------------------------
# from_config
# ---------------------------------------------------------------------------


class TestFromConfig:
    def test_sqlite_service(self, tmp_path):
        config = FragstoreConfig(
            api_url="https://api.example.com/",
            backend=BackendConfig(provider="sqlite", path=str(tmp_path / "f.db")),
        )
        service = FragmentService.from_config(config)
        fragment, location = service.create_fragment(OWNER, "text/plain", b"x")
        assert location == f"https://api.example.com/v1/fragments/{fragment.id}"
        assert service.get_fragment_data(OWNER, fragment.id).data == b"x"

    def test_supported_types_narrowed(self):
        service = FragmentService.from_config(FragstoreConfig(supported_types=["text/plain"]))
        with pytest.raises(ValidationError):
            service.create_fragment(OWNER, "text/markdown", b"# x")
