"""Shared test fixtures for fragstore."""

import io
from datetime import UTC, datetime, timedelta

import pytest
from PIL import Image

from fragstore.backends import InMemoryBackend
from fragstore.clock import ManualClock
from fragstore.config import FragstoreConfig
from fragstore.converter import FragmentConverter
from fragstore.service import FragmentService
from fragstore.store import FragmentStore

OWNER = "owner-a"
OTHER_OWNER = "owner-b"


def make_image(fmt: str = "JPEG", size: tuple[int, int] = (17, 9), mode: str = "RGB") -> bytes:
    """Encode a small solid image with Pillow."""
    color = (200, 30, 60, 128) if mode == "RGBA" else (200, 30, 60)
    img = Image.new(mode, size, color[: len(mode)] if mode in ("RGB", "RGBA") else 0)
    out = io.BytesIO()
    img.save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def clock():
    return ManualClock(start=datetime(2025, 1, 1, tzinfo=UTC), step=timedelta(seconds=1))


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend, clock):
    return FragmentStore(backend, clock=clock)


@pytest.fixture
def converter():
    return FragmentConverter()


@pytest.fixture
def service(store, converter):
    return FragmentService(store, converter, api_url="http://test.local/")


@pytest.fixture
def sample_config():
    return FragstoreConfig()


@pytest.fixture
def jpeg_bytes():
    return make_image("JPEG")


@pytest.fixture
def image_factory():
    return make_image
