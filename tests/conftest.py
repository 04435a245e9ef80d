"""Shared fixtures: in-memory blob store, SQLite catalog session, generated HEIC bytes."""
import io
import os

# Settings are built at import time; keep the test run away from ./instance and real services
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("API_PRESHARED_AUTH_TOKEN", "test-token")

import pytest
from PIL import Image
from pillow_heif import register_heif_opener
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from solar_gallery.core.blob_store import StoredObject
from solar_gallery.core.db import Base
from solar_gallery.core.results import StoreResult
from solar_gallery.models.gallery_file import GalleryFile  # noqa: F401  (registers the table)

register_heif_opener()


class FakeBlobStore:
    """
    Dict-backed stand-in for MinioBlobStore.

    Failure shapes can be injected per key and per transfer path:
    ``byte_overrides[key]`` / ``stream_overrides[key]`` hold a StoreResult to
    return instead of the stored bytes.
    """

    def __init__(self, objects=None):
        self.objects = dict(objects or {})
        self.byte_overrides = {}
        self.stream_overrides = {}
        self.fail_uploads = False
        self.fail_list = False
        self.calls = []

    def list_objects(self, prefix=None):
        self.calls.append(("list", prefix))
        if self.fail_list:
            return StoreResult.failure("list failed: connection reset")
        return StoreResult.success([
            StoredObject(name=name, size=len(data))
            for name, data in sorted(self.objects.items())
            if prefix is None or name.startswith(prefix)
        ])

    def download_bytes(self, key):
        self.calls.append(("bytes", key))
        if key in self.byte_overrides:
            return self.byte_overrides[key]
        if key not in self.objects:
            return StoreResult.failure(f"download failed: NoSuchKey {key}")
        return StoreResult.success(self.objects[key])

    def download_stream(self, key, chunk_size=None):
        self.calls.append(("stream", key))
        if key in self.stream_overrides:
            return self.stream_overrides[key]
        if key not in self.objects:
            return StoreResult.failure(f"stream failed: NoSuchKey {key}")
        data = self.objects[key]
        size = chunk_size or 1024
        return StoreResult.success(iter([data[i:i + size] for i in range(0, len(data), size)]))

    def upload_bytes(self, key, data, content_type="application/octet-stream"):
        self.calls.append(("upload", key))
        if self.fail_uploads:
            return StoreResult.failure("upload failed: quota exceeded")
        self.objects[key] = data
        return StoreResult.success()

    def delete(self, key):
        self.calls.append(("delete", key))
        self.objects.pop(key, None)
        return StoreResult.success()

    def exists(self, key):
        self.calls.append(("exists", key))
        return key in self.objects

    def count(self, kind):
        return sum(1 for call in self.calls if call[0] == kind)


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)()
    yield session
    session.close()


def _noise_image(size=(96, 96)):
    # Noise keeps the encoded file comfortably above the download size floor
    return Image.effect_noise(size, 64).convert("RGB")


@pytest.fixture(scope="session")
def heic_bytes():
    buf = io.BytesIO()
    _noise_image().save(buf, format="HEIF", quality=90)
    return buf.getvalue()


@pytest.fixture(scope="session")
def large_heic_bytes():
    # Roughly phone-photo sized; noise keeps the HEIC encoder from shrinking it
    buf = io.BytesIO()
    _noise_image((1600, 1200)).save(buf, format="HEIF", quality=95)
    return buf.getvalue()


@pytest.fixture(scope="session")
def png_bytes():
    buf = io.BytesIO()
    _noise_image((32, 32)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def video_bytes():
    # Not a real MP4, only its size and extension matter to the catalog
    return b"\x00\x00\x00\x18ftypmp42" + os.urandom(500 * 1024)
