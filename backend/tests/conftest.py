"""Shared test fixtures and configuration for backend tests."""
import pytest
from fastapi.testclient import TestClient

from chatmedia.main import app
from chatmedia.media.service import MediaService, get_media_service
from chatmedia.media.store import MediaStore
from chatmedia.records.service import RecordStore

PNG_HEADER = b"\x89PNG\r\n\x1a\n"
MIB = 1024 * 1024


def png_bytes(size: int = 64) -> bytes:
    """PNG-looking payload of exactly ``size`` bytes."""
    return PNG_HEADER + b"\x00" * max(0, size - len(PNG_HEADER))


def stored_files(store: MediaStore) -> list:
    """Names of all objects currently in the store's upload directory."""
    if not store.upload_dir.exists():
        return []
    return sorted(p.name for p in store.upload_dir.iterdir())


@pytest.fixture
def records():
    """In-memory RecordStore, closed after the test."""
    store = RecordStore(db_path=":memory:")
    yield store
    store.close()


@pytest.fixture
def media_store(tmp_path):
    """MediaStore writing under a temp directory (created lazily)."""
    return MediaStore(upload_dir=str(tmp_path / "uploads"), url_prefix="/uploads")


@pytest.fixture
def service(records, media_store):
    return MediaService(records, media_store)


@pytest.fixture
def api_client(service):
    """TestClient for the main app, wired to the per-test service."""
    app.dependency_overrides[get_media_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
