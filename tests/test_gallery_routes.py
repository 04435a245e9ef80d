from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from solar_gallery.api.dependencies import get_blob_store
from solar_gallery.core.config import settings
from solar_gallery.core.db import get_db
from solar_gallery.core.limiter_config import limiter
from solar_gallery.core.results import StoreResult
from solar_gallery.main import app
from solar_gallery.services.catalog_sync import GalleryCatalogSync
from celery_worker.tasks import gallery_tasks


@pytest.fixture
def client(db_session, blob_store, monkeypatch):
    monkeypatch.setattr(limiter, "enabled", False)
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    # No context manager: the lifespan (MinIO, health check) stays out of the test run
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert settings.APP_NAME in response.json()["message"]


def test_gallery_listing_uses_camel_case(client, db_session, blob_store, heic_bytes, video_bytes):
    blob_store.objects.update({"gallery/photo1.heic": heic_bytes, "gallery/clip.mp4": video_bytes})
    GalleryCatalogSync(db_session, blob_store).sync()

    response = client.get("/api/gallery")

    assert response.status_code == 200
    body = response.json()
    assert [item["name"] for item in body["images"]] == ["photo1.heic"]
    assert [item["name"] for item in body["videos"]] == ["clip.mp4"]
    image = body["images"][0]
    assert image["contentType"] == "image/heic"
    assert image["displayUrl"] == "/api/objects/web/gallery%2Fphoto1.heic"
    assert "displayUrl" not in body["videos"][0]


def test_empty_gallery(client):
    assert client.get("/api/gallery").json() == {"images": [], "videos": []}


def test_web_endpoint_converts_once(client, blob_store, heic_bytes):
    blob_store.objects["gallery/photo1.heic"] = heic_bytes

    first = client.get("/api/objects/web/gallery%2Fphoto1.heic")
    second = client.get("/api/objects/web/gallery/photo1.heic")

    assert first.status_code == 200 and second.status_code == 200
    assert first.headers["content-type"] == "image/jpeg"
    assert first.headers["cache-control"] == settings.CONVERTED_IMAGE_CACHE_CONTROL
    assert first.content.startswith(b"\xff\xd8")
    assert second.content == first.content
    assert blob_store.count("upload") == 1


def test_web_endpoint_quality_parameter(client, blob_store, heic_bytes):
    blob_store.objects["gallery/photo1.heic"] = heic_bytes

    assert client.get("/api/objects/web/gallery/photo1.heic", params={"quality": 40}).status_code == 200
    assert "gallery/converted/photo1_q40.jpg" in blob_store.objects
    assert client.get("/api/objects/web/gallery/photo1.heic", params={"quality": 101}).status_code == 422


def test_truncated_heic_is_not_found(client, blob_store):
    blob_store.objects["gallery/broken.heic"] = b"\x00"
    blob_store.stream_overrides["gallery/broken.heic"] = StoreResult.failure("connection reset")

    response = client.get("/api/objects/web/gallery/broken.heic")

    assert response.status_code == 404
    assert response.json()["detail"] == "Original image not found"
    assert blob_store.count("upload") == 0


def test_undecodable_heic_is_a_server_error(client, blob_store):
    blob_store.objects["gallery/garbage.heic"] = b"\x00\x00\x00\x18ftypheic" + b"\x05" * 400

    response = client.get("/api/objects/web/gallery/garbage.heic")

    assert response.status_code == 500
    assert response.json()["detail"] == "Image conversion failed"


def test_plain_object_is_served_as_stored(client, blob_store, video_bytes):
    blob_store.objects["gallery/clip.mp4"] = video_bytes

    response = client.get("/api/objects/gallery%2Fclip.mp4")

    assert response.status_code == 200
    assert response.headers["content-type"] == "video/mp4"
    assert response.headers["cache-control"] == settings.OBJECT_CACHE_CONTROL
    assert response.content == video_bytes


def test_missing_object(client):
    response = client.get("/api/objects/gallery/missing.jpg")
    assert response.status_code == 404
    assert response.json()["detail"] == "Object not found"


def test_object_endpoints_unavailable_without_storage(db_session):
    app.dependency_overrides[get_db] = lambda: db_session
    app.state.blob_store = None
    try:
        response = TestClient(app).get("/api/objects/gallery/a.jpg")
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 503


def test_sync_requires_token(client):
    assert client.post("/api/gallery/sync").status_code == 401
    assert client.post("/api/gallery/sync", headers={"X-Auth-Token": "wrong"}).status_code == 401


def test_sync_dispatches_task(client, monkeypatch):
    dispatched = {}

    def fake_apply_async(**kwargs):
        dispatched.update(kwargs)
        return SimpleNamespace(id="task-123")

    monkeypatch.setattr(gallery_tasks.sync_gallery_catalog_task, "apply_async", fake_apply_async)

    response = client.post("/api/gallery/sync", headers={"X-Auth-Token": "test-token"})

    assert response.status_code == 202
    assert response.json() == {"message": "Gallery sync task submitted.", "task_id": "task-123"}
    assert dispatched == {"queue": "maintenance_queue"}


def test_sync_reports_unavailable_broker(client, monkeypatch):
    def broken_apply_async(**kwargs):
        raise ConnectionError("redis unreachable")

    monkeypatch.setattr(gallery_tasks.sync_gallery_catalog_task, "apply_async", broken_apply_async)

    response = client.post("/api/gallery/sync", headers={"X-Auth-Token": "test-token"})
    assert response.status_code == 503


def test_local_gallery_files(client, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "LOCAL_PUBLIC_DIR", str(tmp_path))
    images_dir = tmp_path / "gallery" / "images"
    images_dir.mkdir(parents=True)
    (images_dir / "photo1.jpg").write_bytes(b"\xff\xd8jpeg")

    ok = client.get("/gallery/images/photo1.jpg")
    assert ok.status_code == 200
    assert ok.headers["content-type"] == "image/jpeg"
    assert ok.headers["cache-control"] == settings.LOCAL_GALLERY_CACHE_CONTROL
    assert ok.content == b"\xff\xd8jpeg"

    assert client.get("/gallery/images/missing.jpg").status_code == 404
    assert client.get("/gallery/docs/photo1.jpg").status_code == 404
    assert client.get("/gallery/images/.env").status_code == 404
