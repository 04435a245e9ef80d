import io
import os

import pytest
from PIL import Image

from solar_gallery.core.config import settings
from solar_gallery.models.gallery_file import FileTypeEnum, GalleryFile
from solar_gallery.services.catalog_sync import GalleryCatalogSync
from solar_gallery.services.heic_batch_converter import HeicBatchConverter, jpeg_filename_for
from solar_gallery.services.web_image_service import WebImageService


@pytest.mark.parametrize("filename, expected", [
    ("photo1.heic", "photo1.jpg"),
    ("IMG_0001.HEIF", "IMG_0001.jpg"),
    ("panel.heic.bak", "panel.heic.bak.jpg"),
])
def test_jpeg_filename_for(filename, expected):
    assert jpeg_filename_for(filename) == expected


def test_convert_pending_updates_rows_and_writes_files(db_session, blob_store, heic_bytes, video_bytes, tmp_path):
    blob_store.objects.update({
        "gallery/photo1.heic": heic_bytes,
        "gallery/clip.mp4": video_bytes,
    })
    GalleryCatalogSync(db_session, blob_store).sync()
    converter = HeicBatchConverter(db_session, WebImageService(blob_store), output_dir=str(tmp_path))

    report = converter.convert_pending(85)

    assert report.converted_count == 1 and report.failed == []
    row = db_session.query(GalleryFile).filter_by(original_path="gallery/photo1.heic").one()
    assert row.filename == "photo1.jpg"
    assert row.content_type == "image/jpeg"
    assert row.is_converted is True
    artifact = tmp_path / f"{row.id}-photo1.jpg"
    assert row.object_storage_url == f"{settings.LOCAL_GALLERY_URL_PREFIX}images/{row.id}-photo1.jpg"
    assert row.local_path == str(artifact)
    assert row.file_size == str(artifact.stat().st_size)
    with Image.open(artifact) as img:
        assert img.format == "JPEG"
    # The blob store rendition cache is shared with on-demand requests
    assert "gallery/converted/photo1_q85.jpg" in blob_store.objects
    assert converter.pending_rows() == []


def test_failed_rows_stay_pending(db_session, blob_store, tmp_path):
    db_session.add(GalleryFile(filename="gone.heic", original_path="gallery/gone.heic",
                               file_type=FileTypeEnum.IMAGE, content_type="image/heic", is_converted=False))
    db_session.commit()
    converter = HeicBatchConverter(db_session, WebImageService(blob_store), output_dir=str(tmp_path))

    report = converter.convert_pending()

    assert report.converted_count == 0
    assert len(report.failed) == 1 and report.failed[0].startswith("gallery/gone.heic")
    row = db_session.query(GalleryFile).one()
    assert row.is_converted is False and row.filename == "gone.heic"
    assert list(tmp_path.iterdir()) == []


def _heic(size):
    buf = io.BytesIO()
    Image.effect_noise(size, 64).convert("RGB").save(buf, format="HEIF", quality=90)
    return buf.getvalue()


def test_same_base_name_in_different_directories_gets_separate_artifacts(db_session, blob_store, tmp_path):
    blob_store.objects.update({
        "roofs/IMG_1.heic": _heic((32, 32)),
        "panels/IMG_1.heic": _heic((200, 200)),
    })
    GalleryCatalogSync(db_session, blob_store).sync()
    converter = HeicBatchConverter(db_session, WebImageService(blob_store), output_dir=str(tmp_path))

    report = converter.convert_pending(85)

    assert report.converted_count == 2 and report.failed == []
    rows = db_session.query(GalleryFile).all()
    assert len({row.local_path for row in rows}) == 2
    assert len({row.object_storage_url for row in rows}) == 2
    for row in rows:
        assert row.filename == "IMG_1.jpg"
        assert row.file_size == str(os.path.getsize(row.local_path))
    sizes = {row.original_path: Image.open(row.local_path).size for row in rows}
    assert sizes == {"roofs/IMG_1.heic": (32, 32), "panels/IMG_1.heic": (200, 200)}


@pytest.mark.parametrize("quality", [-5, 150])
def test_invalid_quality_is_refused_before_any_row(db_session, blob_store, heic_bytes, tmp_path, quality):
    blob_store.objects["gallery/photo1.heic"] = heic_bytes
    GalleryCatalogSync(db_session, blob_store).sync()
    converter = HeicBatchConverter(db_session, WebImageService(blob_store), output_dir=str(tmp_path))

    with pytest.raises(ValueError):
        converter.convert_pending(quality)

    assert len(converter.pending_rows()) == 1
    assert blob_store.count("bytes") == 0
    assert list(tmp_path.iterdir()) == []
