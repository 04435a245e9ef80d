import logging
from dataclasses import asdict
from datetime import datetime

from celery_worker.celery_setup import celery_app
from solar_gallery.core.blob_store import MinioBlobStore
from solar_gallery.core.db import SessionLocal
from solar_gallery.services.catalog_sync import GalleryCatalogSync
from solar_gallery.services.heic_batch_converter import HeicBatchConverter
from solar_gallery.services.web_image_service import WebImageService

logger = logging.getLogger(__name__)


def _open_blob_store() -> MinioBlobStore:
    # One client per task run, shared by every service the run touches
    return MinioBlobStore.from_settings(ensure_bucket=False)


@celery_app.task(name="tasks.gallery.sync_catalog")
def sync_gallery_catalog_task():
    """
    Inserts catalog rows for blob store objects the catalog has not seen yet.
    Safe to re-run; per-object failures are reported in the result, not raised.
    """
    task_name_log = f"[GallerySync - {datetime.utcnow().isoformat()}]"
    logger.info("%s Starting catalog sync.", task_name_log)
    db = SessionLocal()
    try:
        report = GalleryCatalogSync(db, _open_blob_store()).sync()
        if report.errors:
            logger.warning("%s Finished with %d errors.", task_name_log, len(report.errors))
        return {"status": "success", **asdict(report)}
    except Exception as e:
        db.rollback()
        logger.exception("%s General error in catalog sync: %s", task_name_log, e)
        return {"status": "error", "reason": str(e)}
    finally:
        db.close()


@celery_app.task(name="tasks.gallery.audit_accessibility")
def audit_gallery_accessibility_task():
    """Read-only check that every catalog row still resolves to downloadable bytes."""
    task_name_log = f"[GalleryAudit - {datetime.utcnow().isoformat()}]"
    db = SessionLocal()
    try:
        report = GalleryCatalogSync(db, _open_blob_store()).audit_accessibility()
        return {"status": "success", **asdict(report)}
    except Exception as e:
        logger.exception("%s General error in accessibility audit: %s", task_name_log, e)
        return {"status": "error", "reason": str(e)}
    finally:
        db.close()


@celery_app.task(name="tasks.gallery.convert_pending_heic")
def convert_pending_heic_task(quality: int = None):
    """Converts unconverted HEIC rows to local JPEG artifacts and updates the catalog."""
    task_name_log = f"[HeicBatch - {datetime.utcnow().isoformat()}]"
    db = SessionLocal()
    try:
        converter = HeicBatchConverter(db, WebImageService(_open_blob_store()))
        report = converter.convert_pending(quality)
        return {"status": "success", **asdict(report)}
    except Exception as e:
        db.rollback()
        logger.exception("%s General error in HEIC batch conversion: %s", task_name_log, e)
        return {"status": "error", "reason": str(e)}
    finally:
        db.close()


@celery_app.task(name="tasks.gallery.purge_stale_heic")
def purge_stale_heic_task():
    """Removes unconverted HEIC rows whose originals no longer exist in the blob store."""
    db = SessionLocal()
    try:
        removed = GalleryCatalogSync(db, _open_blob_store()).purge_stale_heic_rows()
        return {"status": "success", "removed_count": removed}
    except Exception as e:
        db.rollback()
        logger.exception("General error purging stale HEIC rows: %s", e)
        return {"status": "error", "reason": str(e)}
    finally:
        db.close()
