import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from solar_gallery.core.config import settings
from solar_gallery.models.gallery_file import FileTypeEnum, GalleryFile
from solar_gallery.services.downloader import ResilientDownloader
from solar_gallery.services.gallery_service import object_url
from solar_gallery.utils.content_types import (
    HEIC_CONTENT_TYPES,
    classify_media_type,
    is_heic_filename,
    resolve_content_type,
)

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    synced_count: int = 0
    skipped_count: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class AccessibilityReport:
    accessible_count: int = 0
    inaccessible_count: int = 0
    inaccessible: List[Dict[str, str]] = field(default_factory=list)


def local_artifact_path(url: str) -> Optional[str]:
    """Filesystem path for catalog URLs that point at locally materialized files, else None."""
    if not url or not url.startswith(settings.LOCAL_GALLERY_URL_PREFIX):
        return None
    return os.path.join(settings.LOCAL_PUBLIC_DIR, url.lstrip("/"))


class GalleryCatalogSync:
    """
    Keeps the gallery catalog in agreement with the blob store.

    ``sync`` only ever inserts rows for objects it has not seen; it is safe to
    re-run and tolerates per-object failures. ``audit_accessibility`` is a
    read-only diagnostic.
    """

    def __init__(self, db: Session, store, downloader: Optional[ResilientDownloader] = None):
        self.db = db
        self.store = store
        self.downloader = downloader or ResilientDownloader(store)

    def sync(self) -> SyncReport:
        report = SyncReport()
        logger.info("Listing all objects in storage...")
        listed = self.store.list_objects()
        if not listed.ok:
            report.errors.append(f"Failed to list objects from storage: {listed.error}")
            return report

        objects = listed.value or []
        logger.info("Found %d objects in bucket", len(objects))

        for obj in objects:
            if obj.name.endswith("/"):
                continue

            filename = obj.name.rsplit("/", 1)[-1] or obj.name
            media_type = classify_media_type(filename)
            if media_type is None:
                logger.info("Skipping unknown file type: %s", obj.name)
                continue

            try:
                existing = self.db.query(GalleryFile.id).filter(GalleryFile.original_path == obj.name).first()
                if existing:
                    logger.debug("Already in catalog: %s", obj.name)
                    report.skipped_count += 1
                    continue

                self.db.add(GalleryFile(
                    filename=filename,
                    original_path=obj.name,
                    file_type=FileTypeEnum(media_type),
                    content_type=resolve_content_type(filename),
                    file_size=str(obj.size or 0),
                    is_converted=not is_heic_filename(filename),
                    object_storage_url=object_url(obj.name),
                ))
                self.db.commit()
                report.synced_count += 1
                logger.info("Added to catalog: %s (%s)", obj.name, media_type)
            except SQLAlchemyError as e:
                self.db.rollback()
                message = f"Failed to sync {obj.name}: {e}"
                logger.error(message)
                report.errors.append(message)

        logger.info(
            "Sync complete: %d added, %d already present, %d errors",
            report.synced_count, report.skipped_count, len(report.errors)
        )
        return report

    def _is_accessible(self, row: GalleryFile) -> Optional[str]:
        """Returns None when the row's bytes can be resolved, otherwise the reason they cannot."""
        local_path = local_artifact_path(row.object_storage_url)
        if local_path is not None:
            return None if os.path.isfile(local_path) else f"local file missing: {local_path}"

        result = self.downloader.download(row.original_path)
        if result.ok and len(result.value) >= self.downloader.min_valid_bytes:
            return None
        return result.error or "small/empty file"

    def audit_accessibility(self) -> AccessibilityReport:
        report = AccessibilityReport()
        rows = self.db.query(GalleryFile).order_by(GalleryFile.id).all()
        for row in rows:
            try:
                reason = self._is_accessible(row)
            except OSError as e:
                reason = str(e)
            if reason is None:
                report.accessible_count += 1
            else:
                logger.warning("Inaccessible: %s (%s)", row.filename, reason)
                report.inaccessible_count += 1
                report.inaccessible.append({"filename": row.filename, "original_path": row.original_path, "reason": reason})

        logger.info(
            "Accessibility audit: %d accessible, %d inaccessible",
            report.accessible_count, report.inaccessible_count
        )
        return report

    def purge_stale_heic_rows(self) -> int:
        """Deletes unconverted HEIC rows whose original object is gone from the blob store."""
        listed = self.store.list_objects()
        if not listed.ok:
            logger.error("Not purging stale HEIC rows, listing failed: %s", listed.error)
            return 0
        present = {obj.name for obj in listed.value or []}

        stale = [
            row for row in self.db.query(GalleryFile).filter(
                GalleryFile.content_type.in_(sorted(HEIC_CONTENT_TYPES)),
                GalleryFile.is_converted.is_(False),
            ).all()
            if row.original_path not in present
        ]
        if not stale:
            return 0
        try:
            for row in stale:
                logger.info("Removing stale HEIC row: %s", row.original_path)
                self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to purge stale HEIC rows: %s", e)
            return 0
        return len(stale)

    def summarize(self) -> Dict[str, int]:
        rows = self.db.query(GalleryFile).all()
        return {
            "total": len(rows),
            "heic_pending_conversion": sum(
                1 for r in rows if r.content_type in HEIC_CONTENT_TYPES and not r.is_converted
            ),
            "converted": sum(1 for r in rows if r.is_converted),
        }
