import logging
import os
import re
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from solar_gallery.core.config import settings
from solar_gallery.core.errors import GalleryError
from solar_gallery.models.gallery_file import GalleryFile
from solar_gallery.services.converted_cache import CONVERTED_CONTENT_TYPE
from solar_gallery.services.web_image_service import WebImageService
from solar_gallery.utils.content_types import HEIC_CONTENT_TYPES

logger = logging.getLogger(__name__)

_HEIC_SUFFIX = re.compile(r"\.hei[cf]$", re.IGNORECASE)


@dataclass
class ConversionReport:
    converted_count: int = 0
    failed: List[str] = field(default_factory=list)


def jpeg_filename_for(filename: str) -> str:
    if _HEIC_SUFFIX.search(filename):
        return _HEIC_SUFFIX.sub(".jpg", filename)
    return f"{filename}.jpg"


class HeicBatchConverter:
    """
    Converts every unconverted HEIC catalog row to a local JPEG artifact.

    JPEG bytes come from ``WebImageService`` so the blob store rendition cache is
    shared with on-demand requests.
    """

    def __init__(self, db: Session, web_images: WebImageService, output_dir: Optional[str] = None):
        self.db = db
        self.web_images = web_images
        self.output_dir = output_dir or os.path.join(settings.LOCAL_PUBLIC_DIR, "gallery", "images")

    def pending_rows(self) -> List[GalleryFile]:
        return self.db.query(GalleryFile).filter(
            GalleryFile.content_type.in_(sorted(HEIC_CONTENT_TYPES)),
            GalleryFile.is_converted.is_(False),
        ).order_by(GalleryFile.id).all()

    def convert_row(self, row: GalleryFile, quality: int = None) -> None:
        jpeg_bytes = self.web_images.get_or_convert(row.original_path, quality)

        jpeg_filename = jpeg_filename_for(row.filename)
        # Base names repeat across directories; the row id keeps each artifact distinct
        artifact_name = f"{row.id}-{jpeg_filename}"
        output_path = os.path.join(self.output_dir, artifact_name)
        os.makedirs(self.output_dir, exist_ok=True)
        with open(output_path, "wb") as f:
            f.write(jpeg_bytes)

        # All conversion fields change in one commit
        row.filename = jpeg_filename
        row.content_type = CONVERTED_CONTENT_TYPE
        row.file_size = str(len(jpeg_bytes))
        row.is_converted = True
        row.object_storage_url = f"{settings.LOCAL_GALLERY_URL_PREFIX}images/{artifact_name}"
        row.local_path = output_path
        self.db.commit()
        logger.info("Converted %s -> %s (%d bytes)", row.original_path, output_path, len(jpeg_bytes))

    def convert_pending(self, quality: int = None) -> ConversionReport:
        if quality is None:
            quality = settings.HEIC_JPEG_QUALITY
        if not 0 <= quality <= 100:
            raise ValueError(f"JPEG quality must be between 0 and 100, got {quality}")

        report = ConversionReport()
        rows = self.pending_rows()
        logger.info("Found %d HEIC files to convert", len(rows))
        for row in rows:
            original_path = row.original_path
            try:
                self.convert_row(row, quality)
                report.converted_count += 1
            except (GalleryError, OSError) as e:
                logger.error("Error processing %s: %s", original_path, e)
                report.failed.append(f"{original_path}: {e}")
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("Catalog update failed for %s: %s", original_path, e)
                report.failed.append(f"{original_path}: {e}")

        logger.info("Successfully converted: %d/%d files", report.converted_count, len(rows))
        return report
