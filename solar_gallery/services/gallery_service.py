import logging
from urllib.parse import quote

from sqlalchemy.orm import Session

from solar_gallery.core.config import settings
from solar_gallery.models.gallery_file import FileTypeEnum, GalleryFile
from solar_gallery.schemas.gallery_schema import GalleryItem, GalleryListing
from solar_gallery.utils.content_types import is_heic_content_type

logger = logging.getLogger(__name__)

# Same reserved set as JavaScript's encodeURIComponent, so stored URLs stay stable
_URI_COMPONENT_SAFE = "!~*'()"


def encode_object_key(object_key: str) -> str:
    return quote(object_key, safe=_URI_COMPONENT_SAFE)


def object_url(object_key: str) -> str:
    return f"{settings.API_OBJECTS_PREFIX}/{encode_object_key(object_key)}"


def web_object_url(object_key: str) -> str:
    return f"{settings.API_OBJECTS_PREFIX}/web/{encode_object_key(object_key)}"


class GalleryQueryService:
    def __init__(self, db: Session):
        self.db = db

    def _to_item(self, row: GalleryFile) -> GalleryItem:
        try:
            size = int(row.file_size or 0)
        except ValueError:
            size = 0
        item = GalleryItem(
            name=row.filename,
            size=size,
            content_type=row.content_type,
            time_created=row.created_at.isoformat() if row.created_at else "",
            url=row.object_storage_url or object_url(row.original_path),
        )
        if is_heic_content_type(row.content_type):
            item.display_url = web_object_url(row.original_path)
        return item

    def list_gallery_items(self) -> GalleryListing:
        listing = GalleryListing()
        try:
            rows = self.db.query(GalleryFile).order_by(GalleryFile.created_at, GalleryFile.id).all()
            logger.info("Found %d gallery files in catalog", len(rows))
            for row in rows:
                item = self._to_item(row)
                if row.file_type == FileTypeEnum.IMAGE:
                    listing.images.append(item)
                elif row.file_type == FileTypeEnum.VIDEO:
                    listing.videos.append(item)
        except Exception as e:
            # The gallery page renders an empty state instead of an error page
            logger.error("Error reading gallery from catalog: %s", e)
            return GalleryListing()

        logger.info("Gallery summary: %d images, %d videos", len(listing.images), len(listing.videos))
        return listing
