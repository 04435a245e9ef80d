from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum as SAEnum
from datetime import datetime, timezone
import enum

from solar_gallery.core.db import Base

class FileTypeEnum(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"

def _utcnow():
    return datetime.now(timezone.utc)

class GalleryFile(Base):
    __tablename__ = "gallery_files"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String(255), nullable=False) # Display name; becomes *.jpg after conversion
    original_path = Column(String(1024), unique=True, nullable=False, index=True) # Blob store key, reconciliation join key
    file_type = Column(SAEnum(FileTypeEnum), nullable=False, index=True) # Fixed at insert time
    content_type = Column(String(100), nullable=False)
    file_size = Column(String(32), nullable=False, default="0") # Decimal string, size of the served artifact

    # False only for HEIC/HEIF rows that still point at the original container
    is_converted = Column(Boolean, default=True, nullable=False)

    object_storage_url = Column(String(2048), nullable=True)
    local_path = Column(String(1024), nullable=True) # Set when the artifact was written to local disk

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<GalleryFile(id={self.id}, filename='{self.filename}', original_path='{self.original_path}')>"
