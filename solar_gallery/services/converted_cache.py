import logging
from typing import Optional

from solar_gallery.core.config import settings
from solar_gallery.services.downloader import ResilientDownloader

logger = logging.getLogger(__name__)

CONVERTED_CONTENT_TYPE = "image/jpeg"


def cache_key_for(original_key: str, quality: int = None) -> str:
    """
    Derives the blob store key holding the JPEG rendition of ``original_key``.

    ``gallery/photo1.heic`` at quality 85 maps to ``gallery/converted/photo1_q85.jpg``.
    Quality is part of the key, so renditions at different qualities never collide.
    A key without a directory yields ``/converted/...``; existing caches depend on
    this exact format.
    """
    if quality is None:
        quality = settings.HEIC_JPEG_QUALITY
    slash = original_key.rfind("/")
    directory = original_key[:slash] if slash >= 0 else ""
    file_name = original_key[slash + 1:]
    base_name = file_name.rsplit(".", 1)[0] if "." in file_name else file_name
    return f"{directory}/converted/{base_name or 'image'}_q{quality}.jpg"


class ConvertedImageCache:
    """Converted renditions stored back into the blob store; key existence is the only cache metadata."""

    def __init__(self, store, downloader: Optional[ResilientDownloader] = None):
        self.store = store
        self.downloader = downloader or ResilientDownloader(store)

    def cache_key_for(self, original_key: str, quality: int = None) -> str:
        return cache_key_for(original_key, quality)

    def exists(self, key: str) -> bool:
        return self.store.exists(key)

    def load(self, key: str) -> Optional[bytes]:
        result = self.downloader.download(key)
        if not result.ok:
            logger.warning("Cached rendition '%s' could not be downloaded: %s", key, result.error)
            return None
        return result.value

    def store_rendition(self, key: str, data: bytes) -> bool:
        result = self.store.upload_bytes(key, data, content_type=CONVERTED_CONTENT_TYPE)
        if not result.ok:
            logger.error("Failed to cache converted image '%s': %s", key, result.error)
        return result.ok
