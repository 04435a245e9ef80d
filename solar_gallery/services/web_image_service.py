import logging
from dataclasses import dataclass
from typing import Callable, Optional

from solar_gallery.core.config import settings
from solar_gallery.core.errors import ConversionFailedError, ObjectNotFoundError
from solar_gallery.services.converted_cache import CONVERTED_CONTENT_TYPE, ConvertedImageCache
from solar_gallery.services.downloader import ResilientDownloader
from solar_gallery.services.heic_converter import convert_heic_to_jpeg
from solar_gallery.utils.content_types import is_heic_content_type, resolve_content_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedObject:
    data: bytes
    content_type: str
    cache_control: str
    from_cache: bool = False


class WebImageService:
    """
    Materializes browser-displayable bytes for stored objects.

    HEIC/HEIF originals are converted to JPEG on first request and the result is
    cached in the blob store. Concurrent first requests may both convert and
    upload the same key; the renditions are identical, so the last write wins.
    """

    def __init__(self, store, downloader: Optional[ResilientDownloader] = None,
                 cache: Optional[ConvertedImageCache] = None,
                 converter: Callable[..., Optional[bytes]] = convert_heic_to_jpeg):
        self.store = store
        self.downloader = downloader or ResilientDownloader(store)
        self.cache = cache or ConvertedImageCache(store, self.downloader)
        self.converter = converter

    def fetch_original(self, object_key: str) -> RenderedObject:
        result = self.downloader.download(object_key)
        if not result.ok:
            raise ObjectNotFoundError(object_key, result.error)
        return RenderedObject(
            data=result.value,
            content_type=resolve_content_type(object_key),
            cache_control=settings.OBJECT_CACHE_CONTROL,
        )

    def render_for_web(self, object_key: str, quality: int = None) -> RenderedObject:
        if quality is None:
            quality = settings.HEIC_JPEG_QUALITY
        if not is_heic_content_type(resolve_content_type(object_key)):
            return self.fetch_original(object_key)

        cache_key = self.cache.cache_key_for(object_key, quality)
        if self.cache.exists(cache_key):
            cached = self.cache.load(cache_key)
            if cached is not None:
                logger.info("Serving cached rendition '%s' for '%s'", cache_key, object_key)
                return self._jpeg(cached, from_cache=True)
            logger.warning("Cache key '%s' exists but is unreadable, converting again", cache_key)

        logger.info("Converting HEIC image: %s", object_key)
        original = self.downloader.download(object_key)
        if not original.ok:
            logger.error("Failed to download HEIC file '%s': %s", object_key, original.error)
            raise ObjectNotFoundError(object_key, original.error)

        jpeg_bytes = self.converter(original.value, quality)
        if jpeg_bytes is None:
            logger.error("HEIC conversion failed for: %s", object_key)
            raise ConversionFailedError(object_key)

        # Best effort: a failed cache write still serves the fresh rendition
        self.cache.store_rendition(cache_key, jpeg_bytes)
        return self._jpeg(jpeg_bytes, from_cache=False)

    def get_or_convert(self, object_key: str, quality: int = None) -> bytes:
        """Returns JPEG bytes for a HEIC original, reusing the cached rendition when present."""
        return self.render_for_web(object_key, quality).data

    @staticmethod
    def _jpeg(data: bytes, from_cache: bool) -> RenderedObject:
        return RenderedObject(
            data=data,
            content_type=CONVERTED_CONTENT_TYPE,
            cache_control=settings.CONVERTED_IMAGE_CACHE_CONTROL,
            from_cache=from_cache,
        )
