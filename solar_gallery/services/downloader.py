import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from solar_gallery.core.config import settings
from solar_gallery.core.results import StoreResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadStrategy:
    name: str
    fetch: Callable[[str], StoreResult]


class ResilientDownloader:
    """
    Downloads an object by trying transfer strategies in order.

    The byte-array path of the store has been seen returning near-empty payloads
    for some large objects, so every strategy result must pass the same check:
    no error and at least ``min_valid_bytes`` of data. The streaming path is a
    structurally different transfer and serves as the fallback.
    """

    def __init__(self, store, min_valid_bytes: Optional[int] = None,
                 strategies: Optional[List[DownloadStrategy]] = None):
        self.store = store
        self.min_valid_bytes = settings.DOWNLOAD_MIN_VALID_BYTES if min_valid_bytes is None else min_valid_bytes
        self.strategies = strategies or [
            DownloadStrategy("bytes", self._fetch_bytes),
            DownloadStrategy("stream", self._fetch_stream),
        ]

    def _fetch_bytes(self, key: str) -> StoreResult:
        return self.store.download_bytes(key)

    def _fetch_stream(self, key: str) -> StoreResult:
        result = self.store.download_stream(key)
        if not result.ok:
            return result
        return StoreResult.success(b"".join(result.value))

    def is_valid(self, result: StoreResult) -> bool:
        return result.ok and result.value is not None and len(result.value) >= self.min_valid_bytes

    def download(self, key: str) -> StoreResult:
        attempts = []
        for strategy in self.strategies:
            try:
                result = strategy.fetch(key)
            except Exception as e:
                result = StoreResult.failure(f"{type(e).__name__}: {e}")

            if self.is_valid(result):
                if attempts:
                    logger.warning("Downloaded '%s' via fallback '%s' after: %s", key, strategy.name, "; ".join(attempts))
                logger.info("Downloaded '%s' via '%s': %d bytes", key, strategy.name, len(result.value))
                return StoreResult.success(result.value)

            if result.ok:
                size = len(result.value) if result.value is not None else 0
                attempts.append(f"{strategy.name}: {size} bytes (below {self.min_valid_bytes}-byte floor)")
            else:
                attempts.append(f"{strategy.name}: {result.error}")

        message = f"All download methods failed for '{key}': " + "; ".join(attempts)
        logger.error(message)
        return StoreResult.failure(message)
