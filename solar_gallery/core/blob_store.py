import io
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

from minio import Minio
from minio.error import S3Error

from .config import settings
from .results import StoreResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    name: str
    size: int

    @property
    def is_directory_marker(self) -> bool:
        return self.name.endswith("/")


class MinioBlobStore:
    """
    Key/value blob store backed by a single MinIO client.

    The client holds the connection pool, so one instance is built per process
    (see ``from_settings``) and handed to every service that needs storage.
    All operations report transport errors as failed ``StoreResult`` values.
    """

    def __init__(self, client: Minio, bucket_name: str):
        self.client = client
        self.bucket_name = bucket_name

    @classmethod
    def from_settings(cls, ensure_bucket: bool = True) -> "MinioBlobStore":
        client = Minio(
            settings.MINIO_ENDPOINT,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_USE_SSL
        )
        logger.info("MinIO client initialized for endpoint: %s", settings.MINIO_ENDPOINT)
        store = cls(client, settings.MINIO_BUCKET_NAME)
        if ensure_bucket:
            store.ensure_bucket_exists()
        return store

    def ensure_bucket_exists(self) -> None:
        try:
            if not self.client.bucket_exists(self.bucket_name):
                self.client.make_bucket(self.bucket_name)
                logger.info("MinIO bucket '%s' created successfully.", self.bucket_name)
            else:
                logger.info("MinIO bucket '%s' already exists.", self.bucket_name)
        except S3Error as e:
            logger.error("Error checking or creating MinIO bucket '%s': %s", self.bucket_name, e)
            raise # Re-raise to indicate a critical failure in setup

    def list_objects(self, prefix: Optional[str] = None) -> StoreResult:
        try:
            objects: List[StoredObject] = [
                StoredObject(name=obj.object_name, size=obj.size or 0)
                for obj in self.client.list_objects(self.bucket_name, prefix=prefix, recursive=True)
            ]
        except Exception as e:
            logger.error("Failed to list objects in bucket '%s': %s", self.bucket_name, e)
            return StoreResult.failure(f"list failed: {e}")
        return StoreResult.success(objects)

    def download_bytes(self, key: str) -> StoreResult:
        response = None
        try:
            response = self.client.get_object(self.bucket_name, key)
            data = response.read()
        except Exception as e:
            logger.warning("Byte download failed for '%s': %s", key, e)
            return StoreResult.failure(f"download failed: {e}")
        finally:
            _release(response)
        return StoreResult.success(data)

    def download_stream(self, key: str, chunk_size: int = None) -> StoreResult:
        try:
            response = self.client.get_object(self.bucket_name, key)
        except Exception as e:
            logger.warning("Stream download failed for '%s': %s", key, e)
            return StoreResult.failure(f"stream failed: {e}")
        return StoreResult.success(_iter_chunks(response, chunk_size or settings.DOWNLOAD_STREAM_CHUNK_SIZE))

    def upload_bytes(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> StoreResult:
        try:
            self.client.put_object(
                self.bucket_name,
                key,
                io.BytesIO(data),
                length=len(data),
                content_type=content_type
            )
        except Exception as e:
            logger.error("Upload of '%s' failed: %s", key, e)
            return StoreResult.failure(f"upload failed: {e}")
        logger.info("Uploaded '%s' (%d bytes) to bucket '%s'.", key, len(data), self.bucket_name)
        return StoreResult.success()

    def delete(self, key: str) -> StoreResult:
        try:
            self.client.remove_object(self.bucket_name, key)
        except Exception as e:
            logger.error("Delete of '%s' failed: %s", key, e)
            return StoreResult.failure(f"delete failed: {e}")
        return StoreResult.success()

    def exists(self, key: str) -> bool:
        try:
            self.client.stat_object(self.bucket_name, key)
        except Exception:
            # A failed probe (missing key or transport error) means "not available"
            return False
        return True


def _iter_chunks(response, chunk_size: int) -> Iterator[bytes]:
    try:
        for chunk in response.stream(chunk_size):
            yield chunk
    finally:
        _release(response)


def _release(response) -> None:
    if response is None:
        return
    response.close()
    response.release_conn()
