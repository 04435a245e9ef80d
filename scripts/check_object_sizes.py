import os
import sys
from dotenv import load_dotenv

dotenv_path = os.path.join(os.path.dirname(__file__), '..', '.env')
load_dotenv(dotenv_path=dotenv_path)

from solar_gallery.core.blob_store import MinioBlobStore
from solar_gallery.core.config import settings
from solar_gallery.core.results import StoreResult
from solar_gallery.utils.content_types import is_heic_filename


def _describe(result) -> str:
    if not result.ok:
        return f"error: {result.error}"
    return f"{len(result.value)} bytes"


def main() -> int:
    """Reports how large each HEIC object is through both transfer paths, flagging truncated payloads."""
    try:
        store = MinioBlobStore.from_settings(ensure_bucket=False)
    except Exception as e:
        print(f"Fatal: could not create MinIO client: {e}")
        return 1

    listed = store.list_objects()
    if not listed.ok:
        print(f"List failed: {listed.error}")
        return 1

    heic_objects = [obj for obj in listed.value if is_heic_filename(obj.name)]
    print(f"Found {len(listed.value)} objects in bucket, {len(heic_objects)} HEIC")

    truncated = 0
    for obj in heic_objects:
        by_bytes = store.download_bytes(obj.name)
        streamed = store.download_stream(obj.name)
        if streamed.ok:
            try:
                streamed = StoreResult.success(b"".join(streamed.value))
            except Exception as e:
                streamed = StoreResult.failure(f"stream interrupted: {e}")

        print(f"\nObject: {obj.name} (listed size {obj.size} bytes)")
        print(f"  byte download:   {_describe(by_bytes)}")
        print(f"  stream download: {_describe(streamed)}")

        floor = settings.DOWNLOAD_MIN_VALID_BYTES
        if by_bytes.ok and len(by_bytes.value) < floor:
            truncated += 1
            print(f"  PROBLEM: byte download returned fewer than {floor} bytes")

    print(f"\n{truncated} of {len(heic_objects)} HEIC objects truncated on the byte-download path.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
