"""
HEIC/HEIF to JPEG conversion.

Pillow decodes HEIF containers through the pillow-heif opener registered at
import time. Conversion is deterministic for a given input and quality, so a
result may be cached and recomputed freely.
"""
import io
import logging
from typing import Optional

from PIL import Image
from pillow_heif import register_heif_opener

from solar_gallery.core.config import settings

register_heif_opener()

logger = logging.getLogger(__name__)

HEIC_SIGNATURE_MARKERS = ("hei", "mif1")


def looks_like_heic(data: bytes) -> bool:
    """
    Heuristic check of the ISO-BMFF header: the "ftyp" box type at bytes 4..8
    followed by the major brand at bytes 8..12 ("heic", "heix", "mif1", ...).

    Some valid HEIC variants carry a different brand there, so a mismatch is a
    hint only and never blocks conversion.
    """
    if not data or len(data) < 12:
        return False
    # Bytes 4..8 are always the "ftyp" box type; the brand that identifies HEIC follows it
    signature = data[4:12].decode("latin-1")
    return any(marker in signature for marker in HEIC_SIGNATURE_MARKERS)


def convert_heic_to_jpeg(data: bytes, quality: int = None) -> Optional[bytes]:
    """
    Decodes a HEIC/HEIF buffer and re-encodes it as JPEG.

    Args:
        data: Raw HEIC/HEIF bytes.
        quality: JPEG quality 0-100, defaults to ``settings.HEIC_JPEG_QUALITY``.

    Returns:
        JPEG bytes, or None when the input is empty or cannot be decoded.
    """
    if quality is None:
        quality = settings.HEIC_JPEG_QUALITY
    if not 0 <= quality <= 100:
        raise ValueError(f"JPEG quality must be between 0 and 100, got {quality}")

    if not data:
        logger.error("Empty buffer provided for HEIC conversion")
        return None

    if not looks_like_heic(data):
        logger.warning(
            "Buffer may not be a valid HEIC file (signature: %r), attempting conversion anyway",
            data[4:12]
        )

    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.mode != "RGB":
                img = img.convert("RGB")
            buf = io.BytesIO()
            img.save(buf, format="JPEG", quality=quality)
    except Exception as ex:
        logger.error("HEIC conversion failed (%d input bytes): %s: %s", len(data), type(ex).__name__, ex)
        return None

    jpeg_bytes = buf.getvalue()
    logger.info("HEIC conversion successful: %d -> %d bytes (quality %d)", len(data), len(jpeg_bytes), quality)
    return jpeg_bytes
