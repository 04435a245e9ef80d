from typing import Optional

DEFAULT_CONTENT_TYPE = "application/octet-stream"

IMAGE_CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "heic": "image/heic",
    "heif": "image/heif",
}

VIDEO_CONTENT_TYPES = {
    "mp4": "video/mp4",
    "webm": "video/webm",
    "ogg": "video/ogg",
    "avi": "video/avi",
    "mov": "video/quicktime",
    "wmv": "video/x-ms-wmv",
    "flv": "video/x-flv",
    "mkv": "video/x-matroska",
}

HEIC_EXTENSIONS = {"heic", "heif"}
HEIC_CONTENT_TYPES = {"image/heic", "image/heif"}


def file_extension(filename: str) -> str:
    """Lower-cased text after the last dot of the base name, or "" when there is none."""
    base_name = (filename or "").rsplit("/", 1)[-1]
    if "." not in base_name:
        return ""
    return base_name.rsplit(".", 1)[1].lower()


def resolve_content_type(filename: str) -> str:
    ext = file_extension(filename)
    return IMAGE_CONTENT_TYPES.get(ext) or VIDEO_CONTENT_TYPES.get(ext) or DEFAULT_CONTENT_TYPE


def classify_media_type(filename: str) -> Optional[str]:
    """Returns "image", "video" or None for extensions the gallery does not handle."""
    ext = file_extension(filename)
    if ext in IMAGE_CONTENT_TYPES:
        return "image"
    if ext in VIDEO_CONTENT_TYPES:
        return "video"
    return None


def is_heic_filename(filename: str) -> bool:
    return file_extension(filename) in HEIC_EXTENSIONS


def is_heic_content_type(content_type: Optional[str]) -> bool:
    return (content_type or "").lower() in HEIC_CONTENT_TYPES
