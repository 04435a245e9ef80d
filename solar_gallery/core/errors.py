class GalleryError(Exception):
    """Base class for gallery pipeline errors surfaced to the HTTP layer."""


class ObjectNotFoundError(GalleryError):
    """The requested object could not be downloaded from the blob store."""

    def __init__(self, object_key: str, reason: str = None):
        self.object_key = object_key
        self.reason = reason
        message = f"Object '{object_key}' not found"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ConversionFailedError(GalleryError):
    """The original was downloaded but could not be converted for web display."""

    def __init__(self, object_key: str):
        self.object_key = object_key
        super().__init__(f"Image conversion failed for '{object_key}'")
