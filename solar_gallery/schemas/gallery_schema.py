from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional

class GalleryItem(BaseModel):
    """
    One displayable gallery entry. Serialized with camelCase keys for the web client.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    size: int
    content_type: str
    time_created: str # ISO-8601
    url: str
    # Only set for HEIC/HEIF entries: points at the on-demand JPEG conversion endpoint
    display_url: Optional[str] = None

class GalleryListing(BaseModel):
    images: List[GalleryItem] = Field(default_factory=list)
    videos: List[GalleryItem] = Field(default_factory=list)

class SyncDispatchResponse(BaseModel):
    message: str
    task_id: str

class ErrorResponse(BaseModel):
    detail: str
