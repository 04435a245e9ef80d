from fastapi import Depends, Header, HTTPException, Request, status
from typing import Optional

from solar_gallery.core.config import settings
from solar_gallery.services.web_image_service import WebImageService

async def verify_preshared_token(x_auth_token: Optional[str] = Header(None, alias="X-Auth-Token")):
    """
    Dependency to verify a preshared token in the X-Auth-Token header.
    """
    if not x_auth_token or x_auth_token != settings.API_PRESHARED_AUTH_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API token. Please include a valid X-Auth-Token header.",
        )

def get_blob_store(request: Request):
    """The process-wide blob store built during application startup."""
    store = getattr(request.app.state, "blob_store", None)
    if store is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Object storage is not available.")
    return store

def get_web_image_service(store=Depends(get_blob_store)) -> WebImageService:
    return WebImageService(store)
