import asyncio
import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from solar_gallery.api.dependencies import get_web_image_service, verify_preshared_token
from solar_gallery.core.config import settings
from solar_gallery.core.db import get_db
from solar_gallery.core.errors import ConversionFailedError, ObjectNotFoundError
from solar_gallery.core.limiter_config import limiter
from solar_gallery.schemas.gallery_schema import ErrorResponse, GalleryListing, SyncDispatchResponse
from solar_gallery.services.gallery_service import GalleryQueryService
from solar_gallery.services.web_image_service import RenderedObject, WebImageService
from solar_gallery.utils.content_types import resolve_content_type
from celery_worker.tasks.gallery_tasks import sync_gallery_catalog_task

logger = logging.getLogger(__name__)

gallery_router = APIRouter(prefix="/api/gallery")

objects_router = APIRouter(
    prefix=settings.API_OBJECTS_PREFIX,
    responses={
        status.HTTP_404_NOT_FOUND: {"description": "Object not found", "model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"description": "Conversion or server error", "model": ErrorResponse},
    }
)

local_gallery_router = APIRouter(prefix=settings.LOCAL_GALLERY_URL_PREFIX.rstrip("/"))

LOCAL_MEDIA_TYPES = {"images", "videos"}


def _binary_response(rendered: RenderedObject) -> Response:
    return Response(
        content=rendered.data,
        media_type=rendered.content_type,
        headers={"Cache-Control": rendered.cache_control},
    )


@gallery_router.get(
    "",
    response_model=GalleryListing,
    response_model_exclude_none=True,
    summary="List gallery images and videos",
    description="Reads the gallery catalog. HEIC/HEIF entries carry a displayUrl pointing at the JPEG conversion endpoint."
)
@limiter.limit(settings.API_GALLERY_RATE_LIMIT)
async def list_gallery(request: Request, db: Session = Depends(get_db)):
    return GalleryQueryService(db).list_gallery_items()


@gallery_router.post(
    "/sync",
    response_model=SyncDispatchResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Reconcile the gallery catalog with object storage",
    dependencies=[Depends(verify_preshared_token)]
)
@limiter.limit(settings.API_SYNC_RATE_LIMIT)
async def dispatch_gallery_sync(request: Request):
    try:
        async_result = sync_gallery_catalog_task.apply_async(queue="maintenance_queue")
    except Exception as e:
        logger.error("Failed to dispatch gallery sync task: %s", e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Task queue is not available.")
    return SyncDispatchResponse(message="Gallery sync task submitted.", task_id=async_result.id)


@objects_router.get("/web/{object_key:path}", summary="Serve an object in a browser-displayable format")
@limiter.limit(settings.API_OBJECT_RATE_LIMIT)
async def get_web_object(
    request: Request,
    object_key: str,
    quality: Optional[int] = Query(None, ge=0, le=100, description="JPEG quality for HEIC/HEIF conversion"),
    service: WebImageService = Depends(get_web_image_service)
):
    loop = asyncio.get_running_loop()
    try:
        rendered = await loop.run_in_executor(None, service.render_for_web, object_key, quality)
    except ObjectNotFoundError as e:
        logger.warning("Web object not found: %s", e)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Original image not found")
    except ConversionFailedError as e:
        logger.error("%s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Image conversion failed")
    return _binary_response(rendered)


@objects_router.get("/{object_key:path}", summary="Serve an object as stored")
@limiter.limit(settings.API_OBJECT_RATE_LIMIT)
async def get_object(
    request: Request,
    object_key: str,
    service: WebImageService = Depends(get_web_image_service)
):
    loop = asyncio.get_running_loop()
    try:
        rendered = await loop.run_in_executor(None, service.fetch_original, object_key)
    except ObjectNotFoundError as e:
        logger.warning("Object not found: %s", e)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
    return _binary_response(rendered)


@local_gallery_router.get("/{media_type}/{filename}", summary="Serve a locally materialized gallery file")
async def get_local_gallery_file(media_type: str, filename: str):
    if media_type not in LOCAL_MEDIA_TYPES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid gallery type")
    if filename != os.path.basename(filename) or filename.startswith("."):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    file_path = os.path.join(settings.LOCAL_PUBLIC_DIR, "gallery", media_type, filename)
    if not os.path.isfile(file_path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    return FileResponse(
        file_path,
        media_type=resolve_content_type(filename),
        headers={"Cache-Control": settings.LOCAL_GALLERY_CACHE_CONTROL},
    )
