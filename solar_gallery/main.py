import asyncio
import logging
import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded

from solar_gallery.core.config import settings
from solar_gallery.core.logging_config import setup_logging
from solar_gallery.core.db import create_db_tables, engine
from solar_gallery.core.blob_store import MinioBlobStore
from solar_gallery.core.limiter_config import limiter
from solar_gallery.api.v1 import gallery_routes

logger = logging.getLogger(__name__)

# Lifespan context manager for startup and shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Starting %s v%s (debug=%s)", settings.APP_NAME, settings.APP_VERSION, settings.DEBUG_MODE)

    # 1. Catalog tables (a migration tool would own this in a larger deployment)
    try:
        create_db_tables()
    except Exception as e:
        logger.error("Database table creation failed: %s", e)

    # 2. The single blob store client for this process, shared by every request
    app.state.blob_store = None
    try:
        app.state.blob_store = MinioBlobStore.from_settings()
    except Exception as e:
        logger.error("MinIO initialization failed, object endpoints will return 503: %s", e)

    # 3. Health check once the server is listening
    async def _perform_startup_healthcheck():
        await asyncio.sleep(1)
        healthcheck_url = f"http://{settings.SERVER_HOST}:{settings.SERVER_PORT}/"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(healthcheck_url)
                if response.status_code == 200:
                    logger.info("Startup health check OK: GET %s", healthcheck_url)
                else:
                    logger.warning("Startup health check: GET %s returned %s", healthcheck_url, response.status_code)
        except httpx.RequestError as exc:
            logger.warning("Startup health check could not reach %s: %s", healthcheck_url, exc)

    healthcheck_task = asyncio.create_task(_perform_startup_healthcheck())

    logger.info("Application startup complete.")
    yield
    # Shutdown events
    healthcheck_task.cancel()
    if hasattr(engine, 'dispose'):
        engine.dispose()
        logger.info("Database connection pool disposed.")
    logger.info("Application shut down.")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG_MODE,
    lifespan=lifespan,
)

# Make the limiter available in the app state
app.state.limiter = limiter

@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429, # HTTP 429 Too Many Requests
        content={"detail": f"Rate limit exceeded: {exc.detail}"}
    )

app.include_router(gallery_routes.gallery_router, tags=["Gallery"])
app.include_router(gallery_routes.objects_router, tags=["Objects"])
app.include_router(gallery_routes.local_gallery_router, tags=["Local gallery"])


@app.get("/", tags=["Root"], summary="API root health check")
async def read_root():
    return {"message": f"Welcome to {settings.APP_NAME} v{settings.APP_VERSION}"}
