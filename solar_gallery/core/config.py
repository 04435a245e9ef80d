from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # FastAPI App settings
    APP_NAME: str = "Solar Gallery API"
    APP_VERSION: str = "0.1.0"
    DEBUG_MODE: bool = False
    SERVER_HOST: str = "127.0.0.1" # Host for the Uvicorn server
    SERVER_PORT: int = 8000       # Port for the Uvicorn server

    # Logging
    LOG_LEVEL: str = "INFO"

    # MinIO Configuration
    MINIO_ENDPOINT: str = "localhost:9000"
    MINIO_ACCESS_KEY: str = "YOUR_MINIO_ACCESS_KEY"
    MINIO_SECRET_KEY: str = "YOUR_MINIO_SECRET_KEY"
    MINIO_BUCKET_NAME: str = "gallery"
    MINIO_USE_SSL: bool = False

    # SQL Database Configuration (SQLAlchemy)
    DATABASE_URL: str = "sqlite:///./instance/gallery.db" # For sync SQLAlchemy

    # Downloads
    # Payloads shorter than this are treated as transport glitches, never as real media.
    # Heuristic taken from observed truncation on the byte-array path, not a storage contract.
    DOWNLOAD_MIN_VALID_BYTES: int = 100
    DOWNLOAD_STREAM_CHUNK_SIZE: int = 64 * 1024

    # HEIC conversion
    HEIC_JPEG_QUALITY: int = 85

    # URLs and local artifacts
    API_OBJECTS_PREFIX: str = "/api/objects"
    LOCAL_PUBLIC_DIR: str = "public"
    LOCAL_GALLERY_URL_PREFIX: str = "/gallery/"

    # Cache-Control headers
    CONVERTED_IMAGE_CACHE_CONTROL: str = "public, max-age=31536000, immutable"
    OBJECT_CACHE_CONTROL: str = "public, max-age=3600"
    LOCAL_GALLERY_CACHE_CONTROL: str = "public, max-age=86400"

    # Celery Configuration
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"
    APP_TIMEZONE: str = "UTC"

    # Celery Beat Schedules Configuration (intervals in minutes)
    BEAT_SCHEDULE_GALLERY_SYNC_MINUTES: int = 60
    BEAT_SCHEDULE_ACCESSIBILITY_AUDIT_HOURS: int = 24

    # API Preshared Authentication Token
    API_PRESHARED_AUTH_TOKEN: str = "YOUR_SECRET_TOKEN_NEEDS_TO_BE_SET_IN_ENV" # IMPORTANT: Override in .env with a strong secret

    # API Rate Limiting
    API_GALLERY_RATE_LIMIT: str = "120/minute"
    API_OBJECT_RATE_LIMIT: str = "600/minute"
    API_SYNC_RATE_LIMIT: str = "5/minute"

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'

settings = Settings()
