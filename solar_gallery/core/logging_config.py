import logging

from .config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

def setup_logging(level: str = None) -> None:
    """Configures root logging once per process (API server, Celery worker or script)."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # MinIO's urllib3 pool is chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
