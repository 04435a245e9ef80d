from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings
import logging
import os

logger = logging.getLogger(__name__)

# Create the 'instance' directory if it doesn't exist and using SQLite in instance/
if "sqlite://" in settings.DATABASE_URL and "/instance/" in settings.DATABASE_URL:
    # Assuming this db.py file is in solar_gallery/core/
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
    instance_path = os.path.join(project_root, "instance")
    os.makedirs(instance_path, exist_ok=True)

    # Relative SQLite paths are resolved against the project root
    if settings.DATABASE_URL.startswith("sqlite:///./"):
        db_file_path = settings.DATABASE_URL.replace("sqlite:///./", "")
        SQLALCHEMY_DATABASE_URL = f"sqlite:///{os.path.join(project_root, db_file_path)}"
    else:
        SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL
else:
    SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# SQLite connections are shared with executor threads used by async endpoints
engine_args = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    engine_args["connect_args"] = {"check_same_thread": False}

engine = create_engine(SQLALCHEMY_DATABASE_URL, **engine_args)

# Create a session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for declarative models
Base = declarative_base()

# Dependency to get DB session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def create_db_tables():
    """Creates all tables defined by models inheriting from Base."""
    # Models must be imported so they are registered with Base.metadata
    from solar_gallery.models.gallery_file import GalleryFile
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created (if not exist) for URL: %s", SQLALCHEMY_DATABASE_URL)
