"""Main FastAPI application."""

import logging
import re
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from .api import folders_router
from .api.deps import get_storage
from .core.config import settings, ConfigurationError, Environment
from .core.logging_config import setup_logging
from .database import engine, Base, get_db, DATABASE_URL, is_postgresql
from .exceptions import LibraryException
from .middleware.exception_handler import library_exception_handler
from .middleware.request_context import RequestContextMiddleware
from .services.folder_tree_cache import FolderTreeCache
from .storage.physical_tree import PhysicalTreeAdapter

# Setup logging first
setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def _mask_url(url: str) -> str:
    """Mask password in database URL for safe logging."""
    return re.sub(r'://([^:]+):([^@]+)@', r'://\1:***@', url)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle for the material library API."""
    logger.info(f"Environment: {settings.environment.value}")
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical(f"STARTUP BLOCKED: {e}")
        raise SystemExit(1) from e

    logger.info(f"Connecting to database: {_mask_url(DATABASE_URL)}")
    Base.metadata.create_all(bind=engine)

    if not settings.storage_root:
        logger.warning(
            "STORAGE_ROOT is not configured. Folder reads work, "
            "but create/rename/move will fail until the drive is set up."
        )
    else:
        storage = PhysicalTreeAdapter(settings.storage_root)
        # A missing drive must not keep the API down; mutations will report it.
        if not storage.dir_exists(storage.root):
            logger.warning(
                "Storage root is not reachable",
                extra={"storage_root": settings.storage_root},
            )

    if settings.environment == Environment.DEVELOPMENT and not settings.folder_cache_track_updates:
        logger.info(
            "Folder tree cache keyed on MAX(created_date): renames and moves "
            "appear in the tree after the next folder creation. "
            "Set FOLDER_CACHE_TRACK_UPDATES=true to refresh on every change."
        )

    yield


def create_app() -> FastAPI:
    """Build an application instance with its own folder tree cache."""
    app = FastAPI(
        title="Material Library API",
        description=(
            "Folder and material storage for the knowledge base. Keeps the folder "
            "index and the material location pointers in step with the directory "
            "tree on the shared drive."
        ),
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.folder_cache = FolderTreeCache(track_updates=settings.folder_cache_track_updates)
    app.state.started_at = time.monotonic()

    # Middleware stack, outermost first: CORS wraps request context.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(LibraryException, library_exception_handler)

    app.include_router(folders_router)

    @app.get("/")
    def root():
        """Root endpoint."""
        return {
            "name": "Material Library API",
            "version": API_VERSION,
            "status": "running"
        }

    @app.get("/health")
    def health_check(
        db: Session = Depends(get_db),
        storage: PhysicalTreeAdapter = Depends(get_storage),
    ):
        """Health check returning database and storage status, uptime, and folder count.

        Never raises; reports a degraded status instead.
        """
        db_status = "ok"
        folder_count = 0
        try:
            db.execute(text("SELECT 1"))
            folder_count = db.execute(text("SELECT COUNT(*) FROM folders")).scalar() or 0
        except Exception:
            logger.exception("Health check database probe failed")
            db_status = "error"

        if not storage.is_configured:
            storage_status = "not_configured"
        elif storage.dir_exists(storage.root):
            storage_status = "ok"
        else:
            storage_status = "unreachable"

        healthy = db_status == "ok" and storage_status == "ok"
        return {
            "status": "healthy" if healthy else "degraded",
            "db": db_status,
            "storage": storage_status,
            "uptime_seconds": round(time.monotonic() - app.state.started_at),
            "version": API_VERSION,
            "folder_count": folder_count,
        }

    db_type = "PostgreSQL" if is_postgresql() else "SQLite"
    logger.info(
        "Material Library API created | env=%s | db=%s | storage=%s | cache_tracks_updates=%s",
        settings.environment.value,
        db_type,
        settings.storage_root or "<not configured>",
        settings.folder_cache_track_updates,
    )
    return app


app = create_app()
