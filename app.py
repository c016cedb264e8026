"""
FastAPI Application Factory

Creates and configures the FastAPI application with:
- Routing table (upload, download, generate, health, metrics)
- Error handling (plain-text handlers + catch-all middleware)
- Lifecycle logging (startup/shutdown)

@.architecture
Incoming: core/server.py, main.py, config/settings.py, api/router.py, api/middleware/*.py --- {Settings object, LocalFileStorage, APIRouter instance, middleware constructors}
Processing: create_app(), lifespan() --- {5 jobs: application_creation, dependency_wiring, lifecycle_management, middleware_registration, routing_registration}
Outgoing: core/server.py, uvicorn --- {FastAPI application instance}
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from api.middleware import ErrorHandlerMiddleware, register_exception_handlers
from api.router import api_router
from config.settings import Settings, get_settings
from data.storage import LocalFileStorage
from monitoring import get_logger

logger = get_logger(__name__)


def create_app(
    storage: Optional[LocalFileStorage] = None,
    settings: Optional[Settings] = None
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        storage: Storage root to serve (built from settings when omitted)
        settings: Application settings (loaded from env/TOML when omitted)

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()
    if storage is None:
        if settings.storage.path is None:
            raise ValueError("No storage directory configured")
        storage = LocalFileStorage(settings.storage.path, chunk_size=settings.storage.chunk_size)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=== Application Startup ===")
        logger.info(f"Storage directory: {storage.base_dir}")
        yield
        logger.info("=== Application Shutdown ===")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Streams raw uploads to disk, files back to clients, and random payloads of any size",
        redirect_slashes=False,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.storage = storage
    app.state.started_at = time.time()

    # ==========================================================================
    # Error Handling
    # ==========================================================================

    register_exception_handlers(app)

    app.add_middleware(ErrorHandlerMiddleware)

    # ==========================================================================
    # Routes
    # ==========================================================================

    app.include_router(api_router)

    return app
