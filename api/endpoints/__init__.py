"""
API Endpoints

FastAPI routers for all API endpoints.
"""

from .files import router as files_router
from .generate import router as generate_router
from .health import router as health_router

__all__ = [
    "files_router",
    "generate_router",
    "health_router",
]
