"""
API Dependencies

FastAPI dependency injection functions for:
- Settings access
- Storage access
- Request context setup

The settings and storage objects are owned by the application instance
(``app.state``), so several servers can live in one process.

@.architecture
Incoming: app.py (create_app), api/endpoints/*.py --- {app.state populated at creation, Depends() injections from endpoints}
Processing: get_app_settings(), get_storage(), setup_request_context() --- {3 jobs: context_setup, dependency_injection, client_identification}
Outgoing: api/endpoints/*.py --- {Settings instance, LocalFileStorage instance, request context dict}
"""

import uuid
from typing import Optional

from fastapi import Header, Request

from config.settings import Settings
from data.storage import LocalFileStorage
from monitoring import set_request_context


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_storage(request: Request) -> LocalFileStorage:
    """Storage root the application serves."""
    return request.app.state.storage


def client_address(request: Request) -> str:
    """Remote ``host:port`` of the caller, or ``unknown`` when the transport has none."""
    if request.client is None:
        return "unknown"
    return f"{request.client.host}:{request.client.port}"


async def setup_request_context(
    request: Request,
    x_request_id: Optional[str] = Header(None)
) -> dict:
    """
    Setup request context for logging.

    Args:
        request: FastAPI request object
        x_request_id: Optional request ID from header

    Returns:
        dict: Request context information
    """
    request_id = x_request_id or str(uuid.uuid4())
    client = client_address(request)

    set_request_context(request_id=request_id, client=client)

    request.state.request_id = request_id

    return {
        "request_id": request_id,
        "client": client,
        "method": request.method,
        "path": request.url.path
    }
