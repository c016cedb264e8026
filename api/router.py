"""
API Router

Static routing table: every path the server answers is registered here.

@.architecture
Incoming: app.py, api/endpoints/*.py --- {app.include_router() call, endpoint router instances}
Processing: api_router.include_router() for each endpoint module --- {1 job: router_aggregation}
Outgoing: app.py --- {APIRouter serving /upload, /download, /generate, /health, /metrics}
"""

from fastapi import APIRouter

from .endpoints import (
    files_router,
    generate_router,
    health_router,
)

api_router = APIRouter()

# /upload, /download
api_router.include_router(files_router)

# /generate
api_router.include_router(generate_router)

# /health, /metrics
api_router.include_router(health_router)
