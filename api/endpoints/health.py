"""
Health and Metrics Endpoints

@.architecture
Incoming: api/router.py, Load balancers, Prometheus --- {HTTP GET /health, /metrics}
Processing: health_check(), metrics() --- {2 jobs: health_monitoring, metrics_export}
Outgoing: monitoring/metrics.py, HTTP clients --- {HealthResponse JSON, Prometheus text}
"""

import time

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from api.dependencies import get_app_settings, get_storage
from api.schemas.health import HealthResponse
from config.settings import Settings
from data.storage import LocalFileStorage
from monitoring import get_registry

router = APIRouter(tags=["health"])

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Simple health check",
    description="Quick health check endpoint for load balancers and monitoring"
)
async def health_check(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    storage: LocalFileStorage = Depends(get_storage)
) -> HealthResponse:
    stats = storage.get_storage_stats()
    return HealthResponse(
        version=settings.app_version,
        uptime_seconds=time.time() - request.app.state.started_at,
        storage_root=str(storage.base_dir),
        total_files=stats["total_files"],
        total_size_bytes=stats["total_size_bytes"],
    )


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    response_class=PlainTextResponse
)
async def metrics(settings: Settings = Depends(get_app_settings)) -> PlainTextResponse:
    if not settings.monitoring.metrics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return PlainTextResponse(get_registry().export_prometheus(), media_type=PROMETHEUS_CONTENT_TYPE)
