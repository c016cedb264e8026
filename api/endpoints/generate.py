"""
Generate Endpoint

Streams a pseudo-random payload of the requested size. Nothing is stored.

@.architecture
Incoming: api/router.py, HTTP clients (GET) --- {?sizeMB= query parameter}
Processing: generate_data(), parse_size_mb(), _stream_random() --- {4 jobs: chunk_generation, parameter_validation, progress_logging, recording}
Outgoing: core/streaming.py, HTTP clients --- {streamed application/octet-stream body of exactly sizeMB MiB}
"""

import re
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from api.dependencies import get_app_settings, setup_request_context
from config.settings import Settings
from core.streaming import (
    BYTES_PER_MB,
    PROGRESS_LOG_INTERVAL,
    TransferTracker,
    content_disposition,
    format_bytes,
    generate_random_chunks,
)
from monitoring import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["generate"])

MIN_SIZE_MB = 1
MAX_SIZE_MB = 10_000

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def parse_size_mb(raw: Optional[str]) -> int:
    """
    Validate the ``sizeMB`` parameter.

    Raises:
        HTTPException: 400 if missing, not an integer, or out of range
    """
    if raw is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing sizeMB query parameter"
        )

    if not _INTEGER_RE.fullmatch(raw):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="sizeMB must be a valid integer"
        )

    size_mb = int(raw)
    if size_mb < MIN_SIZE_MB or size_mb > MAX_SIZE_MB:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"sizeMB must be between {MIN_SIZE_MB} and {MAX_SIZE_MB}"
        )
    return size_mb


async def _stream_random(total_bytes: int, chunk_size: int) -> AsyncIterator[bytes]:
    with TransferTracker("generate") as tracker:
        next_progress = PROGRESS_LOG_INTERVAL
        async for chunk in generate_random_chunks(total_bytes, chunk_size):
            tracker.bytes_transferred += len(chunk)
            yield chunk

            if tracker.bytes_transferred >= next_progress and tracker.bytes_transferred < total_bytes:
                percent = tracker.bytes_transferred * 100 // total_bytes
                logger.info(
                    f"[GENERATE] Progress: {format_bytes(tracker.bytes_transferred)} / "
                    f"{format_bytes(total_bytes)} ({percent}%)"
                )
                next_progress += PROGRESS_LOG_INTERVAL


@router.get(
    "/generate",
    summary="Generate random data",
    description="Stream `sizeMB` MiB of pseudo-random bytes",
    response_class=StreamingResponse
)
async def generate_data(
    size_mb: Optional[str] = Query(default=None, alias="sizeMB", description="Payload size in MiB, 1-10000"),
    settings: Settings = Depends(get_app_settings),
    context: dict = Depends(setup_request_context)
) -> StreamingResponse:
    """Generate and stream random bytes without touching the storage root."""
    logger.info(f"[GENERATE] Request received from {context['client']}")

    try:
        size = parse_size_mb(size_mb)
    except HTTPException as e:
        logger.warning(f"[GENERATE] Rejected: {e.detail} (sizeMB={size_mb!r})")
        raise

    total_bytes = size * BYTES_PER_MB
    logger.info(f"[GENERATE] Starting generation of {size} MB ({format_bytes(total_bytes)})")

    return StreamingResponse(
        _stream_random(total_bytes, settings.storage.chunk_size),
        media_type="application/octet-stream",
        headers={
            "Content-Length": str(total_bytes),
            "Content-Disposition": content_disposition(f"generated-{size}MB.bin"),
        }
    )
