"""
File Transfer Endpoints

Raw-body upload into the storage root and streamed download back out.

@.architecture
Incoming: api/router.py, HTTP clients (POST/GET) --- {raw request body, ?filename= query parameter}
Processing: upload_file(), download_file() --- {7 jobs: dependency_injection, error_handling, filename_validation, path_validation, recording, streaming_read, streaming_write}
Outgoing: data/storage/local.py, HTTP clients --- {file writes, UploadResponse JSON, streamed file body with Content-Length/Content-Disposition}
"""

from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse

from api.dependencies import get_storage, setup_request_context
from api.schemas.files import UploadResponse
from core.streaming import TransferTracker, content_disposition, format_bytes
from data.storage import LocalFileStorage
from monitoring import get_logger
from security.sanitization import ValidationError

logger = get_logger(__name__)
router = APIRouter(tags=["files"])


# =============================================================================
# Upload
# =============================================================================

@router.post(
    "/upload",
    response_model=UploadResponse,
    summary="Upload file",
    description="Stream the raw request body into the storage root under `filename`"
)
async def upload_file(
    request: Request,
    filename: Optional[str] = Query(default=None, description="Target file name; directories are stripped"),
    storage: LocalFileStorage = Depends(get_storage),
    context: dict = Depends(setup_request_context)
) -> UploadResponse:
    """
    Upload a file as a raw (non-multipart) body.

    An existing file with the same name is overwritten.
    """
    logger.info(f"[UPLOAD] Request received from {context['client']}")

    if filename is None or not filename.strip():
        logger.warning("[UPLOAD] Rejected: missing filename parameter")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing filename query parameter"
        )

    try:
        safe_filename, target_file = storage.resolve_upload_path(filename)
    except ValidationError as e:
        logger.warning(f"[UPLOAD] Rejected: invalid filename {filename!r} ({e})")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid filename"
        )

    logger.info(f"[UPLOAD] Starting upload of '{safe_filename}' to {target_file}")

    with TransferTracker("upload", f"'{safe_filename}'") as tracker:
        tracker.bytes_transferred = await storage.write_stream(target_file, request.stream())

    bytes_written = tracker.bytes_transferred
    return UploadResponse(
        filename=safe_filename,
        size_bytes=bytes_written,
        message=f"Uploaded {safe_filename} ({bytes_written} bytes)"
    )


# =============================================================================
# Download
# =============================================================================

async def _stream_file(storage: LocalFileStorage, path: Path) -> AsyncIterator[bytes]:
    with TransferTracker("download", f"'{path.name}'") as tracker:
        async for chunk in storage.iter_file(path):
            tracker.bytes_transferred += len(chunk)
            yield chunk


@router.get(
    "/download",
    summary="Download file",
    description="Stream a previously uploaded file",
    response_class=StreamingResponse
)
async def download_file(
    filename: Optional[str] = Query(default=None, description="Name of a file in the storage root"),
    storage: LocalFileStorage = Depends(get_storage),
    context: dict = Depends(setup_request_context)
) -> StreamingResponse:
    """
    Download a stored file.

    Returns 404 for names that are absent, not regular files, or that
    resolve outside the storage root.
    """
    logger.info(f"[DOWNLOAD] Request received from {context['client']}")

    if filename is None or not filename.strip():
        logger.warning("[DOWNLOAD] Rejected: missing filename parameter")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing filename query parameter"
        )

    try:
        requested_file = storage.resolve_download_path(filename)
        file_size = storage.file_size(requested_file)
    except (ValidationError, OSError):
        logger.warning(f"[DOWNLOAD] Rejected: file not found {filename!r}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found"
        )

    logger.info(f"[DOWNLOAD] Starting download of '{requested_file.name}' ({format_bytes(file_size)})")

    return StreamingResponse(
        _stream_file(storage, requested_file),
        media_type=storage.guess_content_type(requested_file),
        headers={
            "Content-Length": str(file_size),
            "Content-Disposition": content_disposition(requested_file.name),
        }
    )
