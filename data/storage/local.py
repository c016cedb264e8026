"""
Local File Storage - flat directory of uploaded files

@.architecture
Incoming: core/server.py, api/endpoints/files.py, Local filesystem (base_dir) --- {filename, AsyncIterable[bytes] request body, resolved Path}
Processing: resolve_upload_path(), resolve_download_path(), write_stream(), iter_file(), guess_content_type(), get_storage_stats() --- {6 jobs: path_validation, streaming_write, streaming_read, content_type_detection, directory_management, statistics_collection}
Outgoing: Local filesystem (aiofiles), api/endpoints/files.py --- {Path inside base_dir, int bytes written, AsyncIterator[bytes] file chunks, storage stats dict}

All files live directly under one storage root. Each request resolves its
filename independently; there is no in-memory index. No locking is done:
a download racing an upload of the same name can observe a partially
written file, and concurrent uploads are last-writer-wins.
"""

import logging
import mimetypes
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, Tuple, Union

import aiofiles

from security.sanitization import sanitize_filename, resolve_within

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class LocalFileStorage:
    """
    Local file storage rooted at a single directory.

    Features:
    - Safe path handling (prevents directory traversal)
    - Bounded-memory streaming reads and writes
    - Overwrite on upload
    """

    def __init__(self, base_dir: Union[str, Path], chunk_size: int = 64 * 1024):
        """
        Initialize local file storage.

        Args:
            base_dir: Storage root, created if missing
            chunk_size: Read size used when streaming files out
        """
        self.base_dir = Path(base_dir).expanduser().resolve()
        self.chunk_size = chunk_size
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Create the storage root if it doesn't exist."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Storage directory ensured at {self.base_dir}")

    # =========================================================================
    # PATH RESOLUTION
    # =========================================================================

    def resolve_upload_path(self, filename: str) -> Tuple[str, Path]:
        """
        Map a client-supplied upload name to a target path.

        Returns:
            Tuple of (sanitized base filename, absolute target path)

        Raises:
            ValidationError: If the name is empty or unsafe
            PathTraversalError: If the name would escape the storage root
        """
        safe_name = sanitize_filename(filename)
        return safe_name, resolve_within(self.base_dir, safe_name)

    def resolve_download_path(self, filename: str) -> Path:
        """
        Map a client-supplied download name to an existing regular file.

        Raises:
            ValidationError: If the name cannot form a path
            PathTraversalError: If the name escapes the storage root
            FileNotFoundError: If no regular file exists at that path, or
                the name cannot be looked up (e.g. too long for the OS)
        """
        try:
            path = resolve_within(self.base_dir, filename)
            is_file = path.is_file()
        except OSError as e:
            raise FileNotFoundError(f"File not found: {filename}") from e
        if not is_file:
            raise FileNotFoundError(f"File not found: {filename}")
        return path

    # =========================================================================
    # STREAMING I/O
    # =========================================================================

    async def write_stream(self, path: Path, chunks: AsyncIterable[bytes]) -> int:
        """
        Write an async byte stream to ``path``, replacing any existing file.

        Only the chunk currently being written is held in memory. If the
        stream fails (client disconnect, disk full) the partial file is
        removed and the error propagates.

        Returns:
            Number of bytes written
        """
        written = 0
        try:
            async with aiofiles.open(path, 'wb') as f:
                async for chunk in chunks:
                    if chunk:
                        await f.write(chunk)
                        written += len(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            logger.warning(f"Removed partial file {path.name} after {written} bytes")
            raise

        logger.debug(f"Wrote {path} ({written} bytes)")
        return written

    async def iter_file(self, path: Path) -> AsyncIterator[bytes]:
        """Yield the contents of ``path`` in ``chunk_size`` pieces."""
        async with aiofiles.open(path, 'rb') as f:
            while True:
                chunk = await f.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk

    # =========================================================================
    # METADATA
    # =========================================================================

    @staticmethod
    def file_size(path: Path) -> int:
        return path.stat().st_size

    @staticmethod
    def guess_content_type(path: Path) -> str:
        """Best-effort MIME type from the file name."""
        content_type, _ = mimetypes.guess_type(path.name)
        return content_type or DEFAULT_CONTENT_TYPE

    def get_storage_stats(self) -> dict:
        """
        Get storage statistics.

        Returns:
            Dict with file count and total size of the storage root
        """
        files = [f for f in self.base_dir.iterdir() if f.is_file()]
        return {
            "total_files": len(files),
            "total_size_bytes": sum(f.stat().st_size for f in files),
        }
