"""
Input Sanitization and Validation - Security Layer

Filename sanitization and storage-root containment checks that keep every
resolved path inside the storage directory.

@.architecture
Incoming: data/storage/local.py, api/endpoints/*.py --- {str filename, Path base directory}
Processing: strip_directories(), sanitize_filename(), resolve_within() --- {3 jobs: path_validation, sanitization, traversal_detection}
Outgoing: data/storage/local.py, api/middleware/error_handler.py --- {str safe filename, Path resolved path, raises ValidationError/PathTraversalError}
"""

from pathlib import Path, PurePosixPath
from typing import Union

MAX_FILENAME_LENGTH = 255
MAX_PATH_LENGTH = 4096


class ValidationError(Exception):
    """Raised when input validation fails."""
    pass


class SizeExceededError(ValidationError):
    """Raised when input exceeds size limits."""
    pass


class PathTraversalError(ValidationError):
    """Raised when a path resolves outside its allowed base."""
    pass


def _segments(filename: str) -> list:
    # Clients on Windows send backslash-separated paths
    return filename.replace("\\", "/").split("/")


def strip_directories(filename: str) -> str:
    """
    Reduce a client-supplied name to its final path component.

    >>> strip_directories("reports/2024/q1.csv")
    'q1.csv'
    """
    return PurePosixPath(filename.replace("\\", "/")).name


def sanitize_filename(filename: str) -> str:
    """
    Sanitize an upload filename to a bare base name.

    Directory components are stripped. Names that still try to climb out of
    the storage root (``..`` segments) or reduce to nothing are rejected.

    Args:
        filename: Filename as supplied by the client

    Returns:
        Safe base filename

    Raises:
        ValidationError: If filename is empty or contains control characters
        SizeExceededError: If filename is too long
        PathTraversalError: If filename contains a ``..`` segment
    """
    if not isinstance(filename, str):
        raise ValidationError(f"Expected string filename, got {type(filename).__name__}")

    if len(filename) > MAX_PATH_LENGTH:
        raise SizeExceededError(
            f"Filename length {len(filename)} exceeds maximum {MAX_PATH_LENGTH}"
        )

    if ".." in _segments(filename):
        raise PathTraversalError(f"Path traversal in filename: {filename!r}")

    if any(ord(char) < 32 for char in filename):
        raise ValidationError("Filename contains control characters")

    safe_name = strip_directories(filename)

    if not safe_name or safe_name in (".", ".."):
        raise ValidationError("Filename cannot be empty")

    if len(safe_name) > MAX_FILENAME_LENGTH:
        raise SizeExceededError(
            f"Filename length {len(safe_name)} exceeds maximum {MAX_FILENAME_LENGTH}"
        )

    return safe_name


def resolve_within(base: Union[str, Path], filename: str) -> Path:
    """
    Resolve ``filename`` against ``base`` and verify containment.

    Args:
        base: Storage root (already absolute and resolved)
        filename: Relative name to resolve

    Returns:
        Resolved absolute Path inside ``base``

    Raises:
        ValidationError: If filename cannot form a path
        PathTraversalError: If the resolved path escapes ``base``
    """
    if "\x00" in filename:
        raise ValidationError("Filename contains a null byte")

    base = Path(base)
    resolved = (base / filename).resolve()
    try:
        resolved.relative_to(base)
    except ValueError:
        raise PathTraversalError(f"Path {filename!r} is outside storage directory")

    return resolved
