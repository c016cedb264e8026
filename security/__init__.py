"""
Security Layer

Path-safety checks for client-supplied filenames.
"""

from .sanitization import (
    ValidationError,
    SizeExceededError,
    PathTraversalError,
    strip_directories,
    sanitize_filename,
    resolve_within,
)

__all__ = [
    "ValidationError",
    "SizeExceededError",
    "PathTraversalError",
    "strip_directories",
    "sanitize_filename",
    "resolve_within",
]
