"""
API Middleware Layer

Provides error handling for request processing: a catch-all middleware and
plain-text exception handlers.
"""

from .error_handler import (
    GENERIC_ERROR_MESSAGE,
    ErrorHandlerMiddleware,
    register_exception_handlers,
)

__all__ = [
    'GENERIC_ERROR_MESSAGE',
    'ErrorHandlerMiddleware',
    'register_exception_handlers',
]
