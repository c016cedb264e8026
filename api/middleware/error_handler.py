"""
Global Error Handler Middleware - API Layer

Provides centralized error handling: anything an endpoint does not turn into
an HTTP response itself becomes a generic plain-text 500, with the details
and traceback going to the log only.

@.architecture
Incoming: app.py (middleware registration), Exception objects from endpoints --- {FastAPI Request objects, Python exceptions}
Processing: dispatch(), _log_error(), register_exception_handlers() --- {4 jobs: exception_catching, response_formatting, sanitization, logging}
Outgoing: monitoring/logging.py, HTTP clients --- {structured error logs, PlainTextResponse with short message}
"""

import logging
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An error occurred processing your request"


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware for global error handling.

    Catches exceptions that escape the endpoints before a response has
    started, so a failing request never takes the listener down. Errors
    raised mid-stream, after headers went out, end the connection instead.
    The response body never carries exception text.
    """

    def __init__(self, app: ASGIApp, log_errors: bool = True):
        super().__init__(app)
        self.log_errors = log_errors

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            if self.log_errors:
                self._log_error(request, e)
            return PlainTextResponse(GENERIC_ERROR_MESSAGE, status_code=500)

    def _log_error(self, request: Request, error: Exception) -> None:
        context = {
            "method": request.method,
            "path": str(request.url.path),
            "status_code": 500,
            "error_type": type(error).__name__,
            "client": request.client.host if request.client else "unknown"
        }
        logger.error(f"Server error: {error}", extra=context, exc_info=error)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    """Render HTTP errors (including the router's own 404/405) as plain text."""
    return PlainTextResponse(
        str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
    """Render request validation failures as 400 instead of FastAPI's 422 JSON."""
    fields = ", ".join(
        ".".join(str(part) for part in err.get("loc", ())[1:]) or "request"
        for err in exc.errors()
    )
    return PlainTextResponse(f"Invalid request parameters: {fields}", status_code=400)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the plain-text exception handlers to ``app``."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
