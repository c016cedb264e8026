"""
Structured Logging - Monitoring Layer

Every transfer log line carries the request id and the caller's address,
taken from context variables set by the request dependency. Output is a
human-readable line in development and one JSON object per line in
production.

@.architecture
Incoming: main.py, api/dependencies.py, All modules via get_logger() --- {str log_level, str format_type, Dict[str, str] module_levels, str request_id/client}
Processing: configure_logging(), configure_from_preset(), JSONFormatter.format(), set_request_context() --- {4 jobs: context_injection, formatting, log_configuration, structured_logging}
Outgoing: sys.stdout, All modules --- {StructuredLogger instances, JSON or text log lines, context variables}
"""

import json
import logging
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

request_id_ctx: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
client_ctx: ContextVar[Optional[str]] = ContextVar('client', default=None)

TEXT_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-24s | [%(request_id)s %(client)s] | %(message)s'
TEXT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with request context and traceback."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        request_id = request_id_ctx.get()
        if request_id:
            entry['request_id'] = request_id
        client = client_ctx.get()
        if client:
            entry['client'] = client

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            entry['exception'] = {
                'type': exc_type.__name__,
                'message': str(exc_value),
                'traceback': traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        extra_fields = getattr(record, 'extra_fields', None)
        if extra_fields:
            entry['extra'] = extra_fields

        return json.dumps(entry, default=str)


class ContextFilter(logging.Filter):
    """Copies the request context onto records for the text format."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get() or '-'
        record.client = client_ctx.get() or '-'
        return True


class StructuredLogger:
    """
    Thin wrapper around a stdlib logger.

    Keyword arguments to the log methods are attached to the record and end
    up under ``extra`` in JSON output:

        logger.info("[UPLOAD] Completed", size_bytes=1024)
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, message: str, exc_info: bool = False, **fields: Any) -> None:
        extra = {'extra_fields': fields} if fields else None
        self._logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **fields)


def configure_logging(
    level: str = "INFO",
    format_type: str = "text",
    module_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Root log level name
        format_type: "json" or "text"
        module_levels: Per-logger overrides, e.g. {"uvicorn.error": "WARNING"}
    """
    if format_type == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for logger_name, logger_level in (module_levels or {}).items():
        logging.getLogger(logger_name).setLevel(getattr(logging, logger_level.upper(), logging.INFO))


def get_logger(name: str) -> StructuredLogger:
    """Structured logger for a module (pass ``__name__``)."""
    return StructuredLogger(name)


def set_request_context(
    request_id: Optional[str] = None,
    client: Optional[str] = None
) -> None:
    """Bind request id and client address to the current task."""
    if request_id:
        request_id_ctx.set(request_id)
    if client:
        client_ctx.set(client)


def clear_request_context() -> None:
    request_id_ctx.set(None)
    client_ctx.set(None)


def get_request_id() -> Optional[str]:
    return request_id_ctx.get()


# =============================================================================
# Presets
# =============================================================================

LOGGING_PRESETS: Dict[str, Dict[str, Any]] = {
    'development': {
        'level': 'INFO',
        'format_type': 'text',
        'module_levels': {'asyncio': 'WARNING'},
    },
    'production': {
        'level': 'INFO',
        'format_type': 'json',
        'module_levels': {'asyncio': 'WARNING', 'uvicorn.error': 'WARNING'},
    },
    'testing': {
        'level': 'WARNING',
        'format_type': 'text',
        'module_levels': {'httpx': 'WARNING', 'httpcore': 'WARNING'},
    },
}

# Settings.environment -> preset name
ENVIRONMENT_PRESETS = {
    'development': 'development',
    'production': 'production',
    'test': 'testing',
}


def configure_from_preset(preset: str = 'development', **overrides: Any) -> None:
    """
    Configure logging from a named preset.

    Raises:
        ValueError: If the preset is unknown
    """
    if preset not in LOGGING_PRESETS:
        raise ValueError(f"Unknown preset: {preset}. Available: {list(LOGGING_PRESETS.keys())}")

    config = dict(LOGGING_PRESETS[preset], **overrides)
    configure_logging(**config)
