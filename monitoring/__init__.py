"""
Monitoring & Observability Layer

Provides monitoring for the streaming server:
- Structured logging (JSON formatting, request context injection)
- Metrics collection (Prometheus-compatible counters, gauges, histograms)
"""

# Logging
from .logging import (
    JSONFormatter,
    ContextFilter,
    StructuredLogger,
    configure_logging,
    configure_from_preset,
    get_logger,
    set_request_context,
    clear_request_context,
    get_request_id,
    LOGGING_PRESETS,
    ENVIRONMENT_PRESETS,
)

# Metrics
from .metrics import (
    Counter,
    Gauge,
    Histogram,
    MetricsRegistry,
    get_registry,
    counter,
    gauge,
    histogram,
)

__all__ = [
    # Logging
    'JSONFormatter',
    'ContextFilter',
    'StructuredLogger',
    'configure_logging',
    'configure_from_preset',
    'get_logger',
    'set_request_context',
    'clear_request_context',
    'get_request_id',
    'LOGGING_PRESETS',
    'ENVIRONMENT_PRESETS',

    # Metrics
    'Counter',
    'Gauge',
    'Histogram',
    'MetricsRegistry',
    'get_registry',
    'counter',
    'gauge',
    'histogram',
]
