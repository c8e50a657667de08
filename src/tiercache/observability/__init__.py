"""Observability: structured logging and Prometheus metrics."""

from tiercache.observability.logging import (
    ConsoleFormatter,
    JsonFormatter,
    LogContext,
    configure_logging,
    correlation_id_var,
    request_id_var,
)
from tiercache.observability.metrics import MetricsRegistry, get_metrics

__all__ = [
    "ConsoleFormatter",
    "JsonFormatter",
    "LogContext",
    "configure_logging",
    "correlation_id_var",
    "request_id_var",
    "MetricsRegistry",
    "get_metrics",
]
