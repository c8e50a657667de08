"""Structured logging for tiercache.

Two output modes share one set of context variables:
- JSON lines (orjson) for log shippers, one object per record
- Compact console lines for local development

Every line carries the instance ID so invalidations can be traced across
processes, plus the request/correlation IDs bound by the API middleware.

Usage:
    from tiercache.observability.logging import configure_logging

    configure_logging(json_format=True, level="INFO")

    logger = logging.getLogger(__name__)
    logger.info("Cache miss")  # Includes instance, request_id, correlation_id
"""

from __future__ import annotations

import contextvars
import logging
import sys
from datetime import UTC, datetime
from typing import Any

import orjson

from tiercache.config import settings

# Context variables for request correlation
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

_CONTEXT_VARS: dict[str, contextvars.ContextVar[str]] = {
    "request_id": request_id_var,
    "correlation_id": correlation_id_var,
}

# Attributes every LogRecord has; anything else came in through ``extra=``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_NOISY_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
}


def _context() -> dict[str, str]:
    return {name: var.get() for name, var in _CONTEXT_VARS.items() if var.get()}


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    {"timestamp": "2026-10-19T12:34:56.789+00:00", "level": "INFO",
     "logger": "tiercache.orchestrator", "message": "Cache miss for post:1",
     "instance": "3f2a9c1e", "request_id": "abc-123", "cache": "post"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "instance": settings.instance_id,
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        log_data.update(_context())

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS and not key.startswith("_"):
                log_data[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return orjson.dumps(log_data, default=str, option=orjson.OPT_NON_STR_KEYS).decode()


class ConsoleFormatter(logging.Formatter):
    """Compact single-line output for development.

    12:34:56.789 INFO     tiercache.orchestrator: Cache miss for post:1 [req=abc-1234]
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__(datefmt="%H:%M:%S")
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        clock = f"{self.formatTime(record, self.datefmt)}.{int(record.msecs):03d}"
        level = f"{record.levelname:<8}"
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(record.levelno, '')}{level}{self.RESET}"

        line = f"{clock} {level} {record.name}: {record.getMessage()}"

        request_id = request_id_var.get()
        if request_id:
            line += f" [req={request_id[:8]}]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    json_format: bool = True,
    level: str = "INFO",
    use_colors: bool = True,
) -> None:
    """Install a single stderr handler on the root logger.

    Replaces any handlers already present, so calling it twice is safe.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else ConsoleFormatter(use_colors))

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())

    for name, noisy_level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)


class LogContext:
    """Bind request/correlation IDs for the duration of a block.

    Usage:
        with LogContext(request_id="abc-123"):
            logger.info("Loading post")  # Includes request_id
    """

    def __init__(self, **kwargs: str) -> None:
        self.values = kwargs
        self._tokens: dict[str, contextvars.Token[str]] = {}

    def __enter__(self) -> LogContext:
        for key, value in self.values.items():
            var = _CONTEXT_VARS.get(key)
            if var is not None:
                self._tokens[key] = var.set(value)
        return self

    def __exit__(self, *args: Any) -> None:
        for key, token in self._tokens.items():
            _CONTEXT_VARS[key].reset(token)
        self._tokens.clear()
