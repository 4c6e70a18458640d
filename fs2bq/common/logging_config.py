"""
Structured JSON logging with correlation IDs.

Collections of one batch are exported concurrently, so their log lines
interleave. Every batch run and every HTTP request binds a correlation
ID that is stamped on each line logged while it is active.
"""

import json
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Task-local under asyncio: tasks created by a batch inherit it
correlation_id_ctx: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None)

# Client libraries that log every HTTP round trip at INFO
_NOISY_LOGGERS = ("urllib3", "google", "google.auth", "grpc")


class StructuredFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.lineno}",
        }

        correlation_id = correlation_id_ctx.get()
        if correlation_id:
            entry["correlation_id"] = correlation_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # extra={"extra_fields": {...}} lands at the top level
        entry.update(getattr(record, "extra_fields", {}))
        return json.dumps(entry, default=str)


class PerformanceTracker:
    """
    Times one export unit and logs its outcome.

    ``duration_ms`` is readable after the block exits, including when
    it raised, so callers can put it into their result records.

    Usage:
        with PerformanceTracker("copy", logger, collection="users") as t:
            ...
        t.duration_ms
    """

    def __init__(
        self,
        operation: str,
        logger: logging.Logger,
        log_level: int = logging.INFO,
        **extra_fields,
    ):
        self.operation = operation
        self.logger = logger
        self.log_level = log_level
        self.extra_fields = extra_fields
        self.duration_ms: float = 0.0
        self._started = 0.0

    def _fields(self, **more) -> Dict[str, Any]:
        return {"extra_fields": {"operation": self.operation, **self.extra_fields, **more}}

    def __enter__(self):
        self._started = time.perf_counter()
        self.logger.debug(f"Starting operation: {self.operation}", extra=self._fields())
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self._started) * 1000
        elapsed = round(self.duration_ms, 2)

        if exc_type is None:
            self.logger.log(
                self.log_level,
                f"Operation completed: {self.operation}",
                extra=self._fields(duration_ms=elapsed),
            )
        else:
            self.logger.error(
                f"Operation failed: {self.operation}",
                extra=self._fields(
                    duration_ms=elapsed,
                    error=str(exc_val),
                    error_type=exc_type.__name__,
                ),
            )


def setup_logging(log_level: str = "INFO", json_format: bool = True) -> None:
    """
    Route all logging through one stderr handler.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines if True, plain text otherwise
    """
    level = getattr(logging, log_level.upper())

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(
        StructuredFormatter() if json_format
        else logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Bind a correlation ID (a new UUID when none is given) and return it."""
    correlation_id = correlation_id or str(uuid.uuid4())
    correlation_id_ctx.set(correlation_id)
    return correlation_id


def get_correlation_id() -> Optional[str]:
    return correlation_id_ctx.get()


def clear_correlation_id() -> None:
    correlation_id_ctx.set(None)
