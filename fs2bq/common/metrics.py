"""
Prometheus metrics for export runs.

Tracks batch units per operation, rows inserted, inferred columns and
values the classifier could not map to a column type.
"""

import time
from functools import wraps
from typing import Callable

from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
)

REGISTRY = CollectorRegistry()

# ========== Counters ==========

export_units_total = Counter(
    "export_units_total",
    "Total number of per-collection export units",
    ["operation", "status"],  # create_table/copy/delete_table, success/failure
    registry=REGISTRY,
)

rows_inserted_total = Counter(
    "rows_inserted_total",
    "Total number of rows inserted into the warehouse",
    registry=REGISTRY,
)

schema_columns_inferred_total = Counter(
    "schema_columns_inferred_total",
    "Total number of columns registered by schema inference",
    registry=REGISTRY,
)

classification_failures_total = Counter(
    "classification_failures_total",
    "Document values skipped because their type has no column mapping",
    ["stage"],  # schema/row
    registry=REGISTRY,
)

# ========== Histograms ==========

export_unit_duration_seconds = Histogram(
    "export_unit_duration_seconds",
    "Time to process one collection within a batch",
    ["operation"],
    buckets=(0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 300.0),
    registry=REGISTRY,
)


# ========== Metric Decorators ==========

def track_unit(operation: str):
    """
    Decorator to track duration and outcome of an async export unit.

    Args:
        operation: Operation label (create_table/copy/delete_table)
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            status = "success"
            try:
                return await func(*args, **kwargs)
            except Exception:
                status = "failure"
                raise
            finally:
                export_unit_duration_seconds.labels(
                    operation=operation).observe(time.time() - start_time)
                export_units_total.labels(
                    operation=operation, status=status).inc()

        return wrapper
    return decorator


def get_metrics() -> bytes:
    """
    Get current metrics in Prometheus format.

    Returns:
        Metrics as bytes
    """
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get content type for metrics response."""
    return CONTENT_TYPE_LATEST
