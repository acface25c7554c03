"""Prometheus metrics for the session save handler.

Counts save handler operations by outcome and times them. Metrics live in a
private registry so embedding applications can expose or ignore them.
"""

import logging

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

# Global registry for metrics
_registry = CollectorRegistry()


save_handler_operations_total = Counter(
    "dbtable_session_operations_total",
    "Total number of session save handler operations",
    ["operation", "status"],
    registry=_registry,
)

save_handler_operation_duration_seconds = Histogram(
    "dbtable_session_operation_duration_seconds",
    "Duration of session save handler operations in seconds",
    ["operation"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
    registry=_registry,
)

gc_deleted_sessions_total = Counter(
    "dbtable_session_gc_deleted_total",
    "Total number of expired session rows deleted by garbage collection",
    registry=_registry,
)


def record_operation(operation: str, status: str) -> None:
    """Count one save handler operation.

    Args:
        operation: open/close/read/write/destroy/gc
        status: Outcome label (e.g. hit, miss, expired, inserted, error)
    """
    save_handler_operations_total.labels(operation=operation, status=status).inc()


def get_metrics_text() -> str:
    """Render all metrics in Prometheus text exposition format."""
    return generate_latest(_registry).decode("utf-8")


def get_registry() -> CollectorRegistry:
    """Get the registry holding the save handler metrics."""
    return _registry


__all__ = [
    "gc_deleted_sessions_total",
    "get_metrics_text",
    "get_registry",
    "record_operation",
    "save_handler_operation_duration_seconds",
    "save_handler_operations_total",
]
