"""Observability helpers: logging, metrics, and health checks."""

from .logging_config import configure_logging
from .metrics import (
    increment_counter,
    set_gauge,
    observe_latency,
    record_event,
    get_metrics_snapshot,
)
from .health import check_store_health

__all__ = [
    "configure_logging",
    "increment_counter",
    "set_gauge",
    "observe_latency",
    "record_event",
    "get_metrics_snapshot",
    "check_store_health",
]
