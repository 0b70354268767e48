"""In-process counters, gauges and latency histograms for the admin dashboard."""
from __future__ import annotations

import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Optional, Tuple

MetricKey = Tuple[str, Tuple[Tuple[str, str], ...]]

MAX_EVENTS = 100


def _labels_tuple(labels: Optional[Dict[str, str]]) -> Tuple[Tuple[str, str], ...]:
    if not labels:
        return ()
    return tuple(sorted((str(key), str(value)) for key, value in labels.items()))


@dataclass
class Histogram:
    count: int = 0
    total: float = 0.0
    min_value: float = field(default=float("inf"))
    max_value: float = field(default=float("-inf"))

    def observe(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.min_value = min(self.min_value, value)
        self.max_value = max(self.max_value, value)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "avg": self.total / self.count if self.count else 0.0,
            "min": self.min_value if self.count else None,
            "max": self.max_value if self.count else None,
        }


class MetricsRegistry:
    """Thread-safe metric store; one shared instance backs the module functions."""

    def __init__(self, max_events: int = MAX_EVENTS) -> None:
        self._lock = threading.Lock()
        self._counters: Dict[MetricKey, float] = defaultdict(float)
        self._gauges: Dict[MetricKey, float] = {}
        self._histograms: Dict[MetricKey, Histogram] = {}
        self._events: Deque[Dict[str, Any]] = deque(maxlen=max_events)

    def increment(self, name: str, amount: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
        with self._lock:
            self._counters[(name, _labels_tuple(labels))] += amount

    def set_gauge(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        with self._lock:
            self._gauges[(name, _labels_tuple(labels))] = value

    def observe(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        with self._lock:
            key = (name, _labels_tuple(labels))
            self._histograms.setdefault(key, Histogram()).observe(value)

    def record_event(self, name: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            self._events.append({"name": name, "timestamp": time.time(), "payload": payload})

    def counter_total(self, name: str) -> float:
        with self._lock:
            return sum(value for (metric, _), value in self._counters.items() if metric == name)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "counters": _group(self._counters, lambda value: {"value": value}),
                "gauges": _group(self._gauges, lambda value: {"value": value}),
                "histograms": _group(self._histograms, lambda hist: {"stats": hist.snapshot()}),
                "events": list(self._events),
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
            self._events.clear()


def _group(series: Dict[MetricKey, Any], render) -> Dict[str, list]:
    grouped: Dict[str, list] = {}
    for (name, labels), value in series.items():
        entry = {"labels": dict(labels)}
        entry.update(render(value))
        grouped.setdefault(name, []).append(entry)
    return grouped


registry = MetricsRegistry()


def increment_counter(name: str, amount: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
    registry.increment(name, amount, labels)


def set_gauge(name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
    registry.set_gauge(name, value, labels)


def observe_latency(name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
    registry.observe(name, value, labels)


def record_event(name: str, payload: Dict[str, Any]) -> None:
    registry.record_event(name, payload)


def get_metrics_snapshot() -> Dict[str, Any]:
    return registry.snapshot()


def reset_metrics() -> None:
    """Testing helper."""
    registry.reset()
