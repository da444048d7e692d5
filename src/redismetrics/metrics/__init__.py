"""Metric types, snapshots and the in-process registry."""

from .models import Counter, Gauge, Histogram, Meter, Metric, MetricKind, Timer, UniformReservoir
from .registry import MetricFilter, MetricRegistry, MetricSnapshot, all_metrics, name_starts_with
from .snapshot import Snapshot

__all__ = [
    "Counter",
    "Gauge",
    "Histogram",
    "Meter",
    "Metric",
    "MetricKind",
    "Timer",
    "UniformReservoir",
    "MetricFilter",
    "MetricRegistry",
    "MetricSnapshot",
    "all_metrics",
    "name_starts_with",
    "Snapshot",
]
