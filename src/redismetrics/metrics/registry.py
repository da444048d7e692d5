"""In-process metrics registry."""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Type

from .models import Clock, Counter, Gauge, Histogram, Meter, Metric, MetricKind, Timer

logger = logging.getLogger(__name__)

MetricFilter = Callable[[str, Metric], bool]


def all_metrics(name: str, metric: Metric) -> bool:
    """Filter that accepts every metric."""
    return True


def name_starts_with(*prefixes: str) -> MetricFilter:
    """Build a filter accepting metrics whose name starts with any prefix.

    With no prefixes every metric is accepted.
    """
    if not prefixes:
        return all_metrics

    def _filter(name: str, metric: Metric) -> bool:
        return name.startswith(prefixes)

    return _filter


class MetricSnapshot(NamedTuple):
    """Metrics captured for one report cycle, grouped by kind and sorted by name."""

    gauges: Dict[str, Gauge]
    counters: Dict[str, Counter]
    histograms: Dict[str, Histogram]
    meters: Dict[str, Meter]
    timers: Dict[str, Timer]

    def total(self) -> int:
        return sum(len(group) for group in self)


class MetricRegistry:
    """Central registry of named metrics.

    Names are unique across all kinds. The ``counter``/``meter``/``histogram``/
    ``timer`` accessors return the existing metric under a name or create it.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        """Initialize the registry.

        Args:
            clock: Monotonic clock in seconds handed to meters and timers
        """
        self.clock = clock
        self._metrics: Dict[str, Metric] = {}
        self._lock = threading.Lock()

    def register(self, name: str, metric: Metric) -> Metric:
        """Add a metric under a new name."""
        with self._lock:
            if name in self._metrics:
                raise ValueError(f"A metric named {name} already exists")
            self._metrics[name] = metric
        logger.debug(f"Registered {metric.kind.value} {name}")
        return metric

    def remove(self, name: str) -> bool:
        with self._lock:
            return self._metrics.pop(name, None) is not None

    def names(self) -> List[str]:
        return sorted(self._metrics)

    def get(self, name: str) -> Optional[Metric]:
        return self._metrics.get(name)

    def gauge(self, name: str, value_fn: Callable[[], Any]) -> Gauge:
        return self.register(name, Gauge(value_fn))

    def counter(self, name: str) -> Counter:
        return self._get_or_add(name, Counter, Counter)

    def histogram(self, name: str) -> Histogram:
        return self._get_or_add(name, Histogram, Histogram)

    def meter(self, name: str) -> Meter:
        return self._get_or_add(name, Meter, lambda: Meter(self.clock))

    def timer(self, name: str) -> Timer:
        return self._get_or_add(name, Timer, lambda: Timer(self.clock))

    def _get_or_add(self, name: str, metric_type: Type[Metric], factory: Callable[[], Metric]):
        with self._lock:
            existing = self._metrics.get(name)
            if existing is None:
                metric = factory()
                self._metrics[name] = metric
                logger.debug(f"Created {metric.kind.value} {name}")
                return metric
        if not isinstance(existing, metric_type):
            raise ValueError(
                f"{name} is already registered as a {existing.kind.value}, "
                f"not a {metric_type.kind.value}"
            )
        return existing

    def snapshot(self, metric_filter: MetricFilter = all_metrics) -> MetricSnapshot:
        """Capture the metrics accepted by ``metric_filter``, grouped by kind.

        Args:
            metric_filter: Predicate over ``(name, metric)``

        Returns:
            MetricSnapshot whose groups are ordered by metric name
        """
        with self._lock:
            items = sorted(self._metrics.items())

        groups: Dict[MetricKind, Dict[str, Metric]] = {kind: {} for kind in MetricKind}
        for name, metric in items:
            if metric_filter(name, metric):
                groups[metric.kind][name] = metric

        return MetricSnapshot(
            gauges=groups[MetricKind.GAUGE],
            counters=groups[MetricKind.COUNTER],
            histograms=groups[MetricKind.HISTOGRAM],
            meters=groups[MetricKind.METER],
            timers=groups[MetricKind.TIMER],
        )

    def __len__(self) -> int:
        return len(self._metrics)
