"""Report cycle that writes flattened metrics to a key-value store."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np

from ..config import ReporterConfig
from ..core.scheduler import ReportScheduler
from ..metrics.models import Metric
from ..metrics.registry import MetricRegistry
from ..store import KeyValueStore, RedisStore, StoreUnavailableError
from .extractors import extract
from .keys import key_for

logger = logging.getLogger(__name__)


class ReporterState(str, Enum):
    IDLE = "idle"
    DRAINING = "draining"
    WRITING = "writing"


@dataclass
class ReportResult:
    """Outcome of one report cycle."""

    timestamp: datetime
    metrics_reported: int = 0
    keys_written: int = 0
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def format_value(value: Any) -> str:
    """Render a statistic or gauge value as the string stored in Redis.

    Numbers use Python's shortest round-trip representation with no fixed
    precision; numpy scalars are unwrapped to their Python equivalents first.
    """
    if isinstance(value, np.generic):
        value = value.item()
    return str(value)


class RedisReporter:
    """Periodically writes every registered metric to Redis.

    Each statistic becomes one key, ``<metric name><suffix>``, holding the
    value as a string. Writes are blocking, one key at a time, with no retry:
    a metric whose write fails is logged and skipped, and the next cycle
    writes fresh values.
    """

    def __init__(
        self,
        registry: MetricRegistry,
        config: Optional[ReporterConfig] = None,
        store: Optional[KeyValueStore] = None,
    ) -> None:
        """Initialize the reporter.

        Args:
            registry: Registry drained on every cycle
            config: Reporter settings, defaults to ReporterConfig()
            store: Store to write to; a RedisStore for the configured target
                is created when omitted
        """
        self.registry = registry
        self.config = config or ReporterConfig()
        self.converter = self.config.unit_converter()
        self.store = store if store is not None else RedisStore.from_config(self.config)
        self.state = ReporterState.IDLE
        self._scheduler: Optional[ReportScheduler] = None

        logger.info(f"RedisReporter initialized ({self.config.describe()})")

    @classmethod
    def for_registry(
        cls,
        registry: MetricRegistry,
        store: Optional[KeyValueStore] = None,
        **settings: Any,
    ) -> "RedisReporter":
        """Create a reporter from keyword settings, e.g. ``rate_unit="minutes"``."""
        return cls(registry, ReporterConfig.from_dict(settings), store)

    def convert_rate(self, rate: float) -> float:
        return self.converter.convert_rate(rate)

    def convert_duration(self, duration: float) -> float:
        return self.converter.convert_duration(duration)

    def report(self) -> ReportResult:
        """Run one report cycle over the registry's current metrics."""
        snapshot = self.registry.snapshot(self.config.effective_filter)
        return self.report_snapshot(*snapshot)

    def report_snapshot(
        self,
        gauges: Dict[str, Metric],
        counters: Dict[str, Metric],
        histograms: Dict[str, Metric],
        meters: Dict[str, Metric],
        timers: Dict[str, Metric],
    ) -> ReportResult:
        """Write every metric in the given groups to the store.

        Args:
            gauges: Gauges by name
            counters: Counters by name
            histograms: Histograms by name
            meters: Meters by name
            timers: Timers by name

        Returns:
            ReportResult with the number of keys written and failed metric names
        """
        result = ReportResult(
            timestamp=datetime.fromtimestamp(self.config.clock(), tz=self.config.tzinfo)
        )

        try:
            for group in (gauges, counters, histograms, meters, timers):
                if not group:
                    continue
                for name, metric in group.items():
                    self._report_metric(name, metric, result)
        finally:
            self.state = ReporterState.IDLE

        if result.failed:
            logger.warning(
                f"Report at {result.timestamp.isoformat()}: {result.keys_written} keys written, "
                f"{len(result.failed)} metrics failed"
            )
        else:
            logger.info(
                f"Report at {result.timestamp.isoformat()}: {result.metrics_reported} metrics, "
                f"{result.keys_written} keys written"
            )
        return result

    def _report_metric(self, name: str, metric: Metric, result: ReportResult) -> None:
        try:
            self.state = ReporterState.DRAINING
            pairs = extract(metric, self.converter)

            self.state = ReporterState.WRITING
            for suffix, value in pairs:
                key = key_for(name, suffix)
                text = format_value(value)
                if not self.store.set(key, text):
                    raise StoreUnavailableError(f"Store rejected write of {key}")
                result.keys_written += 1
                logger.debug(f"SET {key} {text}")
        except StoreUnavailableError as e:
            logger.warning(f"Failed to report {metric.kind.value} {name}: {e}")
            result.failed.append(name)
        except Exception:
            logger.exception(f"Failed to report {name}")
            result.failed.append(name)
        else:
            result.metrics_reported += 1

    def start(
        self,
        period_s: Optional[float] = None,
        initial_delay_s: Optional[float] = None,
        scheduler: Optional[ReportScheduler] = None,
        max_cycles: Optional[int] = None,
        background: bool = True,
    ) -> ReportScheduler:
        """Open the store and start reporting on a fixed schedule.

        Args:
            period_s: Seconds between cycles, defaults to the configured period
            initial_delay_s: Seconds before the first cycle
            scheduler: Scheduler to use, a realtime one is created when omitted
            max_cycles: Stop after this many cycles
            background: Run the scheduler in a daemon thread; otherwise the
                caller drives it with ``scheduler.run()``

        Returns:
            The scheduler driving the reporter
        """
        if self._scheduler is not None:
            raise RuntimeError("Reporter is already started")

        period = self.config.period_s if period_s is None else period_s
        delay = self.config.initial_delay_s if initial_delay_s is None else initial_delay_s
        if period <= 0:
            raise ValueError(f"period_s must be positive, got {period}")
        if delay is not None and delay < 0:
            raise ValueError(f"initial_delay_s must not be negative, got {delay}")

        self.open()
        scheduler = scheduler or ReportScheduler(realtime=True)
        try:
            scheduler.schedule_reporting(self.report, period, delay, max_cycles)
            if background:
                scheduler.start_background()
        except Exception:
            self.close()
            raise
        self._scheduler = scheduler

        logger.info(f"RedisReporter started (period={period}s)")
        return scheduler

    def stop(self, timeout_s: Optional[float] = 5.0) -> None:
        """Stop the schedule and release the store."""
        if self._scheduler is not None:
            self._scheduler.stop(timeout_s)
            self._scheduler = None
        self.close()
        logger.info("RedisReporter stopped")

    def open(self) -> None:
        opener = getattr(self.store, "open", None)
        if opener is not None:
            opener()

    def close(self) -> None:
        closer = getattr(self.store, "close", None)
        if closer is not None:
            closer()

    def __enter__(self) -> "RedisReporter":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
