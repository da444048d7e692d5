"""Metric types held by the registry and read by the reporter."""

import math
import threading
import time
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Iterator, List, Optional

import numpy as np

from .snapshot import Snapshot

Clock = Callable[[], float]

DEFAULT_RESERVOIR_SIZE = 1028
TICK_INTERVAL_S = 5.0


class MetricKind(str, Enum):
    """Closed set of metric kinds the reporter knows how to flatten."""

    GAUGE = "gauge"
    COUNTER = "counter"
    HISTOGRAM = "histogram"
    METER = "meter"
    TIMER = "timer"


class Metric:
    """Base for all metric kinds; ``kind`` selects the extractor."""

    kind: MetricKind


class Gauge(Metric):
    """Reads an arbitrary value from a callable at report time."""

    kind = MetricKind.GAUGE

    def __init__(self, value_fn: Callable[[], Any]) -> None:
        self._value_fn = value_fn

    @property
    def value(self) -> Any:
        return self._value_fn()


class Counter(Metric):
    """Integer count that can be incremented and decremented."""

    kind = MetricKind.COUNTER

    def __init__(self) -> None:
        self._count = 0
        self._lock = threading.Lock()

    def inc(self, n: int = 1) -> None:
        with self._lock:
            self._count += n

    def dec(self, n: int = 1) -> None:
        with self._lock:
            self._count -= n

    @property
    def count(self) -> int:
        return self._count


class EWMA:
    """Exponentially weighted moving average of a per-second event rate."""

    def __init__(self, alpha: float, interval_s: float = TICK_INTERVAL_S) -> None:
        self.alpha = alpha
        self.interval_s = interval_s
        self._rate = 0.0
        self._uncounted = 0
        self._initialized = False

    @classmethod
    def for_minutes(cls, minutes: int, interval_s: float = TICK_INTERVAL_S) -> "EWMA":
        """Create an EWMA that decays over the given number of minutes."""
        alpha = 1.0 - math.exp(-interval_s / 60.0 / minutes)
        return cls(alpha, interval_s)

    def update(self, n: int) -> None:
        self._uncounted += n

    def tick(self) -> None:
        """Fold the events seen since the last tick into the average."""
        count = self._uncounted
        self._uncounted = 0
        instant_rate = count / self.interval_s
        if self._initialized:
            self._rate += self.alpha * (instant_rate - self._rate)
        else:
            self._rate = instant_rate
            self._initialized = True

    def get_rate(self) -> float:
        """Rate in events/second."""
        return self._rate


class Meter(Metric):
    """Event count with mean and 1/5/15-minute moving average rates.

    Rates are in events/second; the reporter converts them to its configured
    rate unit.
    """

    kind = MetricKind.METER

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._start_time = clock()
        self._last_tick = self._start_time
        self._count = 0
        self._m1 = EWMA.for_minutes(1)
        self._m5 = EWMA.for_minutes(5)
        self._m15 = EWMA.for_minutes(15)
        self._lock = threading.Lock()

    def mark(self, n: int = 1) -> None:
        """Record ``n`` occurrences of the event."""
        with self._lock:
            self._tick_if_necessary()
            self._count += n
            self._m1.update(n)
            self._m5.update(n)
            self._m15.update(n)

    def _tick_if_necessary(self) -> None:
        now = self._clock()
        age = now - self._last_tick
        if age > TICK_INTERVAL_S:
            self._last_tick = now - (age % TICK_INTERVAL_S)
            for _ in range(int(age // TICK_INTERVAL_S)):
                self._m1.tick()
                self._m5.tick()
                self._m15.tick()

    @property
    def count(self) -> int:
        return self._count

    @property
    def mean_rate(self) -> float:
        if self._count == 0:
            return 0.0
        elapsed = self._clock() - self._start_time
        if elapsed <= 0:
            return 0.0
        return self._count / elapsed

    @property
    def one_minute_rate(self) -> float:
        with self._lock:
            self._tick_if_necessary()
        return self._m1.get_rate()

    @property
    def five_minute_rate(self) -> float:
        with self._lock:
            self._tick_if_necessary()
        return self._m5.get_rate()

    @property
    def fifteen_minute_rate(self) -> float:
        with self._lock:
            self._tick_if_necessary()
        return self._m15.get_rate()


class UniformReservoir:
    """Fixed-size uniform sample of a stream (Vitter's algorithm R)."""

    def __init__(self, size: int = DEFAULT_RESERVOIR_SIZE, seed: Optional[int] = None) -> None:
        if size <= 0:
            raise ValueError(f"Reservoir size must be positive, got {size}")
        self.size = size
        self._values: List[float] = []
        self._seen = 0
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()

    def update(self, value: float) -> None:
        with self._lock:
            self._seen += 1
            if len(self._values) < self.size:
                self._values.append(value)
            else:
                index = int(self._rng.integers(0, self._seen))
                if index < self.size:
                    self._values[index] = value

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(list(self._values))


class Histogram(Metric):
    """Count of observations plus a reservoir sample of their values."""

    kind = MetricKind.HISTOGRAM

    def __init__(self, reservoir: Optional[UniformReservoir] = None) -> None:
        self._reservoir = reservoir or UniformReservoir()
        self._count = 0
        self._lock = threading.Lock()

    def update(self, value: float) -> None:
        with self._lock:
            self._count += 1
        self._reservoir.update(value)

    @property
    def count(self) -> int:
        return self._count

    def snapshot(self) -> Snapshot:
        return self._reservoir.snapshot()


class Timer(Metric):
    """A meter of invocations combined with a histogram of their durations.

    Durations are stored in nanoseconds.
    """

    kind = MetricKind.TIMER

    def __init__(
        self,
        clock: Clock = time.monotonic,
        reservoir: Optional[UniformReservoir] = None,
    ) -> None:
        self._meter = Meter(clock)
        self._histogram = Histogram(reservoir)

    def update(self, duration_s: float) -> None:
        """Record one invocation that took ``duration_s`` seconds."""
        # Drop non-finite durations and negative ones from clock adjustments
        if not math.isfinite(duration_s) or duration_s < 0:
            return
        self._histogram.update(int(round(duration_s * 1e9)))
        self._meter.mark()

    @contextmanager
    def time(self) -> Iterator[None]:
        """Time the enclosed block."""
        start = time.perf_counter_ns()
        try:
            yield
        finally:
            self.update((time.perf_counter_ns() - start) / 1e9)

    @property
    def count(self) -> int:
        return self._histogram.count

    @property
    def mean_rate(self) -> float:
        return self._meter.mean_rate

    @property
    def one_minute_rate(self) -> float:
        return self._meter.one_minute_rate

    @property
    def five_minute_rate(self) -> float:
        return self._meter.five_minute_rate

    @property
    def fifteen_minute_rate(self) -> float:
        return self._meter.fifteen_minute_rate

    def snapshot(self) -> Snapshot:
        return self._histogram.snapshot()
