"""Flatten each metric kind into (key suffix, value) pairs."""

from typing import Any, Callable, Dict, List, Tuple

from ..metrics.models import Counter, Gauge, Histogram, Meter, Metric, MetricKind, Timer
from ..metrics.snapshot import Snapshot
from ..units import UnitConverter
from .keys import (
    COUNT_KEY,
    FIFTEEN_MINUTE_KEY,
    FIVE_MINUTE_KEY,
    MAX_KEY,
    MEAN_KEY,
    MEDIAN_KEY,
    MIN_KEY,
    ONE_MINUTE_KEY,
    PERCENTILE_75_KEY,
    PERCENTILE_95_KEY,
    PERCENTILE_98_KEY,
    PERCENTILE_99_KEY,
    PERCENTILE_999_KEY,
    STDDEV_KEY,
    VALUE_KEY,
)

Pairs = List[Tuple[str, Any]]
Extractor = Callable[[Metric, UnitConverter], Pairs]


def _identity(value: float) -> float:
    return value


def extract_gauge(gauge: Gauge, converter: UnitConverter) -> Pairs:
    return [(VALUE_KEY, gauge.value)]


def extract_counter(counter: Counter, converter: UnitConverter) -> Pairs:
    return [(COUNT_KEY, counter.count)]


def _rate_pairs(metered: Any, converter: UnitConverter) -> Pairs:
    return [
        (ONE_MINUTE_KEY, converter.convert_rate(metered.one_minute_rate)),
        (FIVE_MINUTE_KEY, converter.convert_rate(metered.five_minute_rate)),
        (FIFTEEN_MINUTE_KEY, converter.convert_rate(metered.fifteen_minute_rate)),
    ]


def snapshot_pairs(snapshot: Snapshot, convert: Callable[[float], float] = _identity) -> Pairs:
    """Statistics of a distribution snapshot, each passed through ``convert``.

    Args:
        snapshot: Sample to summarise
        convert: Applied to every statistic; identity for histograms, duration
            conversion for timers

    Returns:
        Pairs for min, max, mean, stddev, median and the reported percentiles
    """
    return [
        (MIN_KEY, convert(snapshot.get_min())),
        (MAX_KEY, convert(snapshot.get_max())),
        (MEAN_KEY, convert(snapshot.get_mean())),
        (STDDEV_KEY, convert(snapshot.get_std_dev())),
        (MEDIAN_KEY, convert(snapshot.get_median())),
        (PERCENTILE_75_KEY, convert(snapshot.get_75th_percentile())),
        (PERCENTILE_95_KEY, convert(snapshot.get_95th_percentile())),
        (PERCENTILE_98_KEY, convert(snapshot.get_98th_percentile())),
        (PERCENTILE_99_KEY, convert(snapshot.get_99th_percentile())),
        (PERCENTILE_999_KEY, convert(snapshot.get_999th_percentile())),
    ]


def extract_meter(meter: Meter, converter: UnitConverter) -> Pairs:
    return [
        (COUNT_KEY, meter.count),
        (MEAN_KEY, converter.convert_rate(meter.mean_rate)),
    ] + _rate_pairs(meter, converter)


def extract_histogram(histogram: Histogram, converter: UnitConverter) -> Pairs:
    return [(COUNT_KEY, histogram.count)] + snapshot_pairs(histogram.snapshot())


def extract_timer(timer: Timer, converter: UnitConverter) -> Pairs:
    """Count, converted rates and converted duration statistics.

    ``:mean`` carries the mean duration. The mean invocation rate would share
    the key, so it is not reported for timers.
    """
    return (
        [(COUNT_KEY, timer.count)]
        + _rate_pairs(timer, converter)
        + snapshot_pairs(timer.snapshot(), converter.convert_duration)
    )


EXTRACTORS: Dict[MetricKind, Extractor] = {
    MetricKind.GAUGE: extract_gauge,
    MetricKind.COUNTER: extract_counter,
    MetricKind.HISTOGRAM: extract_histogram,
    MetricKind.METER: extract_meter,
    MetricKind.TIMER: extract_timer,
}


def extract(metric: Metric, converter: UnitConverter) -> Pairs:
    """Dispatch to the extractor for the metric's kind."""
    kind = getattr(metric, "kind", None)
    extractor = EXTRACTORS.get(kind)
    if extractor is None:
        raise ValueError(f"Unknown metric kind: {kind!r}")
    return extractor(metric, converter)
