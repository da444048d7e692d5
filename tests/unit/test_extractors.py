"""
Unit tests for key naming and statistic extraction.
"""

import pytest

from redismetrics.metrics.models import Counter, Gauge, Histogram, MetricKind
from redismetrics.metrics.snapshot import Snapshot
from redismetrics.reporting.extractors import EXTRACTORS, extract
from redismetrics.reporting.keys import ALL_SUFFIXES, key_for
from redismetrics.units import TimeUnit, UnitConverter

SNAPSHOT_SUFFIXES = [
    ":min",
    ":max",
    ":mean",
    ":stddev",
    ":median",
    ":75th-percentile",
    ":95th-percentile",
    ":98th-percentile",
    ":99th-percentile",
    ":999th-percentile",
]


class StubMeter:
    """Meter with fixed readings."""

    kind = MetricKind.METER

    def __init__(self, count=10, mean=2.0, m1=1.5, m5=1.2, m15=1.0):
        self.count = count
        self.mean_rate = mean
        self.one_minute_rate = m1
        self.five_minute_rate = m5
        self.fifteen_minute_rate = m15


class StubTimer(StubMeter):
    """Timer with fixed readings and a fixed duration sample (nanoseconds)."""

    kind = MetricKind.TIMER

    def __init__(self, durations_ns, **rates):
        super().__init__(count=len(durations_ns), **rates)
        self._snapshot = Snapshot(durations_ns)

    def snapshot(self):
        return self._snapshot


@pytest.fixture
def no_conversion():
    return UnitConverter(TimeUnit.SECONDS, TimeUnit.NANOSECONDS)


class TestKeys:
    """Test the key naming scheme."""

    def test_key_for_concatenates(self):
        assert key_for("api.requests", ":count") == "api.requests:count"

    def test_suffix_table(self):
        assert len(ALL_SUFFIXES) == 15
        assert len(set(ALL_SUFFIXES)) == 15
        assert all(suffix.startswith(":") for suffix in ALL_SUFFIXES)


class TestSimpleExtractors:
    """Test gauges and counters."""

    def test_counter(self, no_conversion):
        counter = Counter()
        counter.inc(7)
        assert extract(counter, no_conversion) == [(":count", 7)]

    @pytest.mark.parametrize("value", [3, 2.5, "green", None, True])
    def test_gauge(self, no_conversion, value):
        assert extract(Gauge(lambda: value), no_conversion) == [(":value", value)]


class TestMeterExtractor:
    """Test meter flattening and rate conversion."""

    def test_meter_without_conversion(self, no_conversion):
        pairs = extract(StubMeter(), no_conversion)
        assert pairs == [
            (":count", 10),
            (":mean", 2.0),
            (":one-minute-average", 1.5),
            (":five-minute-average", 1.2),
            (":fifteen-minute-average", 1.0),
        ]

    def test_meter_rates_per_minute(self):
        converter = UnitConverter(TimeUnit.MINUTES, TimeUnit.MILLISECONDS)
        pairs = dict(extract(StubMeter(), converter))
        assert pairs[":count"] == 10
        assert pairs[":mean"] == pytest.approx(120.0)
        assert pairs[":one-minute-average"] == pytest.approx(90.0)
        assert pairs[":fifteen-minute-average"] == pytest.approx(60.0)


class TestHistogramExtractor:
    """Test histogram flattening."""

    def test_one_to_ten(self, no_conversion):
        histogram = Histogram()
        for value in range(1, 11):
            histogram.update(value)

        pairs = extract(histogram, no_conversion)
        assert [suffix for suffix, _ in pairs] == [":count"] + SNAPSHOT_SUFFIXES

        values = dict(pairs)
        assert values[":count"] == 10
        assert values[":min"] == 1
        assert values[":max"] == 10
        assert values[":median"] == 5.5
        assert values[":mean"] == 5.5

    def test_histogram_values_are_not_converted(self):
        """Duration units never apply to plain histograms."""
        histogram = Histogram()
        histogram.update(1_000_000)
        values = dict(extract(histogram, UnitConverter(TimeUnit.SECONDS, TimeUnit.MILLISECONDS)))
        assert values[":max"] == 1_000_000

    def test_empty_histogram_reports_zeros(self, no_conversion):
        values = dict(extract(Histogram(), no_conversion))
        assert values[":count"] == 0
        assert values[":min"] == 0
        assert values[":max"] == 0
        assert values[":stddev"] == 0.0
        assert values[":999th-percentile"] == 0.0


class TestTimerExtractor:
    """Test timer flattening."""

    def test_durations_converted_to_milliseconds(self):
        converter = UnitConverter(TimeUnit.SECONDS, TimeUnit.MILLISECONDS)
        timer = StubTimer([1_000_000, 2_000_000, 3_000_000])
        values = dict(extract(timer, converter))

        assert values[":count"] == 3
        assert values[":min"] == pytest.approx(1.0)
        assert values[":max"] == pytest.approx(3.0)
        assert values[":median"] == pytest.approx(2.0)
        assert values[":mean"] == pytest.approx(2.0)
        assert values[":stddev"] == pytest.approx(1.0)

    def test_timer_rates_are_converted(self):
        """Timer rates use the configured rate unit, like meters."""
        converter = UnitConverter(TimeUnit.MINUTES, TimeUnit.MILLISECONDS)
        values = dict(extract(StubTimer([1_000_000], m1=0.5, m5=0.25, m15=0.1), converter))
        assert values[":one-minute-average"] == pytest.approx(30.0)
        assert values[":five-minute-average"] == pytest.approx(15.0)
        assert values[":fifteen-minute-average"] == pytest.approx(6.0)

    def test_timer_keys_are_unique(self, no_conversion):
        """The mean key appears once and carries the mean duration."""
        pairs = extract(StubTimer([10, 20, 30], mean=99.0), no_conversion)
        suffixes = [suffix for suffix, _ in pairs]
        assert len(suffixes) == len(set(suffixes))
        assert set(suffixes) == {
            ":count",
            ":one-minute-average",
            ":five-minute-average",
            ":fifteen-minute-average",
        } | set(SNAPSHOT_SUFFIXES)
        assert dict(pairs)[":mean"] == pytest.approx(20.0)

    def test_empty_timer(self, no_conversion):
        values = dict(extract(StubTimer([]), no_conversion))
        assert values[":count"] == 0
        assert values[":min"] == 0
        assert values[":mean"] == 0.0


class TestDispatch:
    """Test extractor dispatch."""

    def test_every_kind_has_an_extractor(self):
        assert set(EXTRACTORS) == set(MetricKind)

    def test_unknown_kind(self, no_conversion):
        class NotAMetric:
            kind = "sparkline"

        with pytest.raises(ValueError, match="Unknown metric kind"):
            extract(NotAMetric(), no_conversion)
