"""
Unit tests for the report cycle.
"""

from datetime import datetime, timezone

import numpy as np
import pytest
import redis

from redismetrics.config import ReporterConfig
from redismetrics.core import ReportScheduler
from redismetrics.metrics import MetricRegistry
from redismetrics.metrics.models import MetricKind
from redismetrics.reporting import RedisReporter, ReporterState, format_value
from redismetrics.store import InMemoryStore, RedisStore, StoreUnavailableError
from redismetrics.units import TimeUnit
from redismetrics.utils.config_validator import ConfigurationError


class StubMeter:
    """Meter with fixed readings."""

    kind = MetricKind.METER
    count = 4
    mean_rate = 2.0
    one_minute_rate = 1.5
    five_minute_rate = 1.2
    fifteen_minute_rate = 1.0


class FailingStore(InMemoryStore):
    """Store that cannot write keys of the given metrics."""

    def __init__(self, failing_names):
        super().__init__()
        self.failing_names = set(failing_names)
        self.attempts = []

    def set(self, key, value):
        self.attempts.append(key)
        if key.split(":")[0] in self.failing_names:
            raise StoreUnavailableError(f"lost connection writing {key}")
        return super().set(key, value)


class ClientErrorStore(InMemoryStore):
    """Store that lets the client's own exceptions escape."""

    def __init__(self, failing_names):
        super().__init__()
        self.failing_names = set(failing_names)

    def set(self, key, value):
        if key.split(":")[0] in self.failing_names:
            raise redis.exceptions.ConnectionError("Connection reset by peer")
        return super().set(key, value)


class TrackingStore(InMemoryStore):
    """Store that remembers whether it is open."""

    is_open = False

    def open(self):
        self.is_open = True

    def close(self):
        self.is_open = False


class RejectingStore(InMemoryStore):
    def set(self, key, value):
        return False


@pytest.fixture
def fixed_config():
    return ReporterConfig(clock=lambda: 0.0, time_zone="UTC")


@pytest.fixture
def registry():
    return MetricRegistry(clock=lambda: 100.0)


class TestFormatValue:
    """Test how values are rendered for the store."""

    @pytest.mark.parametrize("value, expected", [
        (3, "3"),
        (2.0, "2.0"),
        (0.1, "0.1"),
        (np.float64(5.5), "5.5"),
        (np.int64(10), "10"),
        ("ok", "ok"),
        (True, "True"),
        (None, "None"),
    ])
    def test_format(self, value, expected):
        assert format_value(value) == expected


class TestReportCycle:
    """Test one report cycle against an in-memory store."""

    def test_counter_and_gauge(self, registry, fixed_config):
        registry.counter("jobs").inc(3)
        registry.gauge("queue.depth", lambda: 4)
        store = InMemoryStore()

        result = RedisReporter(registry, fixed_config, store).report()

        assert store.data == {"queue.depth:value": "4", "jobs:count": "3"}
        # Gauges are written before counters
        assert [key for key, _ in store.writes] == ["queue.depth:value", "jobs:count"]
        assert result.metrics_reported == 2
        assert result.keys_written == 2
        assert result.ok

    def test_meter_keys(self, registry, fixed_config):
        store = InMemoryStore()
        reporter = RedisReporter(registry, fixed_config, store)

        reporter.report_snapshot({}, {}, {}, {"api": StubMeter()}, {})

        assert store.data == {
            "api:count": "4",
            "api:mean": "2.0",
            "api:one-minute-average": "1.5",
            "api:five-minute-average": "1.2",
            "api:fifteen-minute-average": "1.0",
        }

    def test_histogram_keys(self, registry, fixed_config):
        histogram = registry.histogram("payload")
        for value in range(1, 11):
            histogram.update(value)
        store = InMemoryStore()

        RedisReporter(registry, fixed_config, store).report()

        assert store.data["payload:count"] == "10"
        assert store.data["payload:min"] == "1"
        assert store.data["payload:max"] == "10"
        assert store.data["payload:median"] == "5.5"
        assert store.data["payload:mean"] == "5.5"
        assert len(store.data) == 11

    def test_timer_keys(self, registry, fixed_config):
        registry.timer("db.query").update(0.25)
        store = InMemoryStore()

        RedisReporter(registry, fixed_config, store).report()

        assert store.data["db.query:count"] == "1"
        assert float(store.data["db.query:max"]) == pytest.approx(250.0)
        assert float(store.data["db.query:mean"]) == pytest.approx(250.0)
        assert store.data["db.query:stddev"] == "0.0"
        assert len(store.data) == 14

    def test_idempotent_for_unchanged_metrics(self, registry, fixed_config):
        registry.counter("jobs").inc(2)
        registry.gauge("mode", lambda: "primary")
        histogram = registry.histogram("sizes")
        for value in (5, 1, 3):
            histogram.update(value)
        registry.meter("events").mark(4)
        registry.timer("latency").update(0.01)
        store = InMemoryStore()
        reporter = RedisReporter(registry, fixed_config, store)

        reporter.report()
        first = list(store.writes)
        reporter.report()

        assert store.writes[len(first):] == first

    def test_write_failure_does_not_stop_cycle(self, registry, fixed_config):
        for name in ("alpha", "bravo", "charlie"):
            registry.counter(name).inc()
        registry.histogram("delta").update(1)
        store = FailingStore({"bravo"})

        result = RedisReporter(registry, fixed_config, store).report()

        assert result.failed == ["bravo"]
        assert not result.ok
        assert "alpha:count" in store.data
        assert "charlie:count" in store.data
        assert "delta:median" in store.data
        assert "bravo:count" in store.attempts
        assert result.metrics_reported == 3

    def test_rejected_write_counts_as_failure(self, registry, fixed_config):
        registry.counter("jobs").inc()
        result = RedisReporter(registry, fixed_config, RejectingStore()).report()
        assert result.failed == ["jobs"]
        assert result.keys_written == 0

    def test_failing_gauge_does_not_stop_cycle(self, registry, fixed_config):
        registry.gauge("broken", lambda: 1 / 0)
        registry.gauge("healthy", lambda: 7)
        registry.counter("jobs").inc()
        store = InMemoryStore()

        result = RedisReporter(registry, fixed_config, store).report()

        assert result.failed == ["broken"]
        assert store.data == {"healthy:value": "7", "jobs:count": "1"}
        assert result.metrics_reported == 2

    def test_client_error_does_not_stop_cycle(self, registry, fixed_config):
        """A store raising its own error type only loses that metric."""
        for name in ("alpha", "bravo", "charlie"):
            registry.counter(name).inc()
        store = ClientErrorStore({"bravo"})

        result = RedisReporter(registry, fixed_config, store).report()

        assert result.failed == ["bravo"]
        assert store.data == {"alpha:count": "1", "charlie:count": "1"}
        assert result.keys_written == 2

    def test_filtered_metrics_are_not_written(self, registry):
        registry.counter("api.requests").inc()
        registry.counter("internal.ticks").inc()
        config = ReporterConfig(include_prefixes=["api."])
        store = InMemoryStore()

        RedisReporter(registry, config, store).report()

        assert store.data == {"api.requests:count": "1"}

    def test_explicit_filter(self, registry):
        registry.counter("keep").inc()
        registry.counter("drop").inc()
        config = ReporterConfig(metric_filter=lambda name, metric: name != "drop")
        store = InMemoryStore()

        RedisReporter(registry, config, store).report()

        assert list(store.data) == ["keep:count"]

    def test_empty_registry(self, registry, fixed_config):
        store = InMemoryStore()
        result = RedisReporter(registry, fixed_config, store).report()
        assert store.writes == []
        assert result.keys_written == 0

    def test_timestamp_uses_clock_and_time_zone(self, registry, fixed_config):
        result = RedisReporter(registry, fixed_config, InMemoryStore()).report()
        assert result.timestamp == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_state_returns_to_idle(self, registry, fixed_config):
        registry.counter("jobs").inc()
        reporter = RedisReporter(registry, fixed_config, InMemoryStore())
        reporter.report()
        assert reporter.state is ReporterState.IDLE


class TestReporterConstruction:
    """Test building reporters."""

    def test_default_store_is_redis(self, registry):
        reporter = RedisReporter(registry, ReporterConfig(host="cache", port=6390))
        assert isinstance(reporter.store, RedisStore)
        assert reporter.store.target == "cache:6390/0"

    def test_for_registry(self, registry):
        reporter = RedisReporter.for_registry(
            registry, store=InMemoryStore(), rate_unit="MINUTES", duration_unit="seconds"
        )
        assert reporter.config.rate_unit is TimeUnit.MINUTES
        assert reporter.convert_rate(2.0) == pytest.approx(120.0)
        assert reporter.convert_duration(3e9) == pytest.approx(3.0)

    def test_invalid_target_is_fatal(self, registry):
        with pytest.raises(ConfigurationError):
            RedisReporter.for_registry(registry, port=0)


class TestScheduledReporting:
    """Test starting and stopping the reporter."""

    def test_reports_every_period(self, registry, fixed_config):
        registry.counter("jobs").inc()
        store = InMemoryStore()
        reporter = RedisReporter(registry, fixed_config, store)
        scheduler = ReportScheduler(realtime=False)

        reporter.start(period_s=10, scheduler=scheduler, background=False)
        scheduler.run(until=35)
        reporter.stop()

        assert scheduler.cycles_run == 3
        assert store.writes == [("jobs:count", "1")] * 3

    def test_start_twice(self, registry, fixed_config):
        reporter = RedisReporter(registry, fixed_config, InMemoryStore())
        reporter.start(scheduler=ReportScheduler(realtime=False), background=False)
        with pytest.raises(RuntimeError):
            reporter.start(scheduler=ReportScheduler(realtime=False), background=False)
        reporter.stop()

    def test_unreachable_store_prevents_start(self, registry, fixed_config):
        class DownStore(InMemoryStore):
            def open(self):
                raise StoreUnavailableError("connection refused")

        reporter = RedisReporter(registry, fixed_config, DownStore())
        with pytest.raises(StoreUnavailableError):
            reporter.start(scheduler=ReportScheduler(realtime=False), background=False)
        # A failed start leaves the reporter startable again
        reporter.store = InMemoryStore()
        reporter.start(scheduler=ReportScheduler(realtime=False), background=False)
        reporter.stop()

    @pytest.mark.parametrize("settings", [
        {"period_s": -1},
        {"period_s": 0},
        {"period_s": 10, "initial_delay_s": -5},
    ])
    def test_invalid_schedule_leaves_reporter_startable(self, registry, fixed_config, settings):
        store = TrackingStore()
        reporter = RedisReporter(registry, fixed_config, store)

        with pytest.raises(ValueError):
            reporter.start(scheduler=ReportScheduler(realtime=False), background=False, **settings)
        assert not store.is_open

        scheduler = reporter.start(
            period_s=10, scheduler=ReportScheduler(realtime=False), background=False
        )
        assert store.is_open
        scheduler.run(until=15)
        reporter.stop()
        assert scheduler.cycles_run == 1

    def test_scheduler_conflict_closes_store(self, registry, fixed_config):
        scheduler = ReportScheduler(realtime=False)
        scheduler.schedule_reporting(lambda: None, period_s=1)
        store = TrackingStore()
        reporter = RedisReporter(registry, fixed_config, store)

        with pytest.raises(RuntimeError):
            reporter.start(scheduler=scheduler, background=False)

        assert not store.is_open
        reporter.start(scheduler=ReportScheduler(realtime=False), background=False)
        reporter.stop()
