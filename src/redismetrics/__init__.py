"""redismetrics: periodically export an in-process metrics registry to Redis."""

from .config import ReporterConfig, load_config
from .metrics import MetricRegistry
from .reporting import RedisReporter, ReportResult
from .store import InMemoryStore, RedisStore, StoreUnavailableError
from .units import TimeUnit
from .utils.config_validator import ConfigurationError

__version__ = "0.1.0"

__all__ = [
    "ReporterConfig",
    "load_config",
    "MetricRegistry",
    "RedisReporter",
    "ReportResult",
    "InMemoryStore",
    "RedisStore",
    "StoreUnavailableError",
    "TimeUnit",
    "ConfigurationError",
]
