"""Immutable reporter configuration."""

import locale
import logging
import time
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .metrics.registry import MetricFilter, name_starts_with
from .units import TimeUnit, UnitConverter
from .utils.config_validator import ConfigurationError, ReporterConfigValidator, read_config_file

logger = logging.getLogger(__name__)


def _default_locale() -> str:
    return locale.getlocale()[0] or "en_US"


class ReporterConfig(BaseModel):
    """Settings for one reporter, fixed for its lifetime.

    Defaults: localhost:6379 db 0, rates in events/second, durations in
    milliseconds, the process locale and local time zone, every metric
    reported once a minute.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    host: str = "localhost"
    port: int = Field(default=6379, ge=1, le=65535)
    db: int = Field(default=0, ge=0)
    password: Optional[str] = None
    socket_timeout_s: Optional[float] = Field(default=None, gt=0)

    rate_unit: TimeUnit = TimeUnit.SECONDS
    duration_unit: TimeUnit = TimeUnit.MILLISECONDS
    locale: str = Field(default_factory=_default_locale)
    time_zone: Optional[str] = None
    clock: Callable[[], float] = time.time

    metric_filter: Optional[Callable[..., bool]] = None
    include_prefixes: Tuple[str, ...] = ()

    period_s: float = Field(default=60.0, gt=0)
    initial_delay_s: Optional[float] = Field(default=None, ge=0)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid reporter configuration: {e}") from e

    @field_validator("host")
    @classmethod
    def _check_host(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("host must not be empty")
        return value.strip()

    @field_validator("rate_unit", "duration_unit", mode="before")
    @classmethod
    def _parse_unit(cls, value: Any) -> TimeUnit:
        return TimeUnit.parse(value)

    @field_validator("time_zone")
    @classmethod
    def _check_time_zone(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValueError(f"Unknown time zone: {value}")
        return value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReporterConfig":
        """Build a config from a plain dictionary, fixing what can be fixed."""
        data = dict(data)
        ReporterConfigValidator.fix(data)
        return cls(**data)

    @property
    def effective_filter(self) -> MetricFilter:
        """The explicit filter if one was given, else the prefix filter."""
        if self.metric_filter is not None:
            return self.metric_filter
        return name_starts_with(*self.include_prefixes)

    @property
    def tzinfo(self) -> tzinfo:
        if self.time_zone is None:
            return datetime.now().astimezone().tzinfo
        return ZoneInfo(self.time_zone)

    def unit_converter(self) -> UnitConverter:
        return UnitConverter(self.rate_unit, self.duration_unit)

    def describe(self) -> str:
        return (
            f"redis={self.host}:{self.port}/{self.db}, period={self.period_s}s, "
            f"rates per {self.rate_unit.value}, durations in {self.duration_unit.value}, "
            f"locale={self.locale}, time_zone={self.time_zone or 'local'}"
        )


def load_config(config_path: str) -> ReporterConfig:
    """Create a ReporterConfig from a YAML or JSON file.

    Args:
        config_path: Path to the configuration file. A top-level ``reporter``
            section is used when present.

    Returns:
        ReporterConfig instance
    """
    data = read_config_file(config_path)
    config = ReporterConfig.from_dict(data)
    logger.info(f"Loaded reporter configuration from {config_path}")
    return config
