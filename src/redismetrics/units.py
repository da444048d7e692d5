"""Time units and rate/duration conversion."""

from enum import Enum


class TimeUnit(str, Enum):
    """Granularity used to express rates and durations."""

    NANOSECONDS = "nanoseconds"
    MICROSECONDS = "microseconds"
    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"

    @property
    def nanos(self) -> int:
        """Length of one unit in nanoseconds."""
        return _NANOS_PER_UNIT[self]

    @property
    def seconds(self) -> float:
        """Length of one unit in seconds."""
        return self.nanos / 1e9

    @classmethod
    def parse(cls, value) -> "TimeUnit":
        """Resolve a unit from its name, case-insensitively."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(unit.value for unit in cls)
            raise ValueError(f"Unknown time unit: {value!r}. Must be one of: {valid}")


_NANOS_PER_UNIT = {
    TimeUnit.NANOSECONDS: 1,
    TimeUnit.MICROSECONDS: 1_000,
    TimeUnit.MILLISECONDS: 1_000_000,
    TimeUnit.SECONDS: 1_000_000_000,
    TimeUnit.MINUTES: 60 * 1_000_000_000,
    TimeUnit.HOURS: 3_600 * 1_000_000_000,
    TimeUnit.DAYS: 86_400 * 1_000_000_000,
}


class UnitConverter:
    """Converts per-second rates and nanosecond durations to configured units."""

    def __init__(
        self,
        rate_unit: TimeUnit = TimeUnit.SECONDS,
        duration_unit: TimeUnit = TimeUnit.MILLISECONDS,
    ) -> None:
        self.rate_unit = TimeUnit.parse(rate_unit)
        self.duration_unit = TimeUnit.parse(duration_unit)
        self.rate_factor = self.rate_unit.seconds
        self.duration_factor = 1.0 / self.duration_unit.nanos

    def convert_rate(self, rate: float) -> float:
        """Events/second -> events/rate_unit."""
        return rate * self.rate_factor

    def convert_duration(self, duration: float) -> float:
        """Nanoseconds -> duration_unit."""
        return duration * self.duration_factor

    def __repr__(self) -> str:
        return (
            f"UnitConverter(rate_unit={self.rate_unit.value}, "
            f"duration_unit={self.duration_unit.value})"
        )
