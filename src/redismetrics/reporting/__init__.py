"""Flattening metrics into store keys and the report cycle."""

from .extractors import EXTRACTORS, extract, snapshot_pairs
from .keys import ALL_SUFFIXES, key_for
from .reporter import RedisReporter, ReporterState, ReportResult, format_value

__all__ = [
    "EXTRACTORS",
    "extract",
    "snapshot_pairs",
    "ALL_SUFFIXES",
    "key_for",
    "RedisReporter",
    "ReporterState",
    "ReportResult",
    "format_value",
]
