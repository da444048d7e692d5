"""Scheduling of report cycles."""

from .scheduler import ReportScheduler

__all__ = ["ReportScheduler"]
