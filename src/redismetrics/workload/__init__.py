"""Synthetic workload generation module."""

from .generator import SyntheticWorkload
from .models import TrafficProfile
from .sampler import DistributionSampler

__all__ = ["TrafficProfile", "DistributionSampler", "SyntheticWorkload"]
