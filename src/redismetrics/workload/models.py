"""Data models for synthetic workloads."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class TrafficProfile:
    """Defines the request stream produced by one kind of simulated client."""

    profile_name: str
    weight: float  # For selecting this profile from multiple
    inter_arrival_time_dist_config: Dict[str, Any]
    latency_s_dist_config: Dict[str, Any]
    payload_bytes_dist_config: Dict[str, Any]
    error_probability: float = 0.0  # 0.0 to 1.0
