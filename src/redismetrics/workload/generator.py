"""Synthetic request traffic that exercises every metric kind."""

import logging
from typing import Any, Dict, Generator, List

import simpy

from ..metrics.registry import MetricRegistry
from .models import TrafficProfile
from .sampler import DistributionSampler

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = {
    "profile_name": "default",
    "weight": 1.0,
    "inter_arrival_time_dist_config": {"type": "Exponential", "rate": 20.0},
    "latency_s_dist_config": {"type": "LogNormal", "mean": -3.0, "sigma": 0.6},
    "payload_bytes_dist_config": {"type": "Uniform", "low": 200, "high": 8000, "is_int": True},
    "error_probability": 0.02,
}


class SyntheticWorkload:
    """Generates simulated requests and records them in a registry.

    Per request it marks a meter, increments a counter, records the payload
    size in a histogram and the latency in a timer. A gauge tracks requests in
    flight.
    """

    def __init__(
        self,
        simpy_env: simpy.Environment,
        config: Dict[str, Any],
        registry: MetricRegistry,
    ):
        """Initialize the workload.

        Args:
            simpy_env: SimPy environment instance
            config: Workload configuration containing:
                - metric_prefix: Prefix of every metric name (default "demo")
                - random_seed: Random seed for reproducibility
                - traffic_profiles: List of traffic profile configurations
            registry: Registry the metrics are created in
        """
        self.simpy_env = simpy_env
        self.config = config
        self.registry = registry

        self.sampler = DistributionSampler(config.get("random_seed"))

        profiles_config = config.get("traffic_profiles")
        if profiles_config is None:
            profiles_config = [DEFAULT_PROFILE]
        self.profiles = self._parse_profiles(profiles_config)
        self.request_counter = 0
        self.in_flight = 0

        prefix = config.get("metric_prefix", "demo")
        self.requests = registry.counter(f"{prefix}.requests")
        self.errors = registry.counter(f"{prefix}.errors")
        self.request_rate = registry.meter(f"{prefix}.request-rate")
        self.payload_sizes = registry.histogram(f"{prefix}.payload-bytes")
        self.latency = registry.timer(f"{prefix}.latency")
        registry.gauge(f"{prefix}.in-flight", lambda: self.in_flight)

        logger.info(f"SyntheticWorkload initialized with {len(self.profiles)} traffic profiles")

    def _parse_profiles(self, profiles_config: List[Dict[str, Any]]) -> List[TrafficProfile]:
        profiles = []
        for profile_config in profiles_config:
            profiles.append(TrafficProfile(
                profile_name=profile_config["profile_name"],
                weight=profile_config.get("weight", 1.0),
                inter_arrival_time_dist_config=profile_config["inter_arrival_time_dist_config"],
                latency_s_dist_config=profile_config["latency_s_dist_config"],
                payload_bytes_dist_config=profile_config["payload_bytes_dist_config"],
                error_probability=profile_config.get("error_probability", 0.0),
            ))

        if not profiles:
            raise ValueError("At least one traffic profile must be configured")
        return profiles

    def _select_profile(self) -> TrafficProfile:
        return self.sampler.choose(self.profiles, [p.weight for p in self.profiles])

    def generate_requests_process(self) -> Generator:
        """SimPy process emitting requests forever."""
        while True:
            profile = self._select_profile()
            yield self.simpy_env.timeout(self.sampler.sample(profile.inter_arrival_time_dist_config))
            self.request_counter += 1
            self.simpy_env.process(self._handle_request(profile))

    def _handle_request(self, profile: TrafficProfile) -> Generator:
        self.in_flight += 1
        self.requests.inc()
        self.request_rate.mark()
        self.payload_sizes.update(self.sampler.sample(profile.payload_bytes_dist_config))

        latency_s = self.sampler.sample(profile.latency_s_dist_config)
        yield self.simpy_env.timeout(latency_s)

        self.latency.update(latency_s)
        if self.sampler.chance(profile.error_probability):
            self.errors.inc()
        self.in_flight -= 1
