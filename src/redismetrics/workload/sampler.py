"""Random draws for synthetic traffic, from a sampler-owned generator."""

import logging
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

logger = logging.getLogger(__name__)


class DistributionSampler:
    """Draws values from distributions described by small config dicts.

    Every draw comes from the sampler's own ``numpy.random.Generator``, so
    seeding one sampler never touches the process-wide random state.
    """

    def __init__(self, seed: Optional[int] = None):
        """Initialize the sampler.

        Args:
            seed: Seed for the sampler's generator, None for fresh entropy
        """
        self.rng = np.random.default_rng(seed)

    def choose(self, items: Sequence[Any], weights: Sequence[float]) -> Any:
        """Pick one item with probability proportional to its weight."""
        p = np.asarray(weights, dtype=float)
        return items[int(self.rng.choice(len(items), p=p / p.sum()))]

    def chance(self, probability: float) -> bool:
        """True with the given probability."""
        return bool(self.rng.random() < probability)

    def sample(self, distribution_config: Dict[str, Any]) -> Union[float, int]:
        """Draw one value.

        Args:
            distribution_config: ``type`` plus the distribution's parameters, e.g.
                - {'type': 'Exponential', 'rate': 20.0}
                - {'type': 'LogNormal', 'mean': -3.0, 'sigma': 0.6}
                - {'type': 'Uniform', 'low': 200, 'high': 8000, 'is_int': True}

        Returns:
            An int of at least 1 when ``is_int`` is set, otherwise a float
        """
        dist_type = distribution_config.get("type", "Constant")
        cfg = distribution_config

        if dist_type == "Constant":
            value = cfg.get("value", 1.0)
        elif dist_type == "Exponential":
            rate = cfg.get("rate", 1.0)
            if rate <= 0:
                raise ValueError(f"Exponential rate must be positive, got {rate}")
            value = self.rng.exponential(1.0 / rate)
        elif dist_type == "Uniform":
            value = self.rng.uniform(cfg.get("low", 0.0), cfg.get("high", 1.0))
        elif dist_type == "Normal":
            # Latencies and sizes are never negative
            std = cfg.get("std", cfg.get("sigma", 1.0))
            value = max(0.0, self.rng.normal(cfg.get("mean", 0.0), std))
        elif dist_type == "LogNormal":
            # Parameters of the underlying normal distribution
            value = self.rng.lognormal(cfg.get("mean", 0.0), cfg.get("sigma", 1.0))
        elif dist_type == "Gamma":
            value = self.rng.gamma(cfg.get("shape", 2.0), cfg.get("scale", 1.0))
        elif dist_type == "Mixture":
            components = cfg.get("components", [])
            if not components:
                logger.warning("Mixture distribution has no components, returning 1.0")
                return 1.0
            weights = cfg.get("weights") or [1.0] * len(components)
            value = self.sample(self.choose(components, weights))
        else:
            raise ValueError(f"Unknown distribution type: {dist_type}")

        if cfg.get("is_int", False):
            return max(1, int(round(value)))
        return float(value)
