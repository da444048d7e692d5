"""Distribution snapshots and the statistics derived from them."""

import math
from typing import Iterable, Union

import numpy as np

Number = Union[int, float]

# Quantile ranks reported for every histogram and timer
MEDIAN_QUANTILE = 0.5
P75_QUANTILE = 0.75
P95_QUANTILE = 0.95
P98_QUANTILE = 0.98
P99_QUANTILE = 0.99
P999_QUANTILE = 0.999


class Snapshot:
    """Immutable, sorted sample of observed values.

    Quantiles are interpolated linearly between the two closest ranks, with the
    rank of quantile ``q`` taken as ``q * (n + 1)`` and clamped to the sample
    range. An empty snapshot reports zero for every statistic.
    """

    def __init__(self, values: Iterable[Number]) -> None:
        """Initialize the snapshot.

        Args:
            values: Observed values in any order. The snapshot keeps its own
                sorted copy, so later changes to the source do not leak in.
        """
        array = np.sort(np.asarray(list(values)))
        if array.size == 0:
            array = np.zeros(0, dtype=np.int64)
        array.setflags(write=False)
        self._values = array

    @property
    def size(self) -> int:
        return int(self._values.size)

    def __len__(self) -> int:
        return self.size

    def get_values(self) -> np.ndarray:
        """Sorted sample values (read-only array)."""
        return self._values

    def get_value(self, quantile: float) -> float:
        """Return the value at the given quantile.

        Args:
            quantile: Rank in ``[0.0, 1.0]``

        Returns:
            The interpolated value, or 0.0 for an empty snapshot
        """
        if math.isnan(quantile) or not 0.0 <= quantile <= 1.0:
            raise ValueError(f"{quantile} is not in [0..1]")

        if self.size == 0:
            return 0.0

        return float(np.quantile(self._values, quantile, method="weibull"))

    def get_median(self) -> float:
        return self.get_value(MEDIAN_QUANTILE)

    def get_75th_percentile(self) -> float:
        return self.get_value(P75_QUANTILE)

    def get_95th_percentile(self) -> float:
        return self.get_value(P95_QUANTILE)

    def get_98th_percentile(self) -> float:
        return self.get_value(P98_QUANTILE)

    def get_99th_percentile(self) -> float:
        return self.get_value(P99_QUANTILE)

    def get_999th_percentile(self) -> float:
        return self.get_value(P999_QUANTILE)

    def get_min(self) -> Number:
        """Smallest value, keeping the sample's numeric type."""
        if self.size == 0:
            return 0
        return self._values[0].item()

    def get_max(self) -> Number:
        """Largest value, keeping the sample's numeric type."""
        if self.size == 0:
            return 0
        return self._values[-1].item()

    def get_mean(self) -> float:
        if self.size == 0:
            return 0.0
        return float(np.mean(self._values))

    def get_std_dev(self) -> float:
        """Sample standard deviation (n - 1 denominator)."""
        # A single observation has no spread
        if self.size <= 1:
            return 0.0
        return float(np.std(self._values, ddof=1))

    def __repr__(self) -> str:
        return f"Snapshot(size={self.size}, min={self.get_min()}, max={self.get_max()})"
