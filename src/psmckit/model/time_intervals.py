"""Discretisation of coalescent time into intervals.

Interval ``i`` spans ``[boundaries[i], boundaries[i + 1])``.  The first
boundary is zero and the last one is infinite, so the intervals cover the
whole positive time axis.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from psmckit.exceptions import ModelError


@dataclass(frozen=True, slots=True)
class TimeIntervals:
    """Ordered interval boundaries ``t_0 = 0 < t_1 < ... < t_n = inf``."""

    boundaries: tuple[float, ...]

    def __post_init__(self) -> None:
        values = tuple(float(b) for b in self.boundaries)
        if len(values) < 2:
            raise ModelError("TimeIntervals needs at least two boundaries")
        if values[0] != 0.0:
            raise ModelError(f"First time boundary must be 0, got {values[0]}")
        if not math.isinf(values[-1]):
            raise ModelError(f"Last time boundary must be infinite, got {values[-1]}")
        for left, right in zip(values[:-1], values[1:]):
            if not right > left:
                raise ModelError(
                    f"Time boundaries must be strictly increasing, got {left} >= {right}"
                )
        object.__setattr__(self, "boundaries", values)

    @classmethod
    def standard(cls, nr_intervals: int, factor: float = 1.0) -> TimeIntervals:
        """Boundaries at the quantiles of an exponential with mean *factor*.

        ``t_i = -factor * log(1 - i / n)``; with a constant coalescence
        rate of ``1 / factor`` every interval carries the same probability.
        """
        if nr_intervals < 1:
            raise ModelError(f"nr_intervals must be >= 1, got {nr_intervals}")
        if not (math.isfinite(factor) and factor > 0.0):
            raise ModelError(f"Time factor must be finite and > 0, got {factor}")
        i = np.arange(nr_intervals, dtype=np.float64)
        bounds = -factor * np.log1p(-i / nr_intervals)
        bounds[0] = 0.0
        return cls(tuple(bounds.tolist()) + (math.inf,))

    @property
    def nr_intervals(self) -> int:
        return len(self.boundaries) - 1

    def left_boundary(self, index: int) -> float:
        return self.boundaries[index]

    def right_boundary(self, index: int) -> float:
        return self.boundaries[index + 1]

    def as_array(self) -> NDArray[np.float64]:
        """Boundaries as a float64 array of length ``nr_intervals + 1``."""
        return np.asarray(self.boundaries, dtype=np.float64)
