"""Pairwise sequentially Markovian coalescent model.

The hidden state at a site is the time interval containing the
coalescence time of two haplotypes.  Coalescence happens at rate
``lambda_vec[i]`` inside interval ``i``, so the survival function is
``S(t) = exp(-Lambda(t))`` with a piecewise-linear cumulative hazard.

Transitions follow the SMC: with probability ``1 - exp(-2 rho tau_a)``
a recombination falls uniformly on the two branches of length
``tau_a`` (the conditional mean coalescence time of interval ``a``),
and the detached lineage re-coalesces above the break point.  The
re-coalescence integrals are evaluated in closed form, which makes every
row of the transition matrix sum to one exactly.

Emissions are exact: a site is homozygous (symbol 1) when no mutation
hit the ``2t`` units of branch length, heterozygous (symbol 2)
otherwise, averaged over the coalescence density within the interval.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from functools import cached_property

import numpy as np
from numpy.typing import NDArray

from psmckit.exceptions import ModelError
from psmckit.model.time_intervals import TimeIntervals

# Below this value of lambda * width the conditional mean is taken as
# the interval midpoint.
_SMALL_HAZARD = 1e-6


def _positive_rate(name: str, value: float) -> float:
    value = float(value)
    if not (math.isfinite(value) and value > 0.0):
        raise ModelError(f"{name} must be finite and > 0, got {value}")
    return value


@dataclass(frozen=True, eq=False)
class PSMCModel:
    """Immutable piecewise-constant coalescent HMM.

    Attributes:
        mutation_rate: Scaled per-site mutation rate (held fixed by the
            M-step).
        recombination_rate: Scaled per-site recombination rate.
        lambda_vec: Coalescence rate in each time interval.
        nr_states: Number of time intervals / hidden states.
        time_intervals: Interval boundaries; defaults to
            ``TimeIntervals.standard(nr_states)``.
    """

    mutation_rate: float
    recombination_rate: float
    lambda_vec: NDArray[np.float64]
    nr_states: int
    time_intervals: TimeIntervals | None = None

    def __post_init__(self) -> None:
        mu = _positive_rate("mutation_rate", self.mutation_rate)
        rho = _positive_rate("recombination_rate", self.recombination_rate)

        nr_states = int(self.nr_states)
        if nr_states < 1:
            raise ModelError(f"nr_states must be >= 1, got {self.nr_states}")

        lam = np.array(self.lambda_vec, dtype=np.float64)
        if lam.ndim != 1 or lam.shape[0] != nr_states:
            raise ModelError(
                f"lambda_vec must have length {nr_states}, got shape {lam.shape}"
            )
        if not np.all(np.isfinite(lam)) or np.any(lam <= 0.0):
            raise ModelError("lambda_vec entries must be finite and > 0")
        lam.setflags(write=False)

        intervals = self.time_intervals
        if intervals is None:
            intervals = TimeIntervals.standard(nr_states)
        elif intervals.nr_intervals != nr_states:
            raise ModelError(
                f"time_intervals has {intervals.nr_intervals} intervals, "
                f"expected {nr_states}"
            )

        object.__setattr__(self, "mutation_rate", mu)
        object.__setattr__(self, "recombination_rate", rho)
        object.__setattr__(self, "nr_states", nr_states)
        object.__setattr__(self, "lambda_vec", lam)
        object.__setattr__(self, "time_intervals", intervals)

    # ------------------------------------------------------------------
    # Model contract
    # ------------------------------------------------------------------

    def transition_prob(self, a: int, b: int) -> float:
        return float(self.transition_matrix[a, b])

    def emission_prob(self, symbol: int, a: int) -> float:
        if symbol not in (1, 2):
            raise ValueError(f"Emission symbol must be 1 or 2, got {symbol}")
        return float(self.emission_matrix[symbol - 1, a])

    def with_rates(
        self,
        lambda_vec: NDArray[np.float64] | None = None,
        recombination_rate: float | None = None,
    ) -> PSMCModel:
        """Copy of this model with some rates replaced."""
        changes: dict[str, object] = {}
        if lambda_vec is not None:
            changes["lambda_vec"] = lambda_vec
        if recombination_rate is not None:
            changes["recombination_rate"] = recombination_rate
        return dataclasses.replace(self, **changes)

    # ------------------------------------------------------------------
    # Derived quantities
    # ------------------------------------------------------------------

    @cached_property
    def _widths(self) -> NDArray[np.float64]:
        """Lengths of the ``nr_states - 1`` finite intervals."""
        return np.diff(self.time_intervals.as_array()[:-1])

    @cached_property
    def cumulative_hazard(self) -> NDArray[np.float64]:
        """``Lambda(t_i)`` at each boundary; the last entry is infinite."""
        n = self.nr_states
        hazard = np.empty(n + 1)
        hazard[0] = 0.0
        with np.errstate(over="ignore"):
            hazard[1:n] = np.cumsum(self.lambda_vec[:-1] * self._widths)
        hazard[n] = math.inf
        hazard.setflags(write=False)
        return hazard

    @cached_property
    def mean_coalescence_times(self) -> NDArray[np.float64]:
        """Expected coalescence time given that it falls in each interval."""
        lam = self.lambda_vec
        left = self.time_intervals.as_array()[:-1]
        tau = left + 1.0 / lam

        widths = self._widths
        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            x = lam[:-1] * widths
            ratio = x / np.expm1(x)
        ratio = np.where(np.isfinite(ratio), ratio, 0.0)
        excess = np.where(x < _SMALL_HAZARD, 0.5 * widths, (1.0 - ratio) / lam[:-1])
        tau[:-1] = left[:-1] + excess
        tau.setflags(write=False)
        return tau

    @cached_property
    def stationary_distribution(self) -> NDArray[np.float64]:
        """Probability that the coalescence time falls in each interval."""
        hazard = self.cumulative_hazard
        with np.errstate(over="ignore", invalid="ignore"):
            pi = np.exp(-hazard[:-1]) * -np.expm1(-(hazard[1:] - hazard[:-1]))
        pi.setflags(write=False)
        return pi

    def _recombination_mass(self, lengths: NDArray[np.float64]) -> NDArray[np.float64]:
        """Integrated re-coalescence probabilities for break points.

        Row ``k`` integrates, over break points ``s`` in
        ``[t_k, t_k + lengths[k]]``, the probability that a lineage
        floating from ``s`` coalesces in interval ``b``.
        """
        n = self.nr_states
        lam = self.lambda_vec
        hazard = self.cumulative_hazard
        k = np.arange(n)[:, None]
        b = np.arange(n + 1)[None, :]
        with np.errstate(over="ignore", invalid="ignore", divide="ignore", under="ignore"):
            lw = lam * lengths
            scale = -np.expm1(-lw) / lam
            g = np.exp(lw[:, None] - (hazard[None, :] - hazard[:n, None])) * scale[:, None]
        g = np.where(b > k, g, 0.0)
        mass = g[:, :-1] - g[:, 1:]
        mass[np.diag_indices(n)] += lengths
        return mass

    @cached_property
    def transition_matrix(self) -> NDArray[np.float64]:
        """``nr_states x nr_states`` row-stochastic transition matrix."""
        n = self.nr_states
        tau = self.mean_coalescence_times
        left = self.time_intervals.as_array()[:-1]

        full = np.zeros(n)
        full[:-1] = self._widths
        below = np.zeros((n, n))
        np.cumsum(self._recombination_mass(full)[:-1], axis=0, out=below[1:])
        partial = self._recombination_mass(tau - left)

        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            floating = (below + partial) / tau[:, None]
            stay = np.exp(-2.0 * self.recombination_rate * tau)
            matrix = (1.0 - stay)[:, None] * floating
        matrix[np.diag_indices(n)] += stay
        matrix.setflags(write=False)
        return matrix

    @cached_property
    def emission_matrix(self) -> NDArray[np.float64]:
        """``2 x nr_states`` matrix; row 0 homozygous, row 1 heterozygous."""
        lam = self.lambda_vec
        two_mu = 2.0 * self.mutation_rate
        left = self.time_intervals.as_array()[:-1]

        within = np.ones(self.nr_states)
        with np.errstate(over="ignore", invalid="ignore", divide="ignore", under="ignore"):
            within[:-1] = np.expm1(-(lam[:-1] + two_mu) * self._widths) / np.expm1(
                -lam[:-1] * self._widths
            )
            hom = lam / (lam + two_mu) * np.exp(-two_mu * left) * within

        matrix = np.vstack([hom, 1.0 - hom])
        matrix.setflags(write=False)
        return matrix
