"""Maximization step of the EM procedure.

One call re-estimates the coalescence rates (tied within time segments)
and, unless held fixed, the recombination rate, by maximising the
Q-function built from expected counts.  The mutation rate is carried
over from the prior model.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray

from psmckit.estimation.codec import ParameterCodec
from psmckit.estimation.likelihood import build_objective
from psmckit.estimation.optimizer import PowellOptimizer
from psmckit.estimation.statistics import SufficientStatistics
from psmckit.model.pattern import (
    format_time_segment_pattern,
    normalize_time_segment_pattern,
    validate_time_segment_pattern,
)

if TYPE_CHECKING:
    from psmckit.estimation.optimizer import Optimizer
    from psmckit.model.base import CoalescentModel, ModelFactory

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass
class MaximizationResult:
    """Outcome of one M-step.

    Attributes:
        model: Updated model.
        start_score: Objective (``-Q``) at the prior model.
        end_score: Objective (``-Q``) at the updated model.
        x0: Encoded prior model.
        x_opt: Vector returned by the optimiser.
        parameter_names: Names of the entries of *x0* / *x_opt*.
        time_segment_pattern: Segment sizes used for the step.
        fixed_recombination: Whether the recombination rate was held.
    """

    model: CoalescentModel
    start_score: float
    end_score: float
    x0: NDArray[np.float64]
    x_opt: NDArray[np.float64]
    parameter_names: list[str]
    time_segment_pattern: tuple[int, ...]
    fixed_recombination: bool

    @property
    def n_params(self) -> int:
        return len(self.parameter_names)

    @property
    def q_before(self) -> float:
        return -self.start_score

    @property
    def q_after(self) -> float:
        return -self.end_score

    @property
    def improvement(self) -> float:
        """Increase of the Q-function over the step."""
        return self.start_score - self.end_score

    def summary(self) -> str:
        """Human-readable summary of the step."""
        lines = [
            "Maximization Step",
            "=" * 50,
            f"  Time segments:  {format_time_segment_pattern(self.time_segment_pattern)}",
            f"  Recombination:  {'fixed' if self.fixed_recombination else 'estimated'}",
            f"  Parameters:     {self.n_params}",
            f"  Q before:       {self.q_before:.6f}",
            f"  Q after:        {self.q_after:.6f}",
            f"  Improvement:    {self.improvement:.6f}",
            "",
            f"  {'Parameter':<15} {'Start':>12} {'Estimate':>12}",
            f"  {'-' * 15} {'-' * 12} {'-' * 12}",
        ]
        for name, start, value in zip(
            self.parameter_names, np.exp(self.x0), np.exp(self.x_opt), strict=True
        ):
            label = name.removeprefix("log_")
            lines.append(f"  {label:<15} {start:12.6g} {value:12.6g}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_problem(
    statistics: SufficientStatistics,
    prior_model: CoalescentModel,
    time_segment_pattern: Sequence[int],
) -> None:
    """Fail fast on shape or pattern mismatches.

    Raises:
        ConfigurationError: If the count matrices do not match
            ``prior_model.nr_states`` or the pattern does not sum to it.
    """
    nr_states = prior_model.nr_states
    statistics.validate(nr_states)
    validate_time_segment_pattern(time_segment_pattern, nr_states)


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def maximize(
    transitions: ArrayLike | SufficientStatistics,
    emissions: ArrayLike | None,
    prior_model: CoalescentModel,
    time_segment_pattern: str | Sequence[int],
    fixed_recombination: bool = False,
    *,
    optimizer: Optimizer | None = None,
    model_factory: ModelFactory | None = None,
    penalty: float = 1e10,
) -> MaximizationResult:
    """Run one M-step and keep the diagnostics.

    Args:
        transitions: ``nr_states x nr_states`` expected transition
            counts, or a ready :class:`SufficientStatistics` (then
            *emissions* must be None).
        emissions: ``2 x nr_states`` expected emission counts.
        prior_model: Model of the previous EM iteration; every segment of
            *time_segment_pattern* must have a uniform rate in it.
        time_segment_pattern: Segment sizes, or a ``"1*4+2*2"`` string.
        fixed_recombination: Hold the recombination rate at the prior's.
        optimizer: Derivative-free minimiser (default
            :class:`PowellOptimizer`).  Its result is accepted as final.
        model_factory: Builds candidate models from rates.
        penalty: Objective value for non-finite log-likelihoods.

    Returns:
        MaximizationResult with the updated model and Q before/after.

    Raises:
        ConfigurationError: On shape or pattern mismatch, before any
            optimiser call.
    """
    if isinstance(transitions, SufficientStatistics):
        if emissions is not None:
            raise TypeError("emissions must be None when passing SufficientStatistics")
        statistics = transitions
    else:
        statistics = SufficientStatistics(transitions, emissions)

    pattern = normalize_time_segment_pattern(time_segment_pattern)
    validate_problem(statistics, prior_model, pattern)

    codec = ParameterCodec(pattern, fixed_recombination)
    objective = build_objective(
        statistics,
        prior_model,
        codec,
        model_factory=model_factory,
        penalty=penalty,
    )

    x0 = codec.encode(prior_model)
    logger.debug("M-step start vector: %s", x0)
    start_score = objective(x0)

    if optimizer is None:
        optimizer = PowellOptimizer()
    x_opt = np.asarray(optimizer.minimize(objective, x0), dtype=np.float64).reshape(-1)
    end_score = objective(x_opt)
    logger.info("Q-function before: %s, after: %s", -start_score, -end_score)

    model = codec.decode_model(x_opt, prior_model, model_factory)
    return MaximizationResult(
        model=model,
        start_score=start_score,
        end_score=end_score,
        x0=x0,
        x_opt=x_opt,
        parameter_names=codec.parameter_names(),
        time_segment_pattern=pattern,
        fixed_recombination=codec.fixed_recombination,
    )


def run_maximization_step(
    transitions: ArrayLike,
    emissions: ArrayLike,
    prior_model: CoalescentModel,
    time_segment_pattern: str | Sequence[int],
    fixed_recombination: bool = False,
    **kwargs,
) -> CoalescentModel:
    """Re-estimate *prior_model* from expected counts.

    This is the entry point the EM loop calls once per iteration.
    Keyword arguments are forwarded to :func:`maximize`.
    """
    return maximize(
        transitions,
        emissions,
        prior_model,
        time_segment_pattern,
        fixed_recombination,
        **kwargs,
    ).model
