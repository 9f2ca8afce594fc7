"""Bundle of everything one M-step needs."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from psmckit.estimation.maximization import maximize
from psmckit.model.pattern import normalize_time_segment_pattern

if TYPE_CHECKING:
    from collections.abc import Sequence

    from psmckit.estimation.maximization import MaximizationResult
    from psmckit.estimation.optimizer import Optimizer
    from psmckit.estimation.statistics import SufficientStatistics
    from psmckit.model.psmc import PSMCModel


@dataclass(frozen=True)
class MaximizationProblem:
    """Prior model, expected counts, and step settings.

    When *time_segment_pattern* is None each interval gets its own rate.
    """

    prior_model: PSMCModel
    statistics: SufficientStatistics
    time_segment_pattern: tuple[int, ...] | None = None
    fixed_recombination: bool = False
    name: str = "problem"

    @property
    def pattern(self) -> tuple[int, ...]:
        if self.time_segment_pattern is None:
            return (1,) * self.prior_model.nr_states
        return normalize_time_segment_pattern(self.time_segment_pattern)

    def with_options(
        self,
        time_segment_pattern: str | Sequence[int] | None = None,
        fixed_recombination: bool | None = None,
    ) -> MaximizationProblem:
        """Copy with the pattern and/or recombination flag overridden."""
        changes: dict[str, object] = {}
        if time_segment_pattern is not None:
            changes["time_segment_pattern"] = normalize_time_segment_pattern(
                time_segment_pattern
            )
        if fixed_recombination is not None:
            changes["fixed_recombination"] = fixed_recombination
        return replace(self, **changes)

    def solve(self, optimizer: Optimizer | None = None, **kwargs) -> MaximizationResult:
        return maximize(
            self.statistics,
            None,
            self.prior_model,
            self.pattern,
            self.fixed_recombination,
            optimizer=optimizer,
            **kwargs,
        )
