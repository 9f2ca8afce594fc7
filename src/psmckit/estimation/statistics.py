"""Expected transition and emission counts produced by the E-step."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from psmckit.exceptions import ConfigurationError, ShapeMismatchError


def _as_count_matrix(name: str, values: ArrayLike) -> NDArray[np.float64]:
    try:
        arr = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{name}' is not a numeric matrix") from exc
    if arr.ndim != 2:
        raise ConfigurationError(f"'{name}' must be 2-D, got {arr.ndim}-D")
    if not np.all(np.isfinite(arr)):
        raise ConfigurationError(f"'{name}' contains non-finite values")
    if np.any(arr < 0.0):
        raise ConfigurationError(f"'{name}' contains negative counts")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class SufficientStatistics:
    """Expected counts summarising the data for one M-step.

    Attributes:
        transitions: ``nr_states x nr_states`` expected transition counts.
        emissions: ``2 x nr_states`` expected emission counts; row 0 for
            homozygous sites, row 1 for heterozygous sites.
    """

    transitions: NDArray[np.float64]
    emissions: NDArray[np.float64]

    def __post_init__(self) -> None:
        object.__setattr__(self, "transitions", _as_count_matrix("transitions", self.transitions))
        object.__setattr__(self, "emissions", _as_count_matrix("emissions", self.emissions))

    @property
    def nr_states(self) -> int:
        return int(self.transitions.shape[0])

    @property
    def total_transitions(self) -> float:
        return float(self.transitions.sum())

    @property
    def total_emissions(self) -> float:
        return float(self.emissions.sum())

    def validate(self, nr_states: int) -> None:
        """Check both matrices against a model with *nr_states* states."""
        if self.transitions.shape != (nr_states, nr_states):
            raise ShapeMismatchError(
                "transitions", (nr_states, nr_states), self.transitions.shape
            )
        if self.emissions.shape != (2, nr_states):
            raise ShapeMismatchError("emissions", (2, nr_states), self.emissions.shape)
