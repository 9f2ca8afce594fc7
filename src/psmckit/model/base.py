"""Capability interfaces for coalescent models.

The estimation code only needs to read a model's rates and ask it for
transition and emission probabilities, and to build a fresh model from
candidate rates.  Anything satisfying these protocols can be used in
place of :class:`~psmckit.model.psmc.PSMCModel`, test doubles included.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    import numpy as np
    from numpy.typing import NDArray


class CoalescentModel(Protocol):
    """Read-only view of a piecewise-constant coalescent HMM."""

    @property
    def mutation_rate(self) -> float: ...

    @property
    def recombination_rate(self) -> float: ...

    @property
    def lambda_vec(self) -> NDArray[np.float64]: ...

    @property
    def nr_states(self) -> int: ...

    def transition_prob(self, a: int, b: int) -> float:
        """Probability of moving from hidden state *a* to *b*."""
        ...

    def emission_prob(self, symbol: int, a: int) -> float:
        """Probability of observing *symbol* (1 or 2) in hidden state *a*."""
        ...


class ModelFactory(Protocol):
    """Builds a model from candidate rates."""

    def __call__(
        self,
        mutation_rate: float,
        recombination_rate: float,
        lambda_vec: Sequence[float] | NDArray[np.float64],
        nr_states: int,
    ) -> CoalescentModel: ...
