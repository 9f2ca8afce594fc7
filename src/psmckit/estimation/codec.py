"""Mapping between model rates and the optimiser's parameter vector.

The vector holds one log coalescence rate per time segment, followed by
the log recombination rate unless that rate is held fixed.  Decoding
exponentiates, so every real vector maps to strictly positive rates and
the optimisation is unconstrained.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray

from psmckit.exceptions import ConfigurationError
from psmckit.model.pattern import (
    normalize_time_segment_pattern,
    segment_offsets,
    validate_time_segment_pattern,
)
from psmckit.model.psmc import PSMCModel

if TYPE_CHECKING:
    from psmckit.model.base import CoalescentModel, ModelFactory

_TINY = float(np.finfo(np.float64).tiny)
_HUGE = float(np.finfo(np.float64).max)


def _positive_exp(values: ArrayLike) -> NDArray[np.float64]:
    """``exp`` clipped to the positive finite float64 range."""
    with np.errstate(over="ignore", under="ignore"):
        out = np.exp(np.asarray(values, dtype=np.float64))
    return np.clip(out, _TINY, _HUGE)


def default_model_factory(prior_model: CoalescentModel) -> ModelFactory:
    """Factory building models on the same time grid as *prior_model*."""
    intervals = getattr(prior_model, "time_intervals", None)
    return functools.partial(PSMCModel, time_intervals=intervals)


@dataclass(frozen=True, slots=True)
class ParameterCodec:
    """Encodes rates into a log-space vector and decodes them back.

    Attributes:
        pattern: Number of consecutive time intervals in each segment.
        fixed_recombination: Keep the recombination rate out of the
            vector and carry the prior value through unchanged.
    """

    pattern: tuple[int, ...]
    fixed_recombination: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "pattern", normalize_time_segment_pattern(self.pattern))
        object.__setattr__(self, "fixed_recombination", bool(self.fixed_recombination))

    @property
    def n_segments(self) -> int:
        return len(self.pattern)

    @property
    def n_params(self) -> int:
        """Length of the encoded vector."""
        return self.n_segments + (0 if self.fixed_recombination else 1)

    @property
    def nr_states(self) -> int:
        """Number of time intervals the pattern covers."""
        return sum(self.pattern)

    @property
    def segment_offsets(self) -> NDArray[np.int64]:
        return segment_offsets(self.pattern)

    def parameter_names(self) -> list[str]:
        names = [f"log_lambda_{i}" for i in range(self.n_segments)]
        if not self.fixed_recombination:
            names.append("log_rho")
        return names

    def check(self, model: CoalescentModel) -> None:
        validate_time_segment_pattern(self.pattern, model.nr_states)

    def encode(self, model: CoalescentModel) -> NDArray[np.float64]:
        """Log rates of *model*, one per segment (+ recombination).

        Each segment is represented by the rate of its first interval;
        segments are assumed to be rate-uniform already.
        """
        self.check(model)
        lambda_vec = np.asarray(model.lambda_vec, dtype=np.float64)
        x = np.log(lambda_vec[self.segment_offsets])
        if not self.fixed_recombination:
            x = np.append(x, np.log(model.recombination_rate))
        return x

    def decode(
        self,
        x: ArrayLike,
        prior_model: CoalescentModel,
    ) -> tuple[NDArray[np.float64], float]:
        """Rates ``(lambda_vec, recombination_rate)`` encoded by *x*.

        With fixed recombination a trailing slot in *x* is ignored and
        the prior's rate is returned.
        """
        self.check(prior_model)
        x_arr = np.asarray(x, dtype=np.float64).reshape(-1)
        if self.fixed_recombination:
            valid = x_arr.shape[0] in (self.n_segments, self.n_segments + 1)
        else:
            valid = x_arr.shape[0] == self.n_params
        if not valid:
            raise ConfigurationError(
                f"Expected parameter vector of length {self.n_params}, "
                f"got {x_arr.shape[0]}"
            )

        lambda_vec = np.repeat(_positive_exp(x_arr[: self.n_segments]), self.pattern)
        if self.fixed_recombination:
            recombination_rate = float(prior_model.recombination_rate)
        else:
            recombination_rate = float(_positive_exp(x_arr[-1]))
        return lambda_vec, recombination_rate

    def decode_model(
        self,
        x: ArrayLike,
        prior_model: CoalescentModel,
        model_factory: ModelFactory | None = None,
    ) -> CoalescentModel:
        """Build a new model from *x*, keeping the prior's mutation rate."""
        lambda_vec, recombination_rate = self.decode(x, prior_model)
        factory = model_factory or default_model_factory(prior_model)
        return factory(
            prior_model.mutation_rate,
            recombination_rate,
            lambda_vec,
            prior_model.nr_states,
        )

