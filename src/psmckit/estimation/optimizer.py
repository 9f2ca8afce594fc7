"""Derivative-free minimisers used by the M-step."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import optimize

logger = logging.getLogger(__name__)


class Optimizer(Protocol):
    """Minimises a scalar function of a vector without gradients."""

    def minimize(
        self,
        objective: Callable[[NDArray[np.float64]], float],
        initial_point: ArrayLike,
    ) -> NDArray[np.float64]:
        """Return a vector of the same length as *initial_point*."""
        ...


@dataclass(frozen=True, slots=True)
class PowellOptimizer:
    """Powell's conjugate direction method via ``scipy.optimize.minimize``.

    Deterministic for a deterministic objective and fixed start.  Powell
    only accepts improving steps, so the returned point never scores
    worse than the start.

    Attributes:
        maxiter: Maximum number of iterations (scipy default when None).
        xtol: Relative tolerance on the parameter vector.
        ftol: Relative tolerance on the objective.
    """

    maxiter: int | None = None
    xtol: float = 1e-4
    ftol: float = 1e-4

    def __post_init__(self) -> None:
        if self.maxiter is not None and self.maxiter < 1:
            raise ValueError(f"maxiter must be >= 1, got {self.maxiter}")
        if self.xtol <= 0.0 or self.ftol <= 0.0:
            raise ValueError("xtol and ftol must be > 0")

    def minimize(
        self,
        objective: Callable[[NDArray[np.float64]], float],
        initial_point: ArrayLike,
    ) -> NDArray[np.float64]:
        x0 = np.asarray(initial_point, dtype=np.float64).reshape(-1)
        options: dict[str, float | int] = {"xtol": self.xtol, "ftol": self.ftol}
        if self.maxiter is not None:
            options["maxiter"] = self.maxiter

        result = optimize.minimize(objective, x0, method="Powell", options=options)
        logger.debug(
            "Powell finished: success=%s nit=%s nfev=%s message=%s",
            result.success,
            getattr(result, "nit", "?"),
            result.nfev,
            result.message,
        )
        return np.asarray(result.x, dtype=np.float64).reshape(x0.shape)
