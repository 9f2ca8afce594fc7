"""Q-function objective for the M-step.

Builds a callable that maps a log-space parameter vector to the negative
expected complete-data log-likelihood, suitable for use with
``scipy.optimize.minimize``.

Penalty policy: a term whose expected count is zero contributes nothing,
whatever its probability (``0 * log 0 := 0``).  If a term with a
positive count has a probability that is zero, negative or non-finite,
the log-likelihood is not finite and the objective returns *penalty*
instead, steering the optimiser away from that region.  Probabilities
are never clamped to an epsilon.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from typing import TYPE_CHECKING

import numpy as np

from psmckit.exceptions import ConfigurationError

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from psmckit.estimation.codec import ParameterCodec
    from psmckit.estimation.statistics import SufficientStatistics
    from psmckit.model.base import CoalescentModel, ModelFactory


def transition_probabilities(model: CoalescentModel) -> NDArray[np.float64]:
    """Full transition matrix of *model*."""
    matrix = getattr(model, "transition_matrix", None)
    if matrix is not None:
        return np.asarray(matrix, dtype=np.float64)
    n = model.nr_states
    return np.array(
        [[model.transition_prob(a, b) for b in range(n)] for a in range(n)],
        dtype=np.float64,
    )


def emission_probabilities(model: CoalescentModel) -> NDArray[np.float64]:
    """``2 x nr_states`` emission matrix of *model* (symbols 1 and 2)."""
    matrix = getattr(model, "emission_matrix", None)
    if matrix is not None:
        return np.asarray(matrix, dtype=np.float64)
    n = model.nr_states
    return np.array(
        [[model.emission_prob(symbol, a) for a in range(n)] for symbol in (1, 2)],
        dtype=np.float64,
    )


def _weighted_log_sum(counts: NDArray[np.float64], probs: NDArray[np.float64]) -> float:
    observed = counts > 0.0
    with np.errstate(divide="ignore", invalid="ignore"):
        logs = np.log(probs[observed])
    return float(np.sum(counts[observed] * logs))


def expected_log_likelihood(
    statistics: SufficientStatistics,
    model: CoalescentModel,
) -> float:
    """Q-function value of *model* given expected counts.

    May be ``-inf`` or NaN when a probability with positive count is not
    strictly positive; callers decide how to treat that.
    """
    q = _weighted_log_sum(statistics.transitions, transition_probabilities(model))
    q += _weighted_log_sum(statistics.emissions, emission_probabilities(model))
    return q


def build_objective(
    statistics: SufficientStatistics,
    prior_model: CoalescentModel,
    codec: ParameterCodec,
    *,
    model_factory: ModelFactory | None = None,
    penalty: float = 1e10,
    cache: bool = True,
    cache_max_size: int = 2048,
) -> Callable[[NDArray[np.float64]], float]:
    """Build the negative Q-function objective.

    Returns a callable ``f(x) -> float`` where *x* is a log-space vector
    laid out by *codec*.  The function decodes *x*, builds a candidate
    model with the prior's mutation rate, and returns ``-Q`` so that it
    can be **minimised**.

    The closure only holds read-only references; evaluating it has no
    side effects apart from the optional memoisation.

    Args:
        statistics: Expected counts from the E-step (held fixed).
        prior_model: Model of the previous EM iteration.
        codec: Layout of the parameter vector.
        model_factory: Builds candidate models; defaults to
            :class:`~psmckit.model.psmc.PSMCModel` on the prior's time grid.
        penalty: Value returned when the log-likelihood is not finite.
        cache: Enable memoization for repeated ``x`` evaluations.
        cache_max_size: Maximum number of cached points (LRU eviction).
            Ignored when ``cache=False``.

    Returns:
        Callable that maps ``x`` (1-D array) to ``-Q`` (scalar float).

    Raises:
        ConfigurationError: If the cache size is invalid, or (when
            called) if ``x`` has the wrong length.
    """
    if not np.isfinite(penalty):
        raise ConfigurationError(f"penalty must be finite, got {penalty}")

    cache_store: OrderedDict[bytes, float] | None = None
    cache_hits = 0
    cache_misses = 0
    if cache:
        if cache_max_size < 1:
            raise ConfigurationError("cache_max_size must be >= 1 when cache=True")
        cache_store = OrderedDict()

    def _cache_get(key: bytes) -> float | None:
        nonlocal cache_hits
        if cache_store is None:
            return None
        val = cache_store.pop(key, None)
        if val is None:
            return None
        cache_store[key] = val
        cache_hits += 1
        return val

    def _cache_put(key: bytes, value: float) -> None:
        nonlocal cache_misses
        if cache_store is None:
            return
        cache_misses += 1
        cache_store[key] = value
        if len(cache_store) > cache_max_size:
            cache_store.popitem(last=False)

    def objective(x: NDArray[np.float64]) -> float:
        x_arr = np.asarray(x, dtype=np.float64).reshape(-1)
        if x_arr.shape[0] != codec.n_params:
            raise ConfigurationError(
                f"Expected x with length {codec.n_params}, got {x_arr.shape[0]}"
            )
        if not np.all(np.isfinite(x_arr)):
            return penalty

        key = x_arr.tobytes()
        cached = _cache_get(key)
        if cached is not None:
            return cached

        candidate = codec.decode_model(x_arr, prior_model, model_factory)
        q = expected_log_likelihood(statistics, candidate)
        out = -q if np.isfinite(q) else penalty

        _cache_put(key, out)
        return out

    def cache_info() -> dict[str, int]:
        return {
            "enabled": int(cache_store is not None),
            "hits": cache_hits,
            "misses": cache_misses,
            "size": len(cache_store) if cache_store is not None else 0,
            "max_size": cache_max_size if cache_store is not None else 0,
        }

    def cache_clear() -> None:
        nonlocal cache_hits, cache_misses
        if cache_store is not None:
            cache_store.clear()
        cache_hits = 0
        cache_misses = 0

    objective.cache_info = cache_info  # type: ignore[attr-defined]
    objective.cache_clear = cache_clear  # type: ignore[attr-defined]

    return objective
