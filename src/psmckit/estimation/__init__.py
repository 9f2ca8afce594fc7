"""Estimation: parameter codec, Q-function objective, and the M-step driver."""

from psmckit.estimation.codec import ParameterCodec, default_model_factory
from psmckit.estimation.likelihood import (
    build_objective,
    emission_probabilities,
    expected_log_likelihood,
    transition_probabilities,
)
from psmckit.estimation.maximization import (
    MaximizationResult,
    maximize,
    run_maximization_step,
    validate_problem,
)
from psmckit.estimation.optimizer import Optimizer, PowellOptimizer
from psmckit.estimation.problem import MaximizationProblem
from psmckit.estimation.statistics import SufficientStatistics

__all__ = [
    "ParameterCodec",
    "default_model_factory",
    "build_objective",
    "expected_log_likelihood",
    "transition_probabilities",
    "emission_probabilities",
    "SufficientStatistics",
    "Optimizer",
    "PowellOptimizer",
    "MaximizationResult",
    "MaximizationProblem",
    "maximize",
    "run_maximization_step",
    "validate_problem",
]
