"""
psmckit: maximization step for piecewise-constant coalescent HMMs.

Re-estimates the coalescence rates (tied within time segments) and the
recombination rate of a pairwise SMC model from the expected transition
and emission counts of an E-step.

Quick Start
-----------
>>> from psmckit import PSMCModel, run_maximization_step
>>> prior = PSMCModel(0.01, 0.001, [1.0, 1.0, 4.0, 4.0], 4)
>>> new_model = run_maximization_step(transitions, emissions, prior, "2*2")

From a problem file:

>>> from psmckit import load_problem
>>> result = load_problem("step.yaml").solve()
>>> print(result.summary())
"""

from psmckit._version import __version__
from psmckit.estimation import (
    MaximizationProblem,
    MaximizationResult,
    ParameterCodec,
    PowellOptimizer,
    SufficientStatistics,
    build_objective,
    expected_log_likelihood,
    maximize,
    run_maximization_step,
)
from psmckit.exceptions import (
    ConfigurationError,
    ModelError,
    ParseError,
    PSMCKitError,
)
from psmckit.io import load_problem, model_to_frame, write_model_table
from psmckit.model import PSMCModel, TimeIntervals, parse_time_segment_pattern

__all__ = [
    # Entry points
    "run_maximization_step",
    "maximize",
    "load_problem",

    # Building blocks
    "ParameterCodec",
    "build_objective",
    "expected_log_likelihood",
    "PowellOptimizer",

    # Data
    "PSMCModel",
    "TimeIntervals",
    "SufficientStatistics",
    "MaximizationProblem",
    "MaximizationResult",
    "parse_time_segment_pattern",

    # Output
    "model_to_frame",
    "write_model_table",

    # Errors
    "PSMCKitError",
    "ConfigurationError",
    "ModelError",
    "ParseError",

    "__version__",
]
