"""YAML format for M-step problems.

A problem file bundles the prior model, the expected counts from the
E-step and the step settings:

```yaml
name: four_state

model:
  mutation_rate: 0.01
  recombination_rate: 0.001
  lambda: [1.0, 1.0, 4.0, 4.0]
  time_factor: 1.0

time_segment_pattern: 1*2+1*2
fixed_recombination: false

statistics:
  transitions:
    - [900, 20, 5, 1]
    - [20, 800, 30, 2]
    - [5, 30, 700, 10]
    - [1, 2, 10, 600]
  emissions:
    - [980, 950, 900, 850]
    - [20, 50, 100, 150]
```

``time_boundaries`` (the finite boundaries, starting at 0) may replace
``time_factor``.  ``nr_states`` is optional and checked against the
length of ``lambda`` when given.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any

from psmckit.estimation.problem import MaximizationProblem
from psmckit.estimation.statistics import SufficientStatistics
from psmckit.exceptions import ParseError, PSMCKitError
from psmckit.model.pattern import (
    format_time_segment_pattern,
    normalize_time_segment_pattern,
)
from psmckit.model.psmc import PSMCModel
from psmckit.model.time_intervals import TimeIntervals


def _require_yaml():
    try:
        import yaml
    except ImportError as exc:
        raise ImportError(
            "PyYAML is required for YAML format. "
            "Install with: pip install pyyaml"
        ) from exc
    return yaml


def _parse_model(data: Any) -> PSMCModel:
    if not isinstance(data, dict):
        raise ParseError(f"'model' must be a mapping, got {type(data).__name__}")

    for key in ("mutation_rate", "recombination_rate", "lambda"):
        if key not in data:
            raise ParseError(f"Model is missing '{key}'")

    lambda_vec = data["lambda"]
    if not isinstance(lambda_vec, list) or not lambda_vec:
        raise ParseError("'lambda' must be a non-empty list of rates")
    nr_states = int(data.get("nr_states", len(lambda_vec)))

    if "time_boundaries" in data:
        bounds = [float(b) for b in data["time_boundaries"]]
        intervals = TimeIntervals(tuple(bounds) + (math.inf,))
    else:
        intervals = TimeIntervals.standard(nr_states, float(data.get("time_factor", 1.0)))

    return PSMCModel(
        mutation_rate=float(data["mutation_rate"]),
        recombination_rate=float(data["recombination_rate"]),
        lambda_vec=[float(v) for v in lambda_vec],
        nr_states=nr_states,
        time_intervals=intervals,
    )


def _parse_statistics(data: Any) -> SufficientStatistics:
    if not isinstance(data, dict):
        raise ParseError(f"'statistics' must be a mapping, got {type(data).__name__}")
    for key in ("transitions", "emissions"):
        if key not in data:
            raise ParseError(f"Statistics are missing '{key}'")
    return SufficientStatistics(data["transitions"], data["emissions"])


def _parse_yaml_content(data: dict[str, Any]) -> MaximizationProblem:
    """Parse a YAML dict into a :class:`MaximizationProblem`."""
    if not isinstance(data, dict):
        raise ParseError("Problem content must be a mapping")
    if "model" not in data:
        raise ParseError("Problem is missing the 'model' section")
    if "statistics" not in data:
        raise ParseError("Problem is missing the 'statistics' section")

    try:
        prior_model = _parse_model(data["model"])
        statistics = _parse_statistics(data["statistics"])
        pattern = data.get("time_segment_pattern")
        if pattern is not None:
            pattern = normalize_time_segment_pattern(
                pattern if isinstance(pattern, list) else str(pattern)
            )
    except ParseError:
        raise
    except (PSMCKitError, TypeError, ValueError) as exc:
        raise ParseError(f"Invalid problem content: {exc}") from exc

    fixed = data.get("fixed_recombination", False)
    if not isinstance(fixed, bool):
        raise ParseError(f"'fixed_recombination' must be true or false, got {fixed!r}")

    return MaximizationProblem(
        prior_model=prior_model,
        statistics=statistics,
        time_segment_pattern=pattern,
        fixed_recombination=fixed,
        name=str(data.get("name", "problem")),
    )


def load_yaml(path: str | Path) -> MaximizationProblem:
    """Load an M-step problem from a YAML file.

    Args:
        path: Path to YAML file

    Returns:
        MaximizationProblem
    """
    yaml = _require_yaml()

    path = Path(path)
    with open(path) as f:
        data = yaml.safe_load(f)

    return _parse_yaml_content(data)


def yaml_to_problem(content: str, name: str = "problem") -> MaximizationProblem:
    """Parse YAML string into an M-step problem.

    Args:
        content: YAML content as string
        name: Default problem name if not in YAML
    """
    yaml = _require_yaml()

    data = yaml.safe_load(content)
    if isinstance(data, dict) and "name" not in data:
        data["name"] = name

    return _parse_yaml_content(data)


def model_to_dict(model: PSMCModel) -> dict[str, Any]:
    """Plain-Python representation of *model* (the ``model`` section)."""
    boundaries = list(model.time_intervals.boundaries[:-1])
    return {
        "mutation_rate": float(model.mutation_rate),
        "recombination_rate": float(model.recombination_rate),
        "nr_states": int(model.nr_states),
        "lambda": [float(v) for v in model.lambda_vec],
        "time_boundaries": [float(b) for b in boundaries],
    }


def model_to_yaml(
    model: PSMCModel,
    time_segment_pattern: tuple[int, ...] | None = None,
) -> str:
    """Export *model* as YAML, usable as the prior of the next step.

    Args:
        model: Model to export
        time_segment_pattern: Included when given

    Returns:
        YAML string representation
    """
    yaml = _require_yaml()

    data: dict[str, Any] = {"model": model_to_dict(model)}
    if time_segment_pattern is not None:
        data["time_segment_pattern"] = format_time_segment_pattern(time_segment_pattern)
    return yaml.dump(data, default_flow_style=False, sort_keys=False)
