"""Unified problem loading interface."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from psmckit.estimation.problem import MaximizationProblem


def load_problem(
    source: str | Path | dict,
    format: str | None = None,
) -> MaximizationProblem:
    """Load an M-step problem from file or dict.

    Automatically detects format based on file extension:
    - .yaml, .yml: YAML format
    - dict: Python dictionary (YAML-like structure)

    Args:
        source: File path or dictionary
        format: Override format detection ('yaml', 'dict')

    Returns:
        MaximizationProblem

    Raises:
        ValueError: If format cannot be determined
        FileNotFoundError: If file does not exist
        ParseError: If parsing fails

    Examples:
        problem = load_problem("step.yaml")
        result = problem.solve()
    """

    # Handle dict input
    if isinstance(source, dict):
        if format and format != "dict":
            raise ValueError(f"Dict input but format='{format}' specified")
        from psmckit.io.formats.yaml_format import _parse_yaml_content
        return _parse_yaml_content(source)

    path = Path(source)

    if not path.exists():
        raise FileNotFoundError(f"Problem file not found: {path}")

    if format is None:
        suffix = path.suffix.lower()
        if suffix in (".yaml", ".yml"):
            format = "yaml"
        else:
            raise ValueError(
                f"Cannot determine format from extension '{suffix}'. "
                "Use format='yaml' explicitly."
            )

    if format == "yaml":
        from psmckit.io.formats.yaml_format import load_yaml
        return load_yaml(path)

    raise ValueError(f"Unknown format: '{format}'. Supported: 'yaml'")
