"""Input/output: problem loading and model export."""

from psmckit.io.formats import (
    load_yaml,
    model_to_dict,
    model_to_frame,
    model_to_yaml,
    read_model_table,
    write_model_table,
    yaml_to_problem,
)
from psmckit.io.load import load_problem

__all__ = [
    "load_problem",
    "load_yaml",
    "yaml_to_problem",
    "model_to_dict",
    "model_to_yaml",
    "model_to_frame",
    "write_model_table",
    "read_model_table",
]
