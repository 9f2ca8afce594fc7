"""Format readers and writers: YAML problems, tab-separated model tables."""

from psmckit.io.formats.table import (
    model_to_frame,
    read_model_table,
    write_model_table,
)
from psmckit.io.formats.yaml_format import (
    load_yaml,
    model_to_dict,
    model_to_yaml,
    yaml_to_problem,
)

__all__ = [
    "load_yaml",
    "yaml_to_problem",
    "model_to_dict",
    "model_to_yaml",
    "model_to_frame",
    "write_model_table",
    "read_model_table",
]
