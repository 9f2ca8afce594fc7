"""Tab-separated model tables.

One row per time interval with the columns ``time_index``,
``left_time_boundary``, ``right_time_boundary`` and ``lambda``.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from psmckit.model.psmc import PSMCModel

COLUMNS = ["time_index", "left_time_boundary", "right_time_boundary", "lambda"]


def model_to_frame(model: PSMCModel) -> pd.DataFrame:
    """Interval table of *model* as a DataFrame."""
    bounds = model.time_intervals.as_array()
    return pd.DataFrame(
        {
            "time_index": np.arange(model.nr_states),
            "left_time_boundary": bounds[:-1],
            "right_time_boundary": bounds[1:],
            "lambda": np.asarray(model.lambda_vec, dtype=np.float64),
        },
        columns=COLUMNS,
    )


def write_model_table(model: PSMCModel, path: str | Path) -> Path:
    """Write the interval table of *model*; returns the path written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    model_to_frame(model).to_csv(path, sep="\t", index=False)
    return path


def read_model_table(path: str | Path) -> pd.DataFrame:
    """Read a table written by :func:`write_model_table`."""
    frame = pd.read_csv(path, sep="\t")
    missing = [c for c in COLUMNS if c not in frame.columns]
    if missing:
        raise ValueError(f"Model table is missing columns: {missing}")
    return frame[COLUMNS]
