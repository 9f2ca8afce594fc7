"""Tests for problem loading and model export."""

from __future__ import annotations

import math
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
import yaml

from psmckit.estimation import MaximizationProblem
from psmckit.exceptions import ParseError
from psmckit.io import (
    load_problem,
    model_to_frame,
    model_to_yaml,
    read_model_table,
    write_model_table,
    yaml_to_problem,
)
from psmckit.model import PSMCModel, TimeIntervals


def _problem_dict() -> dict:
    return {
        "name": "tiny",
        "model": {
            "mutation_rate": 0.01,
            "recombination_rate": 0.001,
            "lambda": [1.0, 1.0, 4.0, 4.0],
        },
        "time_segment_pattern": [2, 2],
        "statistics": {
            "transitions": np.eye(4).tolist(),
            "emissions": [[1.0, 1.0, 1.0, 1.0], [0.0, 0.0, 0.0, 0.0]],
        },
    }


class TestLoadProblem:
    def test_load_yaml_file(self, problems_dir):
        problem = load_problem(problems_dir / "four_state.yaml")
        assert isinstance(problem, MaximizationProblem)
        assert problem.name == "four_state"
        assert problem.pattern == (2, 2)
        assert problem.fixed_recombination is False
        assert problem.prior_model.nr_states == 4
        assert problem.prior_model.recombination_rate == 0.002
        assert problem.statistics.transitions.shape == (4, 4)
        assert problem.statistics.emissions.shape == (2, 4)

    def test_load_dict(self):
        problem = load_problem(_problem_dict())
        assert problem.name == "tiny"
        assert problem.pattern == (2, 2)
        np.testing.assert_array_equal(problem.prior_model.lambda_vec, [1.0, 1.0, 4.0, 4.0])

    def test_default_pattern_is_one_segment_per_interval(self):
        data = _problem_dict()
        del data["time_segment_pattern"]
        assert load_problem(data).pattern == (1, 1, 1, 1)

    def test_pattern_string(self):
        data = _problem_dict()
        data["time_segment_pattern"] = "1*1+1*3"
        assert load_problem(data).pattern == (1, 3)

    def test_time_factor(self):
        data = _problem_dict()
        data["model"]["time_factor"] = 0.1
        model = load_problem(data).prior_model
        assert model.time_intervals == TimeIntervals.standard(4, 0.1)

    def test_time_boundaries(self):
        data = _problem_dict()
        data["model"]["time_boundaries"] = [0.0, 0.5, 1.0, 2.0]
        model = load_problem(data).prior_model
        assert model.time_intervals.boundaries == (0.0, 0.5, 1.0, 2.0, math.inf)

    def test_yaml_string(self):
        problem = yaml_to_problem(yaml.safe_dump(_problem_dict()).replace("name: tiny\n", ""))
        assert problem.name == "problem"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_problem(tmp_path / "nope.yaml")

    def test_unknown_extension(self, tmp_path: Path):
        path = tmp_path / "problem.txt"
        path.write_text("model: {}\n")
        with pytest.raises(ValueError, match="Cannot determine format"):
            load_problem(path)

    @pytest.mark.parametrize("section", ["model", "statistics"])
    def test_missing_section(self, section):
        data = _problem_dict()
        del data[section]
        with pytest.raises(ParseError, match=section):
            load_problem(data)

    def test_missing_model_key(self):
        data = _problem_dict()
        del data["model"]["lambda"]
        with pytest.raises(ParseError, match="lambda"):
            load_problem(data)

    def test_invalid_rate_is_parse_error(self):
        data = _problem_dict()
        data["model"]["recombination_rate"] = -1.0
        with pytest.raises(ParseError, match="recombination_rate"):
            load_problem(data)

    def test_invalid_pattern_is_parse_error(self):
        data = _problem_dict()
        data["time_segment_pattern"] = "2*x"
        with pytest.raises(ParseError):
            load_problem(data)

    def test_fixed_recombination_must_be_bool(self):
        data = _problem_dict()
        data["fixed_recombination"] = "yes"
        with pytest.raises(ParseError, match="fixed_recombination"):
            load_problem(data)

    def test_with_options(self):
        problem = load_problem(_problem_dict())
        updated = problem.with_options(time_segment_pattern="4", fixed_recombination=True)
        assert updated.pattern == (4,)
        assert updated.fixed_recombination is True
        assert problem.pattern == (2, 2)


class TestExport:
    def test_model_to_frame(self, scenario_model):
        frame = model_to_frame(scenario_model)
        assert list(frame.columns) == [
            "time_index",
            "left_time_boundary",
            "right_time_boundary",
            "lambda",
        ]
        assert len(frame) == 4
        assert frame["left_time_boundary"].iloc[0] == 0.0
        assert math.isinf(frame["right_time_boundary"].iloc[-1])
        np.testing.assert_allclose(frame["lambda"], [1.0, 1.0, 4.0, 4.0])

    def test_write_and_read_table(self, scenario_model, tmp_path: Path):
        path = write_model_table(scenario_model, tmp_path / "out" / "model.final.txt")
        assert path.exists()
        assert "\t" in path.read_text().splitlines()[0]
        frame = read_model_table(path)
        pd.testing.assert_frame_equal(frame, model_to_frame(scenario_model))

    def test_read_table_missing_columns(self, tmp_path: Path):
        path = tmp_path / "bad.txt"
        path.write_text("time_index\tlambda\n0\t1.0\n")
        with pytest.raises(ValueError, match="missing columns"):
            read_model_table(path)

    def test_model_yaml_loads_back(self, tmp_path: Path):
        intervals = TimeIntervals.standard(4, 0.1)
        model = PSMCModel(0.01, 0.003, [2.0, 2.0, 0.5, 0.5], 4, intervals)
        text = model_to_yaml(model, (2, 2))
        data = yaml.safe_load(text)
        assert data["time_segment_pattern"] == "2*2"
        data["statistics"] = _problem_dict()["statistics"]

        loaded = load_problem(data).prior_model
        np.testing.assert_allclose(loaded.lambda_vec, model.lambda_vec)
        assert loaded.recombination_rate == model.recombination_rate
        np.testing.assert_allclose(
            loaded.time_intervals.as_array()[:-1], intervals.as_array()[:-1]
        )
