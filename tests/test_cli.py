"""CLI tests."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest
import yaml

from psmckit.cli.main import create_parser, main


def test_cli_without_command_prints_help(capsys):
    assert main([]) == 0
    assert "maximize" in capsys.readouterr().out


def test_cli_version():
    with pytest.raises(SystemExit) as exc:
        create_parser().parse_args(["--version"])
    assert exc.value.code == 0


def test_cli_info(problems_dir, capsys):
    rc = main(["info", str(problems_dir / "four_state.yaml")])
    out = capsys.readouterr().out
    assert rc == 0
    assert "PROBLEM: four_state" in out
    assert "2*2" in out
    assert "estimated" in out


def test_cli_maximize_writes_table(problems_dir, tmp_path: Path, capsys):
    output = tmp_path / "four_state.final.txt"
    rc = main(["maximize", str(problems_dir / "four_state.yaml"), "-o", str(output)])

    assert rc == 0
    assert "Q after" in capsys.readouterr().out
    df = pd.read_csv(output, sep="\t")
    assert list(df.columns) == [
        "time_index",
        "left_time_boundary",
        "right_time_boundary",
        "lambda",
    ]
    assert len(df) == 4
    assert df["lambda"].iloc[0] == df["lambda"].iloc[1]
    assert df["lambda"].iloc[2] == df["lambda"].iloc[3]
    assert (df["lambda"] > 0).all()


def test_cli_maximize_writes_yaml(problems_dir, tmp_path: Path):
    output = tmp_path / "next.yaml"
    rc = main(
        [
            "maximize",
            str(problems_dir / "four_state.yaml"),
            "--fixed-recombination",
            "-p", "1*1+1*3",
            "-o", str(output),
        ]
    )

    assert rc == 0
    data = yaml.safe_load(output.read_text())
    assert data["time_segment_pattern"] == "1*1+1*3"
    assert data["model"]["recombination_rate"] == 0.002
    assert len(data["model"]["lambda"]) == 4


def test_cli_maximize_with_max_iter(problems_dir):
    rc = main(["-v", "maximize", str(problems_dir / "four_state.yaml"), "--max-iter", "2"])
    assert rc == 0


def test_cli_rejects_pattern_mismatch(problems_dir, capsys):
    rc = main(["maximize", str(problems_dir / "bad_pattern.yaml")])
    assert rc == 1
    assert "covers 3 intervals" in capsys.readouterr().err


def test_cli_rejects_invalid_pattern_override(problems_dir):
    rc = main(["maximize", str(problems_dir / "four_state.yaml"), "-p", "2*"])
    assert rc == 1


def test_cli_rejects_invalid_max_iter(problems_dir):
    rc = main(["maximize", str(problems_dir / "four_state.yaml"), "--max-iter", "0"])
    assert rc == 1


def test_cli_missing_file(tmp_path: Path, capsys):
    rc = main(["maximize", str(tmp_path / "missing.yaml")])
    assert rc == 1
    assert "not found" in capsys.readouterr().err
