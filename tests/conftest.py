"""Pytest configuration and shared fixtures."""

from pathlib import Path

import numpy as np
import pytest

from psmckit.estimation import SufficientStatistics
from psmckit.model import PSMCModel

FIXTURES_DIR = Path(__file__).parent / "fixtures"
PROBLEMS_DIR = FIXTURES_DIR / "problems"


def expected_counts(model: PSMCModel, n_sites: float = 1e6) -> SufficientStatistics:
    """Counts an E-step would report if *model* generated the data."""
    pi = np.asarray(model.stationary_distribution)
    transitions = n_sites * pi[:, None] * np.asarray(model.transition_matrix)
    emissions = n_sites * pi[None, :] * np.asarray(model.emission_matrix)
    return SufficientStatistics(transitions, emissions)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def problems_dir() -> Path:
    """Return path to problem fixtures directory."""
    return PROBLEMS_DIR


@pytest.fixture
def scenario_model() -> PSMCModel:
    """Four intervals in two rate-uniform segments."""
    return PSMCModel(0.01, 0.001, [1.0, 1.0, 4.0, 4.0], 4)


@pytest.fixture
def true_model() -> PSMCModel:
    return PSMCModel(0.01, 0.001, [0.5, 0.5, 2.0, 2.0], 4)


@pytest.fixture
def true_counts(true_model) -> SufficientStatistics:
    return expected_counts(true_model)
