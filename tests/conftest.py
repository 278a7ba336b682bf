import logging

import numpy as np
import pytest

from crystalflow.domain.geometry import MoleculeGeometry
from crystalflow.infra.logging import reset_logging


@pytest.fixture(autouse=True)
def _clean_logging(monkeypatch):
    """Commands attach file handlers to the root logger; drop them after each test."""
    monkeypatch.delenv("CRYSTALFLOW_LOG_LEVEL", raising=False)
    yield
    reset_logging()
    logging.getLogger().setLevel(logging.WARNING)


@pytest.fixture
def aligned_molecule():
    """Already centered, extents 6 > 3 > 1 along X > Y > Z."""
    coords = np.array([
        [3.0, 0.0, 0.0], [-3.0, 0.0, 0.0],
        [0.0, 1.5, 0.0], [0.0, -1.5, 0.0],
        [0.0, 0.0, 0.5], [0.0, 0.0, -0.5],
    ])
    return MoleculeGeometry.from_arrays(["C", "C", "H", "H", "O", "O"], coords, name="aligned")


@pytest.fixture
def tilted_molecule():
    """A rigid, asymmetric fragment rotated off the coordinate axes and shifted."""
    base = np.array([
        [4.0, 0.0, 0.0], [-4.0, 0.0, 0.0],
        [0.0, 2.0, 0.0], [0.0, -2.0, 0.0],
        [0.0, 0.0, 0.7], [0.0, 0.0, -0.7],
        [1.0, 0.5, 0.1],
    ])
    a, b = np.radians(35.0), np.radians(-20.0)
    rz = np.array([[np.cos(a), -np.sin(a), 0.0], [np.sin(a), np.cos(a), 0.0], [0.0, 0.0, 1.0]])
    rx = np.array([[1.0, 0.0, 0.0], [0.0, np.cos(b), -np.sin(b)], [0.0, np.sin(b), np.cos(b)]])
    coords = base @ (rx @ rz).T + np.array([5.0, -2.0, 7.5])
    return MoleculeGeometry.from_arrays(["C", "C", "N", "N", "O", "O", "H"], coords, name="tilted")
