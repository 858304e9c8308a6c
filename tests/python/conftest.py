"""
Pytest configuration and shared fixtures for ndbuf tests.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

import ndbuf
from ndbuf import Array1D, Array2D, BufferHandle


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def default_checks():
    """Run every test with all checks enabled and restore afterwards."""
    saved = ndbuf.config.checks
    ndbuf.config.checks = ndbuf.CheckConfig()
    yield
    ndbuf.config.checks = saved


@pytest.fixture
def int_array():
    """Array1D of int32 holding [1, 2, 3, 4, 5]."""
    return Array1D.from_iterable([1, 2, 3, 4, 5], dtype='int32')


@pytest.fixture
def float_array():
    """Array1D of float64 holding [0.5, 1.5, 2.5]."""
    return Array1D.from_iterable([0.5, 1.5, 2.5], dtype='float64')


@pytest.fixture
def small_matrix():
    """Create a small 2x3 int64 matrix.

    Matrix:
    [[1, 2, 3],
     [4, 5, 6]]
    """
    return Array2D.from_rows([[1, 2, 3], [4, 5, 6]], dtype='int64')


@pytest.fixture
def host_array():
    """Host-owned numpy buffer shared with adaptors under test."""
    return np.arange(6, dtype=np.float64)


@pytest.fixture
def host_handle(host_array):
    """Handle on host_array."""
    return BufferHandle(host_array)
