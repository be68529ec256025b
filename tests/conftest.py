"""
Shared fixtures for the fermtrack test suite.

The src/ directory is put on sys.path so the tests also run from a plain
checkout without ``pip install -e .``.
"""

import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from fermtrack.config import default_config  # noqa: E402


@pytest.fixture
def pair_samples():
    return [(0.0, 1.100), (3.0, 1.060)]


@pytest.fixture
def triple_samples():
    return [(0.0, 1.100), (3.0, 1.060), (6.0, 1.030)]


@pytest.fixture
def seeded_config():
    return default_config().with_seed(1234)
