"""Shared test configuration for batchsmooth."""

from __future__ import annotations

import os

import numpy as np
import pytest

_ENV_FULL = "BATCHSMOOTH_RUN_FULL_TESTS"


def pytest_configure(config):
    config.addinivalue_line("markers", f"slow: large problem sizes, run only when {_ENV_FULL} is set")


def pytest_collection_modifyitems(items):
    """Skip large-size tests unless the full-test environment variable is set."""
    if os.environ.get(_ENV_FULL):
        return

    skip_marker = pytest.mark.skip(
        reason=f"Skipped to keep the default test run fast. Set {_ENV_FULL}=1 to execute the full test battery."
    )
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_marker)


@pytest.fixture
def rng():
    """Seeded random number generator."""
    return np.random.default_rng(42)
