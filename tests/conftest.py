"""Shared fixtures.

Full scenario runs are the slow part of the suite, so they are computed once
per session and shared read-only.
"""

from __future__ import annotations

import pytest

from orbital_compute.config.params import Params
from orbital_compute.simulation import compute_all


@pytest.fixture(scope="session")
def default_params() -> Params:
    return Params()


@pytest.fixture(scope="session")
def all_results(default_params):
    return compute_all(default_params)


@pytest.fixture(scope="session")
def baseline_result(all_results):
    return all_results["baseline"]
