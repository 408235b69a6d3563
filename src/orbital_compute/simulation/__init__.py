"""Scenario simulation package."""

from .engine import (
    SCENARIO_ORDER,
    ScenarioEngine,
    compute_all,
    find_crossover_year,
    get_scenario_params,
    run_scenario,
)

__all__ = [
    "SCENARIO_ORDER",
    "ScenarioEngine",
    "compute_all",
    "find_crossover_year",
    "get_scenario_params",
    "run_scenario",
]
