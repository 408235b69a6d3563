"""
Lunar industrialisation readiness.

Readiness blends cumulative launched mass, global compute, orbital power and
calendar maturity through log-logistic scores. Nuclear power pulls it
forward; very efficient compute paradigms push it back, since a fleet that
needs little mass never has to leave Earth's gravity well for materials.
"""

from __future__ import annotations

import math
from typing import Iterable

from scipy.special import expit

from .config.params import Params
from .entities import LunarReadiness, SimulationState
from .utils import clamp

# 50% points of each component score
MASS_THRESHOLD_KG = 5e8
COMPUTE_THRESHOLD_EXAFLOPS = 2000.0
POWER_THRESHOLD_TW = 5.0
TIME_THRESHOLD_YEAR = 2050.0

DEFAULT_STEEPNESS = 4.0
TIME_STEEPNESS = 8.0

W_MASS = 0.35
W_COMPUTE = 0.25
W_POWER = 0.20
W_TIME = 0.20

FISSION_BONUS = 0.15
FUSION_BONUS = 0.25
THERMO_PENALTY = 0.20
PHOTONIC_PENALTY = 0.10

READY_THRESHOLD = 0.70
BUILDING_THRESHOLD = 0.40
UNLOCK_BUILD_YEARS = 10

MASS_DRIVER_COST_PER_KG = 5.0


def readiness_sigmoid(x: float, x0: float, k: float = DEFAULT_STEEPNESS) -> float:
    """Log-logistic score 1 / (1 + (x0/x)^k), 0.5 at x == x0."""
    x = max(x, 1e-3)
    return float(expit(k * (math.log(x) - math.log(x0))))


def get_lunar_readiness(state: SimulationState, params: Params) -> LunarReadiness:
    """Readiness index and component scores for the year in `state`."""
    mass_score = readiness_sigmoid(state.cumulative_mass_to_orbit_kg, MASS_THRESHOLD_KG)
    compute_score = readiness_sigmoid(state.global_compute_exaflops, COMPUTE_THRESHOLD_EXAFLOPS)
    power_score = readiness_sigmoid(state.orbital_power_tw, POWER_THRESHOLD_TW)
    time_score = readiness_sigmoid(state.year, TIME_THRESHOLD_YEAR, TIME_STEEPNESS)

    year = state.year
    bonus = 0.0
    if params.fission_active(year):
        bonus += FISSION_BONUS
    if params.fusion_active(year):
        bonus += FUSION_BONUS
    penalty = 0.0
    if params.thermo_active(year):
        penalty += THERMO_PENALTY
    if params.photonic_active(year):
        penalty += PHOTONIC_PENALTY

    base = (
        W_MASS * mass_score
        + W_COMPUTE * compute_score
        + W_POWER * power_score
        + W_TIME * time_score
    )
    index = clamp(base + bonus - penalty, 0.0, 1.0)

    if index >= READY_THRESHOLD:
        status = "Ready for lunar infrastructure"
    elif penalty > 0.15 and mass_score < 0.3:
        status = "Earth launch sufficient"
    elif index >= BUILDING_THRESHOLD:
        status = "Building toward viability"
    else:
        status = "Not ready"

    return LunarReadiness(
        index=index,
        mass_score=mass_score,
        compute_score=compute_score,
        power_score=power_score,
        time_score=time_score,
        tech_adjustment=bonus - penalty,
        status=status,
    )


def get_lunar_unlock_year(history: Iterable[SimulationState]) -> int | None:
    """First year readiness reaches the threshold, plus the build-out time."""
    for state in history:
        if state.lunar_readiness >= READY_THRESHOLD:
            return state.year + UNLOCK_BUILD_YEARS
    return None


def get_cislunar_launch_cost(year: int, base_cost: float, unlock_year: int | None) -> float:
    """Cislunar $/kg; collapses to mass-driver cost once lunar supply is online."""
    if unlock_year is not None and year >= unlock_year:
        return MASS_DRIVER_COST_PER_KG
    return base_cost
