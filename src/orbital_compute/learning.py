"""
Cumulative state walk: R&D stock, launch-learning cadence and readiness.

More global compute accelerates R&D (a saturating stock K), and more orbital
flights accelerate launch learning. Both feed the per-year SimulationState
snapshots the orchestrator records.
"""

from __future__ import annotations

import math
from dataclasses import replace

from .config.params import Params
from .constants import STARSHIP_PAYLOAD_KG
from .entities import FleetResult, GroundResult, RnDBoost, SimulationState
from .lunar import get_lunar_readiness
from .physics import get_launch_floor
from .utils import clamp

# R&D stock
C_REF_EXAFLOPS = 100.0
ALPHA = 0.15
DELTA = 0.02
K_MAX = 5.0

# Launch cadence
BASELINE_FLIGHTS_PER_YEAR = 200.0  # non-compute heavy-lift demand
CADENCE_BOOST_THRESHOLD = 500.0
CADENCE_BOOST_MAX = 0.08

GLOBAL_COMPUTE_2026_EXAFLOPS = 100.0
EXAFLOPS_PER_GROUND_GW = 100.0 / 60.0


def update_rnd_stock(global_compute_exaflops: float, prev_k: float) -> float:
    """Advance the R&D stock one year: log-saturating growth with decay."""
    dk = ALPHA * math.log10(1.0 + max(0.0, global_compute_exaflops) / C_REF_EXAFLOPS) - DELTA * prev_k
    return clamp(prev_k + dk, 0.0, K_MAX)


def apply_rnd_boost(k: float) -> RnDBoost:
    """Parameter multipliers implied by R&D stock `k`."""
    return RnDBoost(
        chip_efficiency=1.0 + min(0.3 * k, 1.5),
        solar_efficiency=1.0 + min(0.1 * k, 0.3),
        manufacturing_cost=math.exp(-0.2 * k),
        launch_learn_boost=min(0.02 * k, 0.08),
    )


def get_cadence_boost(orbital_flights: float) -> float:
    total = orbital_flights + BASELINE_FLIGHTS_PER_YEAR
    return min(CADENCE_BOOST_MAX, total / CADENCE_BOOST_THRESHOLD * CADENCE_BOOST_MAX)


def get_effective_launch_learn_rate(orbital_flights: float, params: Params) -> float:
    """Launch learning rate boosted by flight cadence."""
    return params.launch_learn + get_cadence_boost(orbital_flights)


def init_simulation_state(start_year: int, params: Params) -> SimulationState:
    """State before the first simulated year."""
    return SimulationState(
        year=start_year,
        global_compute_exaflops=GLOBAL_COMPUTE_2026_EXAFLOPS,
        effective_launch_learn_rate=params.launch_learn,
        launch_cost_per_kg=params.launch_cost,
    )


def update_simulation_state(
    prev: SimulationState,
    year: int,
    fleet: FleetResult,
    gnd: GroundResult,
    params: Params,
) -> SimulationState:
    """Snapshot at the end of `year` given that year's fleet and ground results."""
    orbital_flights = fleet.annual_mass_kg / STARSHIP_PAYLOAD_KG
    fleet_ef = fleet.fleet_tflops * fleet.sellable_util / 1e6
    ground_ef = gnd.ground_supply_gw * EXAFLOPS_PER_GROUND_GW
    global_ef = fleet_ef + ground_ef

    rnd_stock = update_rnd_stock(global_ef, prev.rnd_stock)
    learn_rate = get_effective_launch_learn_rate(orbital_flights, params)
    launch_cost = max(get_launch_floor(year, params), prev.launch_cost_per_kg * (1.0 - learn_rate))

    state = SimulationState(
        year=year,
        cumulative_mass_to_orbit_kg=prev.cumulative_mass_to_orbit_kg + fleet.annual_mass_kg,
        cumulative_orbital_flights=prev.cumulative_orbital_flights + orbital_flights,
        cumulative_platforms_built=prev.cumulative_platforms_built + fleet.platforms_launched,
        orbital_power_tw=fleet.total_power_tw,
        fleet_capacity_exaflops=fleet_ef,
        ground_compute_exaflops=ground_ef,
        global_compute_exaflops=global_ef,
        rnd_stock=rnd_stock,
        rnd_boost=apply_rnd_boost(rnd_stock),
        effective_launch_learn_rate=learn_rate,
        launch_cost_per_kg=launch_cost,
    )
    lunar = get_lunar_readiness(state, params)
    return replace(state, lunar=lunar)
