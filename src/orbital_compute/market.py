"""Compute demand and terrestrial supply curves (GW)."""

from __future__ import annotations

from .config.params import Params
from .constants import START_YEAR
from .utils import clamp, years_since

# Demand growth decays from a boom-era premium toward a long-run floor
DEMAND_GROWTH_PREMIUM = 0.20
DEMAND_GROWTH_DECAY = 0.015
DEMAND_GROWTH_FLOOR = 0.25

MAX_BTM_SHARE = 0.5
REFERENCE_INTERCONNECT_MONTHS = 36.0
REFERENCE_ENERGY_COST = 0.065
BTM_ANNUAL_BUILD_GW = 5.0

SMR_BASE_GW = 10.0
SMR_RAMP_GW = 15.0
SMR_RAMP_YEARS = 5.0

MIN_DEMAND_PRESSURE = 0.2
MAX_DEMAND_PRESSURE = 2.0


def get_demand(year: int, params: Params) -> float:
    """Global AI compute power demand (GW)."""
    t = years_since(year, START_YEAR)
    growth = max(
        DEMAND_GROWTH_FLOOR,
        params.demand_growth + DEMAND_GROWTH_PREMIUM - t * DEMAND_GROWTH_DECAY,
    )
    return params.demand2025 * (1.0 + growth) ** t


def get_btm_share(year: int, params: Params) -> float:
    """Share of new datacenter power built behind the meter.

    Rises with grid interconnection delay and energy-cost pain relative to
    reference values, plus a secular trend.
    """
    t = years_since(year, START_YEAR)
    pain = (
        params.interconnect / REFERENCE_INTERCONNECT_MONTHS
        + params.energy_cost / REFERENCE_ENERGY_COST
    ) / 2.0
    return min(MAX_BTM_SHARE, params.btm_share * pain + t * params.btm_share_growth)


def get_ground_supply(year: int, params: Params) -> float:
    """Terrestrial datacenter power supply (GW).

    Grid-connected capacity waits on the interconnection queue;
    behind-the-meter capacity waits on its own (shorter) build delay. SMRs
    add a ramping increment once available.
    """
    t = years_since(year, START_YEAR)
    btm = get_btm_share(year, params)

    grid_years = max(0.0, t - params.interconnect / 12.0)
    grid_add = (1.0 - btm) * params.supply_growth * params.supply2025 * grid_years

    btm_years = max(0.0, t - params.btm_delay / 12.0)
    btm_add = btm * BTM_ANNUAL_BUILD_GW * btm_years

    smr_add = 0.0
    if params.smr_active(year):
        smr_years = year - params.smr_year
        ramp = min(1.0, smr_years / SMR_RAMP_YEARS)
        smr_add = (SMR_BASE_GW + ramp * SMR_RAMP_GW) * smr_years

    return params.supply2025 + grid_add + btm_add + smr_add


def get_demand_pressure(year: int, params: Params) -> float:
    """Demand/supply ratio, clamped; couples scarcity into learning rates."""
    supply = max(1e-9, get_ground_supply(year, params))
    return clamp(get_demand(year, params) / supply, MIN_DEMAND_PRESSURE, MAX_DEMAND_PRESSURE)
