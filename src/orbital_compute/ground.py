"""
Terrestrial datacenter cost baseline.

Production cost per GPU-hour (hardware, energy, overhead) plus the market
price after a scarcity premium driven by unmet demand.
"""

from __future__ import annotations

import math

from .config.params import Params
from .constants import HOURS_PER_YEAR, START_YEAR
from .entities import GroundResult
from .finance import annualize
from .market import get_btm_share, get_demand, get_ground_supply
from .physics import BASE_GFLOPS_PER_W, get_ground_efficiency
from .reliability import calculate_effective_uptime
from .utils import years_since

GPU_PRICE_2026 = 25000.0
GPU_PRICE_DECLINE = 0.84
GPU_PRICE_FLOOR = 3000.0
SERVER_OVERHEAD_MULT = 1.5  # chassis, networking, storage per GPU
GROUND_HW_LIFE_YEARS = 5.0

GPU_POWER_KW = 0.7
MIN_PUE = 1.08
PUE_IMPROVEMENT = 0.01

OVERHEAD_FLOOR = 0.12  # $/hr
OVERHEAD_DECLINING = 0.38
OVERHEAD_DECAY = 0.9

TECH_MATURITY_YEARS = 8.0
SMR_DISCOUNT = (0.7, 0.3)  # (initial, further reduction at maturity)
FUSION_DISCOUNT = (0.5, 0.3)

BASE_UTILIZATION = 0.70
SMR_UTILIZATION_GAIN = 0.05
FUSION_UTILIZATION_GAIN = 0.10
MAX_UTILIZATION = 0.85

GRID_CARBON_2026 = 380.0
GRID_CARBON_DECLINE = 0.97
EMBODIED_CARBON_PER_TFLOP = 5.0


def get_scarcity_premium(unmet_ratio: float) -> float:
    """Market price multiplier over production cost.

    Piecewise continuous in the unmet-demand ratio u = (demand - supply) / supply:
    price war under heavy oversupply, steep premium under moderate scarcity,
    and a logarithmic plateau once demand destruction dominates.
    """
    u = unmet_ratio
    if u <= -0.3:
        return max(0.6, 0.85 + u)
    if u <= 0.0:
        return 1.0 + 0.5 * u
    if u <= 0.3:
        return 1.0 + 4.0 * u
    if u <= 1.0:
        return 2.2 + 2.5 * (u - 0.3)
    return 3.95 + 1.5 * math.log(u)


def _maturity(year: int, start_year: int) -> float:
    return min(1.0, max(0.0, (year - start_year) / TECH_MATURITY_YEARS))


def size_ground(year: int, orbital_supply_gw: float, params: Params) -> GroundResult:
    """Ground datacenter economics for `year` given orbital supply (GW)."""
    t = years_since(year, START_YEAR)
    gflops_w = get_ground_efficiency(year, params)
    btm = get_btm_share(year, params)

    smr_m = _maturity(year, params.smr_year) if params.smr_active(year) else 0.0
    fusion_m = _maturity(year, params.fusion_year) if params.fusion_active(year) else 0.0

    energy_discount = 1.0
    if params.smr_active(year):
        energy_discount = min(energy_discount, SMR_DISCOUNT[0] - SMR_DISCOUNT[1] * smr_m)
    if params.fusion_active(year):
        energy_discount = min(energy_discount, FUSION_DISCOUNT[0] - FUSION_DISCOUNT[1] * fusion_m)

    uptime = calculate_effective_uptime(
        params.ground_sla, params.ground_mtbf_hours, params.checkpoint_sec, params.recovery_sec
    )
    hours = HOURS_PER_YEAR * uptime

    # Hardware, per GPU-equivalent per year
    gpu_price = max(GPU_PRICE_FLOOR, GPU_PRICE_2026 * GPU_PRICE_DECLINE**t)
    hw_capex = gpu_price * SERVER_OVERHEAD_MULT / (gflops_w / BASE_GFLOPS_PER_W)
    hw_capex *= 1.0 + btm * (params.btm_capex_mult - 1.0)
    hw_cost = annualize(hw_capex, params.wacc_ground, GROUND_HW_LIFE_YEARS)

    # Energy
    grid_price = params.energy_cost * (1.0 + params.energy_escal) ** t * energy_discount
    blended_price = grid_price * (1.0 - btm) + params.btm_energy_cost * btm
    pue = max(MIN_PUE, params.ground_pue - PUE_IMPROVEMENT * t)
    energy_cost = GPU_POWER_KW * hours * blended_price * pue

    overhead_rate = OVERHEAD_FLOOR + OVERHEAD_DECLINING * OVERHEAD_DECAY**t
    overhead_cost = overhead_rate * hours

    utilization = min(
        MAX_UTILIZATION,
        BASE_UTILIZATION + SMR_UTILIZATION_GAIN * smr_m + FUSION_UTILIZATION_GAIN * fusion_m,
    )
    base = (hw_cost + energy_cost + overhead_cost) / max(1e-9, hours * utilization)

    # Market
    demand = get_demand(year, params)
    ground_supply = get_ground_supply(year, params)
    total_supply = ground_supply + max(0.0, orbital_supply_gw)
    unmet_ratio = (demand - total_supply) / max(1e-9, total_supply)
    premium = get_scarcity_premium(unmet_ratio)

    carbon = GRID_CARBON_2026 * GRID_CARBON_DECLINE**t * pue / gflops_w + EMBODIED_CARBON_PER_TFLOP

    return GroundResult(
        year=year,
        base=base,
        market=base * premium,
        premium=premium,
        hw_cost=hw_cost,
        energy_cost=energy_cost,
        overhead_cost=overhead_cost,
        demand_gw=demand,
        ground_supply_gw=ground_supply,
        orbital_supply_gw=orbital_supply_gw,
        total_supply_gw=total_supply,
        unmet_ratio=unmet_ratio,
        effective_uptime=uptime,
        utilization=utilization,
        pue=pue,
        btm_share=btm,
        gflops_w=gflops_w,
        carbon_per_tflop=carbon,
    )
