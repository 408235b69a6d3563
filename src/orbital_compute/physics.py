"""
Physics primitives and technology learning curves.

Radiative heat rejection, orbital geometry, launch economics, compute
efficiency (GFLOPS/W), bandwidth and per-platform power. Every function is a
pure function of (year, params) and the static shell table.
"""

from __future__ import annotations

import math

from .config.params import Params
from .constants import (
    CONVENTIONAL_PAYLOAD_KG,
    EARTH_MU_KM3_S2,
    EARTH_RADIUS_KM,
    SECONDS_PER_YEAR,
    START_YEAR,
    STARSHIP_PAYLOAD_KG,
    STEFAN_BOLTZMANN,
    get_shell,
)
from .market import get_demand_pressure
from .utils import clamp, years_since

# =============================================================================
# Constants
# =============================================================================

# Thermal
REFERENCE_RADIATOR_TEMP_K = 350.0
REFERENCE_EMISSIVITY = 0.85
MIN_NET_FLUX_W_PER_M2 = 1.0
LEO_REFERENCE_ALTITUDE_KM = 550.0
MAX_ECLIPSE_HOURS = 4.0

# Conventional pumped-loop radiators (kg/MW)
CONVENTIONAL_RAD_KG_PER_MW = 4500.0
CONVENTIONAL_RAD_FLOOR_KG_PER_MW = 800.0
RAD_POWER_PENALTY_PER_200KW = 0.3
# Post-breakthrough (droplet/advanced) radiators (kg/MW)
ADVANCED_RAD_KG_PER_MW = 100.0
ADVANCED_RAD_MATURE_FRACTION = 0.5
ADVANCED_RAD_MATURITY_YEARS = 8.0

# Launch
CONVENTIONAL_LAUNCH_FLOOR = 300.0  # $/kg without heavy-lift reuse
MAX_LAUNCH_LEARN_STEP = 0.9
CONVENTIONAL_FLIGHTS_PER_YEAR = 100.0
STARSHIP_INITIAL_FLIGHTS = 25.0
STARSHIP_RAMP_DOUBLING_YEARS = 1.5

# Manufacturing
PROD_MULT_FLOOR = 0.25
MAX_MFG_LEARN_STEP = 0.35

# Compute efficiency
BASE_GFLOPS_PER_W = 2800.0
AI_LEARN_DECAY = 0.007
AI_LEARN_FLOOR = 0.03
RAD_PENALTY_DECAY = 0.82
RAD_PENALTY_FLOOR = 0.02

# Bandwidth
PARADIGM_BW_GAIN = 9.0
PARADIGM_SETTLE_YEARS = 5.0
BW_PER_TFLOP_DECAY = 0.08
BW_PER_TFLOP_FLOOR = 0.1
MAX_GOODPUT_TECH_MULT = 10.0
GOODPUT_TECH_GROWTH = 0.05
TOKEN_SERVICE_AVAILABILITY = 0.99

# Solar / battery
MAX_SOLAR_EFF = 0.5
BATTERY_LEARN_WH_PER_KG = 35.0
MAX_BATTERY_WH_PER_KG = 1000.0

# COTS blend: fully rad-hard above the upper launch price, fully
# commodity-with-shielding below the lower one
COTS_RAD_HARD_LAUNCH_COST = 1000.0
COTS_FULL_LAUNCH_COST = 100.0


# =============================================================================
# Radiative heat rejection
# =============================================================================


def get_radiator_power(emissivity: float, temp_k: float) -> float:
    """Emitted flux per radiating side (W/m^2)."""
    return emissivity * STEFAN_BOLTZMANN * temp_k**4


def get_eclipse_fraction(params: Params, shell: str = "leo") -> float:
    if params.eclipse_frac > 0:
        return params.eclipse_frac
    return get_shell(shell).eclipse_frac


def get_orbital_period_hours(shell: str = "leo") -> float:
    """Circular-orbit period from Kepler's third law."""
    a_km = EARTH_RADIUS_KM + get_shell(shell).altitude_km
    return 2.0 * math.pi * math.sqrt(a_km**3 / EARTH_MU_KM3_S2) / 3600.0


def get_eclipse_hours(params: Params, shell: str = "leo") -> float:
    hours = get_orbital_period_hours(shell) * get_eclipse_fraction(params, shell)
    return min(MAX_ECLIPSE_HOURS, hours)


def _earth_view_factor(shell: str) -> float:
    """Earth albedo/IR loading relative to the LEO reference altitude."""
    ref = EARTH_RADIUS_KM + LEO_REFERENCE_ALTITUDE_KM
    r = EARTH_RADIUS_KM + get_shell(shell).altitude_km
    return min(1.0, (ref / r) ** 2)


def get_radiator_net_w_per_m2(
    params: Params,
    in_eclipse: bool,
    shell: str = "leo",
    temp_k: float | None = None,
) -> float:
    """Net rejected flux per m^2 of radiator panel.

    Emission from one or both sides minus absorbed environmental flux. Solar
    and albedo loading vanish in eclipse; Earth IR does not.
    """
    temp = params.op_temp if temp_k is None else temp_k
    sides = 2.0 if params.rad_two_sided else 1.0
    emitted = sides * get_radiator_power(params.emissivity, temp)

    view = _earth_view_factor(shell)
    absorbed = params.q_earth_ir_abs_w_per_m2 * view
    if not in_eclipse:
        absorbed += params.q_solar_abs_w_per_m2 + params.q_albedo_abs_w_per_m2 * view
    return max(MIN_NET_FLUX_W_PER_M2, emitted - absorbed)


def get_average_net_flux(
    params: Params, shell: str = "leo", temp_k: float | None = None
) -> float:
    """Eclipse-weighted net radiator flux (W/m^2)."""
    ecl = get_eclipse_fraction(params, shell)
    sunlit = get_radiator_net_w_per_m2(params, False, shell, temp_k)
    shadow = get_radiator_net_w_per_m2(params, True, shell, temp_k)
    return (1.0 - ecl) * sunlit + ecl * shadow


def get_radiator_mass_per_mw(year: int, power_kw: float, params: Params) -> float:
    """Radiator mass per MW of rejected heat (kg/MW).

    Conventional pumped-loop radiators improve slowly and get heavier per MW
    as platforms grow (longer loops). After the thermal breakthrough,
    advanced radiators start an order of magnitude lighter and halve again
    as they mature.
    """
    temp_factor = (REFERENCE_RADIATOR_TEMP_K / params.op_temp) ** 4
    emis_factor = REFERENCE_EMISSIVITY / params.emissivity

    if params.thermal_active(year):
        maturity = min(1.0, (year - params.thermal_year) / ADVANCED_RAD_MATURITY_YEARS)
        per_mw = ADVANCED_RAD_KG_PER_MW * (1.0 - maturity * ADVANCED_RAD_MATURE_FRACTION)
        return per_mw * temp_factor * emis_factor

    t = years_since(year, START_YEAR)
    base = max(
        CONVENTIONAL_RAD_FLOOR_KG_PER_MW,
        CONVENTIONAL_RAD_KG_PER_MW * temp_factor * emis_factor - t * params.rad_learn,
    )
    return base * (1.0 + power_kw / 200.0 * RAD_POWER_PENALTY_PER_200KW)


def get_radiator_areal_density(
    year: int, power_kw: float, params: Params, shell: str = "leo"
) -> float:
    """Radiator panel areal density (kg/m^2) consistent with its kg/MW rating."""
    per_mw = get_radiator_mass_per_mw(year, power_kw, params)
    return per_mw * get_average_net_flux(params, shell) / 1e6


# =============================================================================
# Launch
# =============================================================================


def get_launch_floor(year: int, params: Params) -> float:
    """Lowest achievable $/kg in `year`."""
    if params.starship_active(year):
        return params.launch_floor
    return max(params.launch_floor, CONVENTIONAL_LAUNCH_FLOOR)


def get_launch_cost(year: int, params: Params, shell: str = "leo") -> float:
    """Launch price to `shell` in `year` ($/kg).

    Each year the price falls by the launch learning rate amplified by
    compute-demand pressure (pressure^1.5), never below the year's floor.
    """
    cost = max(params.launch_cost, get_launch_floor(START_YEAR, params))
    for y in range(START_YEAR, year):
        pressure = get_demand_pressure(y, params)
        step = min(MAX_LAUNCH_LEARN_STEP, params.launch_learn * pressure**1.5)
        cost = max(get_launch_floor(y + 1, params), cost * (1.0 - step))
    return cost * get_shell(shell).cost_mult


def get_max_flights(year: int, params: Params) -> float:
    """Orbital heavy-lift flights available in `year`."""
    if not params.starship_active(year):
        return CONVENTIONAL_FLIGHTS_PER_YEAR
    ramp_years = year - params.starship_year
    flights = STARSHIP_INITIAL_FLIGHTS * 2.0 ** (ramp_years / STARSHIP_RAMP_DOUBLING_YEARS)
    return min(float(params.max_launches_per_year), max(CONVENTIONAL_FLIGHTS_PER_YEAR, flights))


def get_payload_per_flight_kg(year: int, params: Params) -> float:
    if params.starship_active(year):
        return STARSHIP_PAYLOAD_KG
    return CONVENTIONAL_PAYLOAD_KG


def get_prod_mult(year: int, params: Params) -> float:
    """Manufacturing cost multiplier after learning (1.0 = terrestrial parity)."""
    floor = min(PROD_MULT_FLOOR, params.prod_mult)
    mult = params.prod_mult
    for y in range(START_YEAR, year):
        pressure = get_demand_pressure(y, params)
        step = min(MAX_MFG_LEARN_STEP, params.mfg_learn * pressure**1.5)
        mult = max(floor, mult * (1.0 - step))
    return mult


def get_cots_blend(launch_cost_per_kg: float) -> float:
    """Share of commodity (shielded) parts versus rad-hardened parts.

    Smoothstep in log launch price: 0 at or above COTS_RAD_HARD_LAUNCH_COST,
    1 at or below COTS_FULL_LAUNCH_COST.
    """
    if launch_cost_per_kg <= 0:
        return 1.0
    hi = math.log(COTS_RAD_HARD_LAUNCH_COST)
    lo = math.log(COTS_FULL_LAUNCH_COST)
    x = clamp((hi - math.log(launch_cost_per_kg)) / (hi - lo), 0.0, 1.0)
    return x * x * (3.0 - 2.0 * x)


# =============================================================================
# Compute efficiency
# =============================================================================


def get_paradigm_multiplier(year: int, params: Params, space: bool) -> float:
    """Efficiency multiplier from photonic and thermodynamic compute.

    Photonic gains apply to the whole workload; thermodynamic gains only to
    the probabilistic share of it.
    """
    photonic_mult = params.photonic_space_mult if space else params.photonic_ground_mult
    thermo_mult = params.thermo_space_mult if space else params.thermo_ground_mult

    mult = photonic_mult if params.photonic_active(year) else 1.0
    if params.thermo_active(year):
        wp = params.workload_probabilistic
        mult = mult * (1.0 - wp) + thermo_mult * wp
    return mult


def _silicon_efficiency(year: int, params: Params) -> float:
    eff = BASE_GFLOPS_PER_W
    for y in range(START_YEAR, year):
        learn = max(AI_LEARN_FLOOR, params.ai_learn - AI_LEARN_DECAY * (y - START_YEAR))
        pressure = get_demand_pressure(y, params)
        eff *= 1.0 + learn * (0.7 + 0.3 * pressure)
    return eff


def get_ground_efficiency(year: int, params: Params) -> float:
    """Terrestrial accelerator efficiency (GFLOPS/W)."""
    return _silicon_efficiency(year, params) * get_paradigm_multiplier(year, params, False)


def get_radiation_penalty(year: int, params: Params) -> float:
    """Efficiency lost to radiation hardening; shrinks as rad-hard design matures."""
    t = years_since(year, START_YEAR)
    return max(RAD_PENALTY_FLOOR, params.rad_pen * RAD_PENALTY_DECAY**t)


def get_orbital_efficiency(year: int, params: Params) -> float:
    """On-orbit accelerator efficiency (GFLOPS/W), net of radiation hardening."""
    base = _silicon_efficiency(year, params) * (1.0 - get_radiation_penalty(year, params))
    return base * get_paradigm_multiplier(year, params, True)


# =============================================================================
# Bandwidth & tokens
# =============================================================================


def _years_since_paradigm(year: int, params: Params) -> float | None:
    starts = []
    if params.thermo_active(year):
        starts.append(params.thermo_year)
    if params.photonic_active(year):
        starts.append(params.photonic_year)
    if not starts:
        return None
    return float(year - min(starts))


def get_bandwidth(year: int, params: Params) -> float:
    """Aggregate space-to-ground bandwidth available (Tbps)."""
    t = years_since(year, START_YEAR)
    bw = params.bandwidth * (1.0 + params.bw_growth) ** t
    yp = _years_since_paradigm(year, params)
    if yp is not None:
        bw *= 1.0 + PARADIGM_BW_GAIN * (1.0 - math.exp(-yp / PARADIGM_SETTLE_YEARS))
    return bw


def get_effective_bw_per_tflop(year: int, params: Params) -> float:
    """Downlink needed per delivered TFLOPS (Gbps/TFLOPS)."""
    t = years_since(year, START_YEAR)
    need = params.gbps_per_tflop * max(BW_PER_TFLOP_FLOOR, (1.0 - BW_PER_TFLOP_DECAY) ** t)
    yp = _years_since_paradigm(year, params)
    if yp is not None:
        need *= 0.05 + 0.95 * math.exp(-yp / PARADIGM_SETTLE_YEARS)
    return need


def get_platform_goodput_gbps(year: int, params: Params) -> float:
    """Sustained useful downlink of one optical terminal (Gbps)."""
    t = years_since(year, START_YEAR)
    tech = min(MAX_GOODPUT_TECH_MULT, 1.0 + GOODPUT_TECH_GROWTH * t)
    return (
        params.terminal_goodput_gbps
        * params.contact_fraction
        * (1.0 - params.protocol_overhead)
        * tech
    )


def get_comms_tflops_limit(year: int, params: Params) -> float:
    """TFLOPS one terminal can keep busy given token I/O per FLOP."""
    bytes_per_sec = get_platform_goodput_gbps(year, params) * 1e9 / 8.0
    tokens_per_sec = bytes_per_sec / params.bytes_per_token
    return tokens_per_sec * params.flops_per_token / 1e12


def get_tokens_per_second(tflops: float, params: Params) -> float:
    return tflops * 1e12 / params.flops_per_token


def get_tokens_per_year(tflops: float, params: Params) -> float:
    return get_tokens_per_second(tflops, params) * SECONDS_PER_YEAR * TOKEN_SERVICE_AVAILABILITY


# =============================================================================
# Platform power
# =============================================================================


def get_solar_efficiency(year: int, params: Params) -> float:
    t = years_since(year, START_YEAR)
    return min(MAX_SOLAR_EFF, params.solar_eff + t * params.solar_learn)


def get_battery_density(year: int, params: Params) -> float:
    """Battery pack specific energy (Wh/kg)."""
    t = years_since(year, START_YEAR)
    return min(MAX_BATTERY_WH_PER_KG, params.batt_dens + BATTERY_LEARN_WH_PER_KG * t)


def get_leo_power(year: int, params: Params) -> float:
    """Bus power of a LEO compute platform (kW)."""
    if params.fusion_active(year):
        m = min(1.0, (year - params.fusion_year) / 10.0)
        return 5000.0 + m * 45000.0
    if params.fission_active(year):
        m = min(1.0, (year - params.fission_year) / 10.0)
        return 5000.0 + m * 15000.0
    if params.thermal_active(year):
        m = min(1.0, (year - params.thermal_year) / 6.0)
        return 500.0 + m * 500.0
    t = years_since(year, START_YEAR)
    return min(250.0, params.base_power * 0.8 + 5.0 * t)


def get_cislunar_power(year: int, params: Params) -> float:
    """Bus power of a cislunar platform (kW); 0 when none is viable."""
    if params.fusion_active(year):
        m = min(1.0, (year - params.fusion_year) / 10.0)
        return 500000.0 + m * 1500000.0
    if params.fission_active(year):
        m = min(1.0, (year - params.fission_year) / 10.0)
        return 50000.0 + m * 100000.0
    if params.thermal_active(year) and year - params.thermal_year >= 5:
        m = min(1.0, (year - params.thermal_year - 5) / 5.0)
        return 1000.0 + m * 1000.0
    return 0.0


def get_platform_power_kw(year: int, params: Params, shell: str = "leo") -> float:
    """Bus power of a platform in `shell` (kW)."""
    get_shell(shell)
    if shell == "cislunar":
        return get_cislunar_power(year, params)
    leo = get_leo_power(year, params)
    if shell == "meo":
        return leo * 0.8
    if shell == "geo":
        if params.fission_active(year) or params.fusion_active(year):
            return leo * 20.0
        if params.thermal_active(year):
            return leo * 10.0
        return leo * 5.0
    return leo
