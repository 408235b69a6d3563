"""
Single-platform sizing.

Sizes one compute platform for a (year, shell): picks the power source,
closes the mass budget against the radiator constraint, clips delivered
compute to what the optical terminals can feed, and prices the result as a
levelized cost per GPU-hour.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .closure import ClosureSettings, solve_fixed_point
from .config.params import Params
from .constants import (
    DEFAULT_CLOSURE,
    H100_TFLOPS,
    HOURS_PER_YEAR,
    SOLAR_CONSTANT,
    START_YEAR,
    get_shell,
)
from .entities import (
    CapexBreakdown,
    ConstraintLimits,
    ConstraintMargins,
    MassBreakdown,
    RadiationEffects,
    SatelliteResult,
)
from .finance import annualize
from .lunar import get_cislunar_launch_cost
from .orbital import get_shell_radiation_effects
from .physics import (
    BASE_GFLOPS_PER_W,
    get_average_net_flux,
    get_battery_density,
    get_comms_tflops_limit,
    get_cots_blend,
    get_eclipse_fraction,
    get_eclipse_hours,
    get_effective_bw_per_tflop,
    get_launch_cost,
    get_orbital_efficiency,
    get_paradigm_multiplier,
    get_platform_power_kw,
    get_prod_mult,
    get_radiator_areal_density,
    get_radiator_mass_per_mw,
    get_radiator_power,
    get_solar_efficiency,
)
from .reliability import get_shell_sla
from .utils import clamp, years_since

# =============================================================================
# Mass model
# =============================================================================

FISSION_W_PER_KG = 50.0
FUSION_W_PER_KG = 150.0
FUSION_THERMAL_EFF = 0.4
FUSION_RAD_KG_PER_M2 = 2.0
SOLAR_KG_PER_M2 = 2.0
BATTERY_HEADROOM = 1.5
MIN_SUNLIT_FRACTION = 0.05

COMPUTE_KG_PER_KW = 5.0
MIN_COMPUTE_KG = 3.0
COMMS_BASE_KG = 10.0
TERMINAL_KG = 15.0
AVIONICS_BASE_KG = 25.0
AVIONICS_KG_PER_KW = 0.02
ADCS_BASE_KG = 10.0
ADCS_KG_PER_KW = 0.03
PROPULSION_HW_FRAC = 0.04
PROPELLANT_FRAC = 0.06
STRUCTURE_FRAC = 0.10
SHIELD_KG_PER_KW = 0.8  # commodity parts, per kW of compute at LEO dose

MIN_VIABLE_COMPUTE_KW = 1.0

# =============================================================================
# Cost model
# =============================================================================

POWER_COST_PER_W = {"solar": 40.0, "fission": 60.0, "fusion": 80.0}
POWER_SCALE_REF_KW = 100.0
POWER_SCALE_EXP = -0.15
NUCLEAR_FOAK_PREMIUM = 2.0
NUCLEAR_FOAK_MIDPOINT_YEARS = 5.0
NUCLEAR_FOAK_WIDTH_YEARS = 1.5

# (rad-hard, commodity) unit costs, blended by the COTS share
BATTERY_COST_PER_KG = (4000.0, 800.0)
COMPUTE_COST_PER_KG = (40000.0, 8000.0)
AVIONICS_COST = (1.5e6, 0.3e6)

RADIATOR_COST_PER_M2 = 5000.0
RADIATOR_AREA_EXP = 0.9
SHIELD_COST_PER_KG = 200.0
STRUCTURE_COST_PER_KG = 1500.0
TERMINAL_COST = 0.5e6
INTEGRATION_COEF = 2.0
INTEGRATION_EXP = 0.85
INSURANCE_RATE = 0.12
GROUND_SEGMENT_FIXED = 0.25e6
GROUND_SEGMENT_COEF = 50e3
GROUND_SEGMENT_EXP = 0.7

BW_COST_LEARN = 0.85
BW_COST_FLOOR = 0.1
FISSION_BW_DISCOUNT = 0.5

# Lifecycle accounting
EMBODIED_CARBON_KG_PER_KG = 95.0
LIFETIME_CAPACITY_FACTOR = 0.88
LAUNCH_ENERGY_J_PER_KG = 400e6


@dataclass
class _PowerSystem:
    source: str
    power_kw: float
    mass_kg: float = 0.0
    battery_kg: float = 0.0
    solar_area_m2: float = 0.0
    fusion_radiator_kg: float = 0.0
    fusion_radiator_area_m2: float = 0.0


@dataclass
class _SizingContext:
    """Year/shell quantities that stay fixed during the mass closure."""

    year: int
    shell: str
    params: Params
    power: _PowerSystem
    power_limit_kw: float
    bw_per_tflop: float
    max_rate_gbps: float
    terminals: int
    net_flux_w_per_m2: float
    areal_density: float
    waste_frac: float
    shield_kg_per_kw: float


def select_power_source(year: int, params: Params, shell: str = "leo") -> str:
    """Power source a platform in `shell` would carry in `year`."""
    get_shell(shell)
    if shell == "cislunar":
        if params.fusion_active(year):
            return "fusion"
        if params.fission_active(year):
            return "fission"
        if params.thermal_active(year) and year - params.thermal_year >= 5:
            return "solar"
        return "none"
    if params.fission_active(year):
        return "fission"
    return "solar"


def _size_power_system(year: int, params: Params, shell: str) -> _PowerSystem:
    source = select_power_source(year, params, shell)
    power_kw = get_platform_power_kw(year, params, shell) if source != "none" else 0.0
    system = _PowerSystem(source=source, power_kw=power_kw)
    if power_kw <= 0:
        return system

    power_w = power_kw * 1000.0
    if source == "fission":
        system.mass_kg = power_w / FISSION_W_PER_KG
    elif source == "fusion":
        system.mass_kg = power_w / FUSION_W_PER_KG
        # Reactor waste heat is rejected by its own high-temperature loop
        waste_w = power_w * (1.0 / FUSION_THERMAL_EFF - 1.0)
        flux = get_average_net_flux(params, shell, temp_k=params.fusion_rad_temp)
        system.fusion_radiator_area_m2 = waste_w / flux
        system.fusion_radiator_kg = system.fusion_radiator_area_m2 * FUSION_RAD_KG_PER_M2
    else:
        sunlit = max(MIN_SUNLIT_FRACTION, 1.0 - get_eclipse_fraction(params, shell))
        system.solar_area_m2 = power_w / (get_solar_efficiency(year, params) * SOLAR_CONSTANT * sunlit)
        system.mass_kg = system.solar_area_m2 * SOLAR_KG_PER_M2
        storage_wh = power_w * get_eclipse_hours(params, shell) * BATTERY_HEADROOM
        system.battery_kg = storage_wh / get_battery_density(year, params)
    return system


def _terminals_for(rate_gbps: float, params: Params) -> int:
    needed = math.ceil(rate_gbps / params.terminal_max_gbps) if rate_gbps > 0 else 1
    return int(clamp(needed, 1, params.max_terminals))


def _design_rate_gbps(power_limit_kw: float, bw_per_tflop: float, max_rate_gbps: float) -> float:
    """Downlink the comms subsystem is built for, set by the compute power allocation."""
    return min(max_rate_gbps, power_limit_kw * BASE_GFLOPS_PER_W * bw_per_tflop)


def _mass_breakdown(
    ctx: _SizingContext, compute_kw: float, radiator_kg: float, prev_dry_kg: float
) -> tuple[MassBreakdown, int]:
    power_kw = ctx.power.power_kw
    terminals = ctx.terminals

    comms = COMMS_BASE_KG + terminals * TERMINAL_KG
    avionics = AVIONICS_BASE_KG + AVIONICS_KG_PER_KW * power_kw
    adcs = ADCS_BASE_KG + ADCS_KG_PER_KW * power_kw
    propulsion = PROPULSION_HW_FRAC * prev_dry_kg * (1.0 + PROPELLANT_FRAC)

    mass = MassBreakdown(
        power=ctx.power.mass_kg,
        battery=ctx.power.battery_kg,
        compute=max(MIN_COMPUTE_KG, compute_kw * COMPUTE_KG_PER_KW),
        radiator=radiator_kg,
        shield=compute_kw * ctx.shield_kg_per_kw,
        other=comms + avionics + adcs + propulsion,
        fusion_radiator=ctx.power.fusion_radiator_kg,
    )
    mass.structure = STRUCTURE_FRAC * mass.total
    return mass, terminals


def _thermal_limit_kw(ctx: _SizingContext, dry_kg: float) -> float:
    """Compute power the radiator mass budget can carry."""
    budget_kg = ctx.params.rad_mass_frac * dry_kg
    rejection_kw = budget_kg / ctx.areal_density * ctx.net_flux_w_per_m2 / 1000.0
    return rejection_kw / ctx.waste_frac


def _radiator_kg_for(ctx: _SizingContext, compute_kw: float) -> float:
    area = compute_kw * ctx.waste_frac * 1000.0 / ctx.net_flux_w_per_m2
    return area * ctx.areal_density


def _blend(costs: tuple[float, float], cots: float) -> float:
    rad_hard, commodity = costs
    return rad_hard * (1.0 - cots) + commodity * cots


def _nuclear_maturity_mult(year: int, start_year: int) -> float:
    """First-of-a-kind premium that fades a few years after introduction."""
    yrs = year - start_year
    x = clamp((yrs - NUCLEAR_FOAK_MIDPOINT_YEARS) / NUCLEAR_FOAK_WIDTH_YEARS, -50.0, 50.0)
    return 1.0 + NUCLEAR_FOAK_PREMIUM / (1.0 + math.exp(x))


def _shell_launch_cost(year: int, params: Params, shell: str) -> float:
    cost = get_launch_cost(year, params, shell)
    if shell == "cislunar" and params.lunar_isru_on:
        return get_cislunar_launch_cost(year, cost, params.lunar_isru_year)
    return cost


def _power_system_cost(ctx: _SizingContext, prod: float) -> float:
    power_kw = ctx.power.power_kw
    source = ctx.power.source
    scale = clamp((max(1.0, power_kw) / POWER_SCALE_REF_KW) ** POWER_SCALE_EXP, 0.2, 2.0)
    cost = power_kw * 1000.0 * POWER_COST_PER_W[source] * scale
    if source == "fission":
        cost *= _nuclear_maturity_mult(ctx.year, ctx.params.fission_year)
    elif source == "fusion":
        cost *= _nuclear_maturity_mult(ctx.year, ctx.params.fusion_year)
    return cost * prod


def _degenerate_result(
    year: int, shell: str, params: Params, rad: RadiationEffects, reason: str
) -> SatelliteResult:
    return SatelliteResult(
        year=year,
        shell=shell,
        power_source="none",
        power_kw=0.0,
        compute_kw=0.0,
        dry_mass_kg=0.0,
        mass=MassBreakdown(),
        tflops=0.0,
        gpu_eq=0.0,
        gflops_w=get_orbital_efficiency(year, params),
        capex=0.0,
        capex_breakdown=CapexBreakdown(),
        annual_cost=0.0,
        gpu_hours_per_year=0.0,
        lcoc=math.inf,
        erol=0.0,
        carbon_per_tflop=0.0,
        radiator_area_m2=0.0,
        rad_capacity_kw=0.0,
        rad_mass_per_mw=0.0,
        rad_power_w_per_m2=get_radiator_power(params.emissivity, params.op_temp),
        solar_area_m2=0.0,
        data_rate_gbps=0.0,
        terminals=0,
        cots_blend=0.0,
        launch_cost_per_kg=_shell_launch_cost(year, params, shell),
        binding="power",
        limits=ConstraintLimits(0.0, 0.0, 0.0),
        margins=ConstraintMargins(0.0, 0.0, 0.0),
        thermal_limited=False,
        rad_effects=rad,
        iterations=0,
        converged=True,
        invalid_reason=reason,
    )


# =============================================================================
# Sizing
# =============================================================================


def size_satellite(
    year: int,
    params: Params,
    shell: str = "leo",
    closure: ClosureSettings | None = None,
) -> SatelliteResult:
    """Size one compute platform in `shell` for `year`.

    The mass closure iterates (compute kW, radiator kg, dry kg): the radiator
    budget is a fixed share of dry mass, the budget caps compute power, and
    compute power sets the radiator actually needed. Compute power is the
    smaller of the power and thermal limits.

    Args:
        year: Calendar year.
        params: Model parameters.
        shell: Orbital shell name.
        closure: Iteration limits for the mass closure.

    Returns:
        SatelliteResult. Infeasible designs carry `invalid_reason`.

    Raises:
        KeyError: If `shell` is unknown.
    """
    closure = closure or DEFAULT_CLOSURE
    get_shell(shell)
    rad = get_shell_radiation_effects(shell, year, params)

    power = _size_power_system(year, params, shell)
    if power.power_kw <= 0:
        return _degenerate_result(year, shell, params, rad, "no viable power source")

    t = years_since(year, START_YEAR)
    gflops_w = get_orbital_efficiency(year, params)
    cots = get_cots_blend(get_launch_cost(year, params, "leo"))
    power_limit_kw = power.power_kw * params.compute_frac
    bw_per_tflop = get_effective_bw_per_tflop(year, params)
    max_rate_gbps = params.max_terminals * params.terminal_max_gbps
    ctx = _SizingContext(
        year=year,
        shell=shell,
        params=params,
        power=power,
        power_limit_kw=power_limit_kw,
        bw_per_tflop=bw_per_tflop,
        max_rate_gbps=max_rate_gbps,
        terminals=_terminals_for(
            _design_rate_gbps(power_limit_kw, bw_per_tflop, max_rate_gbps), params
        ),
        net_flux_w_per_m2=get_average_net_flux(params, shell),
        areal_density=get_radiator_areal_density(year, power.power_kw, params, shell),
        waste_frac=params.waste_heat_frac / get_paradigm_multiplier(year, params, True),
        shield_kg_per_kw=SHIELD_KG_PER_KW * rad.tid_factor * cots,
    )

    def update(state):
        compute_kw, radiator_kg, dry_kg = state
        mass, _ = _mass_breakdown(ctx, compute_kw, radiator_kg, dry_kg)
        dry = mass.total
        new_compute = min(ctx.power_limit_kw, _thermal_limit_kw(ctx, dry))
        return (new_compute, _radiator_kg_for(ctx, new_compute), dry)

    # Seed dry mass from a first pass so propulsion starts from a real estimate
    radiator_seed = _radiator_kg_for(ctx, ctx.power_limit_kw)
    seed, _ = _mass_breakdown(ctx, ctx.power_limit_kw, radiator_seed, 0.0)
    initial = (ctx.power_limit_kw, radiator_seed, seed.total)
    solved = solve_fixed_point(update, initial, closure)
    compute_kw, radiator_kg, prev_dry = solved.state

    mass, terminals = _mass_breakdown(ctx, compute_kw, radiator_kg, prev_dry)
    dry_mass = mass.total
    thermal_limit = _thermal_limit_kw(ctx, dry_mass)
    radiator_area = radiator_kg / ctx.areal_density
    rad_capacity_kw = (
        ctx.params.rad_mass_frac * dry_mass / ctx.areal_density * ctx.net_flux_w_per_m2 / 1000.0
    )

    # Delivered compute, clipped by what the terminals can feed
    available_tflops = compute_kw * gflops_w * rad.availability_factor
    comms_limit = get_comms_tflops_limit(year, params) * params.max_terminals
    tflops = min(available_tflops, comms_limit)
    gpu_eq = tflops / H100_TFLOPS
    data_rate = min(ctx.max_rate_gbps, tflops * ctx.bw_per_tflop)

    thermal_limited = thermal_limit < ctx.power_limit_kw
    if available_tflops > comms_limit:
        binding = "comms"
    elif thermal_limited:
        binding = "thermal"
    else:
        binding = "power"

    # Capex
    prod = get_prod_mult(year, params)
    launch_per_kg = _shell_launch_cost(year, params, shell)
    capex = CapexBreakdown(
        power=_power_system_cost(ctx, prod),
        battery=mass.battery * _blend(BATTERY_COST_PER_KG, cots) * prod,
        compute=mass.compute * _blend(COMPUTE_COST_PER_KG, cots) * prod,
        radiator=RADIATOR_COST_PER_M2
        * (radiator_area + power.fusion_radiator_area_m2) ** RADIATOR_AREA_EXP
        * prod,
        shield=mass.shield * SHIELD_COST_PER_KG * prod,
        structure=mass.structure * STRUCTURE_COST_PER_KG * prod,
        avionics=_blend(AVIONICS_COST, cots) * prod,
        terminals=terminals * TERMINAL_COST * prod,
    )
    capex.integration = INTEGRATION_COEF * capex.hardware**INTEGRATION_EXP
    capex.launch = dry_mass * launch_per_kg
    capex.insurance = INSURANCE_RATE * (capex.hardware + capex.integration + capex.launch)
    capex.ground_segment = GROUND_SEGMENT_FIXED + GROUND_SEGMENT_COEF * data_rate**GROUND_SEGMENT_EXP
    capex.interest_during_construction = params.wacc_orbital * params.build_years / 2.0 * capex.total
    total_capex = capex.total

    # Annualized cost and LCOC
    life = rad.effective_life_years
    bw_discount = FISSION_BW_DISCOUNT if power.source == "fission" else 1.0
    annual_bw = data_rate * params.bw_cost * max(BW_COST_FLOOR, BW_COST_LEARN**t) * bw_discount
    annual = annualize(total_capex, params.wacc_orbital, life) + params.maint_cost * total_capex + annual_bw
    gpu_hours = gpu_eq * HOURS_PER_YEAR * get_shell_sla(shell, params)
    lcoc = annual / gpu_hours if gpu_hours > 0 else math.inf

    carbon = (
        dry_mass
        * EMBODIED_CARBON_KG_PER_KG
        * 1000.0
        / max(1.0, tflops * HOURS_PER_YEAR * life * LIFETIME_CAPACITY_FACTOR)
    )
    erol = (
        power.power_kw * 1000.0 * HOURS_PER_YEAR * 3600.0 * life * LIFETIME_CAPACITY_FACTOR
    ) / max(1e-9, dry_mass * LAUNCH_ENERGY_J_PER_KG)

    invalid_reason = None
    if compute_kw < MIN_VIABLE_COMPUTE_KW:
        invalid_reason = f"compute power {compute_kw:.3f} kW below viable minimum"

    return SatelliteResult(
        year=year,
        shell=shell,
        power_source=power.source,
        power_kw=power.power_kw,
        compute_kw=compute_kw,
        dry_mass_kg=dry_mass,
        mass=mass,
        tflops=tflops,
        gpu_eq=gpu_eq,
        gflops_w=gflops_w,
        capex=total_capex,
        capex_breakdown=capex,
        annual_cost=annual,
        gpu_hours_per_year=gpu_hours,
        lcoc=lcoc,
        erol=erol,
        carbon_per_tflop=carbon,
        radiator_area_m2=radiator_area,
        rad_capacity_kw=rad_capacity_kw,
        rad_mass_per_mw=get_radiator_mass_per_mw(year, power.power_kw, params),
        rad_power_w_per_m2=get_radiator_power(params.emissivity, params.op_temp),
        solar_area_m2=power.solar_area_m2,
        data_rate_gbps=data_rate,
        terminals=terminals,
        cots_blend=cots,
        launch_cost_per_kg=launch_per_kg,
        binding=binding,
        limits=ConstraintLimits(ctx.power_limit_kw, thermal_limit, comms_limit),
        margins=ConstraintMargins(
            power=compute_kw / ctx.power_limit_kw,
            thermal=compute_kw / max(1e-9, thermal_limit),
            comms=available_tflops / max(1e-9, comms_limit),
        ),
        thermal_limited=thermal_limited,
        rad_effects=rad,
        iterations=solved.iterations,
        converged=solved.converged,
        invalid_reason=invalid_reason,
    )
