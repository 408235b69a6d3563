from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from . import utils

if TYPE_CHECKING:
    from .config.params import Params


@dataclass(frozen=True)
class Shell:
    """Orbital regime descriptor."""

    name: str
    altitude_km: float
    latency_ms: float  # round trip
    tid_mult: float  # total ionizing dose relative to LEO
    seu_mult: float  # single event upset rate relative to LEO
    capacity: int  # platform slots, 0 = non-viable
    cost_mult: float  # launch $/kg relative to LEO
    eclipse_frac: float

    @property
    def viable(self) -> bool:
        return self.capacity > 0


@dataclass
class RadiationEffects:
    """Radiation-driven degradation for one shell in one year."""

    shell: str
    tid_factor: float
    effective_life_years: float
    seu_penalty: float
    availability_factor: float
    replacement_rate: float


# =============================================================================
# Satellite
# =============================================================================


@dataclass
class MassBreakdown:
    """Platform dry mass by subsystem (kg)."""

    power: float = 0.0
    battery: float = 0.0
    compute: float = 0.0
    radiator: float = 0.0
    shield: float = 0.0
    structure: float = 0.0
    other: float = 0.0
    fusion_radiator: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.power
            + self.battery
            + self.compute
            + self.radiator
            + self.shield
            + self.structure
            + self.other
            + self.fusion_radiator
        )


@dataclass
class CapexBreakdown:
    """Platform capital cost by line item ($)."""

    power: float = 0.0
    battery: float = 0.0
    compute: float = 0.0
    radiator: float = 0.0
    shield: float = 0.0
    structure: float = 0.0
    avionics: float = 0.0
    terminals: float = 0.0
    integration: float = 0.0
    launch: float = 0.0
    insurance: float = 0.0
    ground_segment: float = 0.0
    interest_during_construction: float = 0.0

    @property
    def hardware(self) -> float:
        return (
            self.power
            + self.battery
            + self.compute
            + self.radiator
            + self.shield
            + self.structure
            + self.avionics
            + self.terminals
        )

    @property
    def total(self) -> float:
        return (
            self.hardware
            + self.integration
            + self.launch
            + self.insurance
            + self.ground_segment
            + self.interest_during_construction
        )


@dataclass
class ConstraintLimits:
    power_kw_limit: float
    thermal_kw_limit: float
    comms_tflops_limit: float


@dataclass
class ConstraintMargins:
    """Utilisation of each constraint; 1.0 means fully binding."""

    power: float
    thermal: float
    comms: float


@dataclass
class SatelliteResult:
    """Sized platform for one (year, shell)."""

    year: int
    shell: str
    power_source: str  # "solar", "fission", "fusion" or "none"
    power_kw: float
    compute_kw: float
    dry_mass_kg: float
    mass: MassBreakdown
    tflops: float
    gpu_eq: float
    gflops_w: float
    capex: float
    capex_breakdown: CapexBreakdown
    annual_cost: float
    gpu_hours_per_year: float
    lcoc: float  # $/GPU-hr, production cost at 100% sellable
    erol: float
    carbon_per_tflop: float
    radiator_area_m2: float
    rad_capacity_kw: float
    rad_mass_per_mw: float
    rad_power_w_per_m2: float
    solar_area_m2: float
    data_rate_gbps: float
    terminals: int
    cots_blend: float
    launch_cost_per_kg: float
    binding: str  # "power", "thermal" or "comms"
    limits: ConstraintLimits
    margins: ConstraintMargins
    thermal_limited: bool
    rad_effects: RadiationEffects
    iterations: int = 0
    converged: bool = True
    invalid_reason: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.invalid_reason is None

    @property
    def lcoc_or_none(self) -> float | None:
        """LCOC for display; None when the design is infeasible."""
        if not self.is_valid or not utils.is_finite_positive(self.lcoc):
            return None
        return self.lcoc


# =============================================================================
# Ground & Fleet
# =============================================================================


@dataclass
class GroundResult:
    """Terrestrial datacenter economics for one year ($/GPU-hr)."""

    year: int
    base: float
    market: float
    premium: float
    hw_cost: float  # $/GPU-eq/yr
    energy_cost: float  # $/GPU-eq/yr
    overhead_cost: float  # $/GPU-eq/yr
    demand_gw: float
    ground_supply_gw: float
    orbital_supply_gw: float
    total_supply_gw: float
    unmet_ratio: float
    effective_uptime: float
    utilization: float
    pue: float
    btm_share: float
    gflops_w: float
    carbon_per_tflop: float


@dataclass
class FleetResult:
    """Deployed multi-shell fleet for one year."""

    year: int
    platforms: dict[str, int]
    power_tw: dict[str, float]
    total_power_tw: float
    fleet_tflops: float
    production_lcoc: float
    lcoc_effective: float
    bw_avail_gbps: float
    bw_needed_gbps: float
    bw_util: float
    bw_sell: float
    eligible_demand_gw: float
    dynamic_eligible_share: float
    demand_util: float
    demand_sell: float
    sellable_util: float
    bottleneck: str
    constraint_ratios: dict[str, float]
    replacement_rate: float  # LEO
    fleet_mass_kg: float
    annual_mass_kg: float
    annual_flights: float
    max_flights: float
    lunar_sourced_mass_kg: float
    platforms_launched: float
    launch_constrained: bool
    starship_flights_to_deploy: float
    delivered_tokens_per_year: float
    addressable_fraction: float
    sat_power_kw: float
    cislunar_power_kw: float

    @property
    def leo_platforms(self) -> int:
        return self.platforms.get("leo", 0)

    @property
    def meo_platforms(self) -> int:
        return self.platforms.get("meo", 0)

    @property
    def geo_platforms(self) -> int:
        return self.platforms.get("geo", 0)

    @property
    def cislunar_platforms(self) -> int:
        return self.platforms.get("cislunar", 0)

    @property
    def total_platforms(self) -> int:
        return sum(self.platforms.values())

    @property
    def lcoc_effective_or_none(self) -> float | None:
        return self.lcoc_effective if utils.is_finite_positive(self.lcoc_effective) else None


# =============================================================================
# Simulation State
# =============================================================================


@dataclass(frozen=True)
class RnDBoost:
    """Multipliers derived from the accumulated R&D stock."""

    chip_efficiency: float = 1.0
    solar_efficiency: float = 1.0
    manufacturing_cost: float = 1.0
    launch_learn_boost: float = 0.0


@dataclass(frozen=True)
class LunarReadiness:
    """Lunar industrialisation readiness and its component scores."""

    index: float = 0.0
    mass_score: float = 0.0
    compute_score: float = 0.0
    power_score: float = 0.0
    time_score: float = 0.0
    tech_adjustment: float = 0.0
    status: str = "Not ready"


@dataclass(frozen=True)
class SimulationState:
    """Cumulative state snapshot at the end of one simulated year."""

    year: int
    cumulative_mass_to_orbit_kg: float = 0.0
    cumulative_orbital_flights: float = 0.0
    cumulative_platforms_built: float = 0.0
    orbital_power_tw: float = 0.0
    fleet_capacity_exaflops: float = 0.0
    ground_compute_exaflops: float = 0.0
    global_compute_exaflops: float = 100.0
    rnd_stock: float = 0.0
    rnd_boost: RnDBoost = field(default_factory=RnDBoost)
    effective_launch_learn_rate: float = 0.18
    launch_cost_per_kg: float = 1500.0
    lunar: LunarReadiness = field(default_factory=LunarReadiness)

    @property
    def lunar_readiness(self) -> float:
        return self.lunar.index


@dataclass
class ScenarioResult:
    """Full output bundle for one scenario run."""

    name: str
    params: Params
    years: list[int]
    sats: list[SatelliteResult]  # LEO reference platform per year
    fleets: list[FleetResult]
    gnds: list[GroundResult]
    pre_fleets: list[FleetResult]  # crossover-search pass
    pre_gnds: list[GroundResult]
    crossover_year: int | None
    lunar_unlock_year: int | None
    states: list[SimulationState]

    def index_for(self, year: int) -> int:
        """Array offset for `year`.

        Raises:
            KeyError: If the year is outside the simulated range.
        """
        index = utils.get_index_for_year(year, self.years[0])
        if not 0 <= index < len(self.years):
            raise KeyError(f"Year {year} outside simulated range {self.years[0]}-{self.years[-1]}")
        return index

    def at(self, year: int) -> tuple[SatelliteResult, FleetResult, GroundResult]:
        i = self.index_for(year)
        return self.sats[i], self.fleets[i], self.gnds[i]

    @property
    def crossover_index(self) -> int | None:
        if self.crossover_year is None:
            return None
        return self.index_for(self.crossover_year)

    def lcoc_ratio(self) -> list[float]:
        """Delivered orbital LCOC divided by ground market price, per year."""
        return [
            f.lcoc_effective / g.market if g.market > 0 else math.inf
            for f, g in zip(self.fleets, self.gnds)
        ]
