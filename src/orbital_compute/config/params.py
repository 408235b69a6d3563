"""Model parameters and scenario transforms."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class Params:
    """Tunable model parameters.

    Defaults are the baseline assumptions. Scenario transforms and user
    overrides produce modified copies via `replace`; a Params instance is
    never mutated.
    """

    # --- Technology unlocks -------------------------------------------------
    thermal_on: bool = True  # droplet / advanced radiators
    thermal_year: int = 2030
    fission_on: bool = True  # space fission reactors
    fission_year: int = 2035
    fusion_on: bool = False
    fusion_year: int = 2045
    smr_on: bool = True  # terrestrial small modular reactors
    smr_year: int = 2032
    thermo_on: bool = False  # thermodynamic (probabilistic) compute
    thermo_year: int = 2029
    thermo_ground_mult: float = 100.0
    thermo_space_mult: float = 1000.0
    photonic_on: bool = False
    photonic_year: int = 2035
    photonic_ground_mult: float = 30.0
    photonic_space_mult: float = 150.0
    workload_probabilistic: float = 0.15  # share of workload thermo compute can run
    starship_on: bool = True  # heavy-lift reusable launch
    starship_year: int = 2027

    # --- Thermal / radiative ------------------------------------------------
    emissivity: float = 0.85
    op_temp: float = 365.0  # K, radiator operating temperature
    rad_learn: float = 50.0  # kg/MW/yr conventional radiator improvement
    rad_two_sided: bool = True
    rad_mass_frac: float = 0.15  # radiator budget as fraction of dry mass
    waste_heat_frac: float = 0.90
    q_solar_abs_w_per_m2: float = 200.0
    q_albedo_abs_w_per_m2: float = 50.0
    q_earth_ir_abs_w_per_m2: float = 150.0
    eclipse_frac: float = 0.0  # 0 = use the shell default
    fusion_rad_temp: float = 800.0  # K

    # --- Power / solar ------------------------------------------------------
    solar_eff: float = 0.20
    solar_learn: float = 0.008
    base_power: float = 300.0  # kW
    compute_frac: float = 0.68
    batt_dens: float = 280.0  # Wh/kg

    # --- Compute ------------------------------------------------------------
    sat_life: float = 10.0  # years
    rad_pen: float = 0.30
    ai_learn: float = 0.20
    orbital_sla: float = 0.999

    # --- Launch / manufacturing / finance ----------------------------------
    launch_cost: float = 1500.0  # $/kg in the start year
    launch_learn: float = 0.18
    launch_floor: float = 10.0  # $/kg
    prod_mult: float = 2.5
    mfg_learn: float = 0.12
    maint_cost: float = 0.015
    wacc_orbital: float = 0.10
    wacc_ground: float = 0.08
    build_years: float = 2.0

    # --- Bandwidth ----------------------------------------------------------
    bandwidth: float = 50.0  # Tbps ground-station capacity in the start year
    bw_growth: float = 0.35
    gbps_per_tflop: float = 0.0001
    cislunar_local_ratio: float = 0.85
    bw_cost: float = 2000.0  # $/Gbps/yr
    terminal_goodput_gbps: float = 20.0
    terminal_max_gbps: float = 100.0
    max_terminals: int = 16
    contact_fraction: float = 0.25
    protocol_overhead: float = 0.15

    # --- Market -------------------------------------------------------------
    orbital_eligible_share: float = 0.35
    eligible_lcoc_reference: float = 0.50  # $/GPU-hr
    demand2025: float = 65.0  # GW
    demand_growth: float = 0.55
    supply2025: float = 60.0  # GW
    supply_growth: float = 0.08

    # --- Ground datacenter --------------------------------------------------
    ground_pue: float = 1.3
    energy_cost: float = 0.065  # $/kWh
    energy_escal: float = 0.04
    interconnect: float = 48.0  # months of grid interconnection queue
    ground_sla: float = 0.999
    ground_mtbf_hours: float = 8760.0
    checkpoint_sec: float = 600.0
    recovery_sec: float = 120.0

    # --- Behind-the-meter generation ----------------------------------------
    btm_share: float = 0.15
    btm_share_growth: float = 0.02
    btm_delay: float = 12.0  # months
    btm_capex_mult: float = 1.35
    btm_energy_cost: float = 0.04  # $/kWh

    # --- Fleet ----------------------------------------------------------------
    leo_doubling_years: float = 2.5
    max_launches_per_year: int = 2000
    lunar_isru_on: bool = True
    lunar_isru_year: int = 2045
    orbital_mtbf_hours: float = 4380.0

    # --- Token economics ----------------------------------------------------
    flops_per_token: float = 140e9
    bytes_per_token: float = 4.0

    @classmethod
    def from_config(cls, constants: Mapping[str, Any]) -> "Params":
        """Build parameters from the `params` section of an override file.

        Keys that are not Params fields are never read, so the configuration
        audit reports them as unused.

        Raises:
            TypeError: If a value cannot be used for its field.
        """
        overrides = constants.get("params", {}) or {}
        values: dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            if f.name in overrides:
                values[f.name] = _coerce(f.name, overrides.get(f.name), f.default)
        return cls(**values)

    def replace(self, **changes: Any) -> "Params":
        return dataclasses.replace(self, **changes)

    # Technology availability in a given year

    def thermal_active(self, year: int) -> bool:
        return self.thermal_on and year >= self.thermal_year

    def fission_active(self, year: int) -> bool:
        return self.fission_on and year >= self.fission_year

    def fusion_active(self, year: int) -> bool:
        return self.fusion_on and year >= self.fusion_year

    def smr_active(self, year: int) -> bool:
        return self.smr_on and year >= self.smr_year

    def thermo_active(self, year: int) -> bool:
        return self.thermo_on and year >= self.thermo_year

    def photonic_active(self, year: int) -> bool:
        return self.photonic_on and year >= self.photonic_year

    def starship_active(self, year: int) -> bool:
        return self.starship_on and year >= self.starship_year


def _coerce(name: str, value: Any, default: Any) -> Any:
    """Coerce a YAML value to the type of the field default."""
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise TypeError(f"Params.{name} must be bool, got {type(value).__name__}")
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(
            f"Params.{name} must be numeric, got {type(value).__name__}"
        )
    if isinstance(default, int):
        if float(value) != int(value):
            raise TypeError(f"Params.{name} must be an integer, got {value}")
        return int(value)
    return float(value)


@dataclass(frozen=True)
class ScenarioTransform:
    """Multiplicative/additive adjustments applied to base parameters."""

    name: str
    learn_mult: float = 1.0
    tech_year_offset: int = 0
    demand_mult: float = 1.0
    launch_learn_mult: float = 1.0

    @classmethod
    def from_config(cls, name: str, section: Mapping[str, Any]) -> "ScenarioTransform":
        """Load from a constants.yaml scenarios entry."""
        return cls(
            name=name,
            learn_mult=float(section["learn_mult"]),
            tech_year_offset=int(section["tech_year_offset"]),
            demand_mult=float(section["demand_mult"]),
            launch_learn_mult=float(section["launch_learn_mult"]),
        )

    def apply(self, params: Params) -> Params:
        offset = self.tech_year_offset
        return params.replace(
            ai_learn=params.ai_learn * self.learn_mult,
            launch_learn=params.launch_learn * self.launch_learn_mult,
            demand_growth=params.demand_growth * self.demand_mult,
            thermal_year=params.thermal_year + offset,
            fission_year=params.fission_year + offset,
            fusion_year=params.fusion_year + offset,
        )
