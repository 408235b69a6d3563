"""
Multi-shell fleet deployment.

Each year the fleet is sized in stages: unconstrained growth targets per
shell, then scaled to fit downlink bandwidth and eligible demand (LEO is
served first), floored by the previous year's surviving platforms, and
finally limited by heavy-lift launch capacity. Carryover between years lives
in a FleetTracker owned by the caller.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .closure import ClosureSettings
from .config.params import Params
from .constants import SHELL_NAMES, SHELLS, START_YEAR, STARSHIP_PAYLOAD_KG
from .entities import FleetResult, SatelliteResult
from .market import get_demand
from .orbital import get_shell_radiation_effects
from .physics import (
    get_bandwidth,
    get_effective_bw_per_tflop,
    get_max_flights,
    get_payload_per_flight_kg,
    get_tokens_per_year,
)
from .reliability import get_addressable_market_fraction
from .satellite import size_satellite
from .utils import clamp, years_since

# Growth targets (platforms)
PRE_CROSSOVER_BASE = 50
PRE_CROSSOVER_PER_YEAR = 20
PRE_CROSSOVER_MAX = 500
LEO_INITIAL = 500
LEO_FULL_FRACTION = 0.95
GEO_INITIAL = 50
GEO_GROWTH = 1.5
GEO_GROWTH_YEARS = 1.5
CISLUNAR_INITIAL = 50
CISLUNAR_DOUBLING_YEARS = 2.0
MIN_YEARS_POST_CROSSOVER = 2
CISLUNAR_MATURITY_YEARS = 10.0
MAX_ISRU_ACCELERATION = 3.0

# Bandwidth need relative to raw TFLOPS x Gbps/TFLOPS
FISSION_BW_EFFICIENCY = 0.5
FUSION_BW_EFFICIENCY = 0.2

MAX_ELIGIBLE_SHARE = 0.70
MAX_LCOC_BOOST = 2.0
DEMAND_HEADROOM = 0.95

# Bottleneck detection
PRE_BREAKTHROUGH_THERMAL_RATIO = 0.2
THERMAL_HEADROOM_ALERT = 0.3
SLOT_ALERT = 0.8
BANDWIDTH_OVERRIDE_SELL = 0.95


@dataclass
class FleetTracker:
    """Previous-year platform counts and deployed mass, per shell."""

    counts: dict[str, int] = field(default_factory=dict)
    masses: dict[str, float] = field(default_factory=dict)

    def reset(self) -> None:
        self.counts.clear()
        self.masses.clear()

    def prev_count(self, shell: str) -> int:
        return self.counts.get(shell, 0)

    def prev_mass(self, shell: str) -> float:
        return self.masses.get(shell, 0.0)

    def record(self, counts: dict[str, int], sats: dict[str, SatelliteResult]) -> None:
        for shell, count in counts.items():
            self.counts[shell] = count
            self.masses[shell] = count * sats[shell].dry_mass_kg


# =============================================================================
# Stages
# =============================================================================


def _unconstrained_targets(
    year: int,
    crossover_year: int | None,
    params: Params,
    sats: dict[str, SatelliteResult],
) -> dict[str, int]:
    targets = {shell: 0 for shell in SHELL_NAMES}
    t = years_since(year, START_YEAR)

    if crossover_year is None or year < crossover_year:
        targets["leo"] = min(PRE_CROSSOVER_MAX, PRE_CROSSOVER_BASE + PRE_CROSSOVER_PER_YEAR * t)
        return targets

    yp = year - crossover_year
    leo_cap = SHELLS["leo"].capacity
    targets["leo"] = min(leo_cap, round(LEO_INITIAL * 2.0 ** (yp / params.leo_doubling_years)))

    leo_full = targets["leo"] >= LEO_FULL_FRACTION * leo_cap
    if leo_full and yp >= MIN_YEARS_POST_CROSSOVER:
        years_to_fill = math.log2(leo_cap / LEO_INITIAL) * params.leo_doubling_years
        years_after_full = max(0.0, yp - years_to_fill)
        geo = round(GEO_INITIAL * GEO_GROWTH ** (years_after_full / GEO_GROWTH_YEARS))
        targets["geo"] = min(SHELLS["geo"].capacity, geo)

    if sats["cislunar"].power_kw > 0 and yp >= MIN_YEARS_POST_CROSSOVER:
        n = CISLUNAR_INITIAL * 2.0 ** ((yp - MIN_YEARS_POST_CROSSOVER) / CISLUNAR_DOUBLING_YEARS)
        n *= clamp((year - params.thermal_year) / CISLUNAR_MATURITY_YEARS, 0.1, 1.0)
        if params.lunar_isru_on and year >= params.lunar_isru_year:
            n *= 1.0 + min(MAX_ISRU_ACCELERATION, 0.5 * (year - params.lunar_isru_year + 1))
        targets["cislunar"] = min(SHELLS["cislunar"].capacity, round(n))

    return targets


def _bw_per_platform(
    year: int, params: Params, sats: dict[str, SatelliteResult]
) -> dict[str, float]:
    """Downlink each platform needs (Gbps)."""
    bw_per_tflop = get_effective_bw_per_tflop(year, params)
    efficiency = FISSION_BW_EFFICIENCY if params.fission_active(year) else 1.0
    per = {}
    for shell, sat in sats.items():
        if shell == "cislunar":
            cis_eff = FUSION_BW_EFFICIENCY if params.fusion_active(year) else efficiency
            per[shell] = sat.tflops * bw_per_tflop * cis_eff * (1.0 - params.cislunar_local_ratio)
        else:
            per[shell] = sat.tflops * bw_per_tflop * efficiency
    return per


def _fit_protecting_leo(
    counts: dict[str, int], per_platform: dict[str, float], limit: float
) -> dict[str, int]:
    """Scale counts so sum(count * per_platform) fits `limit`.

    LEO is served first; other shells share what is left. If LEO alone does
    not fit, LEO is scaled and every other shell is dropped.
    """
    fitted = dict(counts)
    leo_need = counts["leo"] * per_platform["leo"]
    others = [s for s in counts if s != "leo"]
    other_need = sum(counts[s] * per_platform[s] for s in others)

    if leo_need <= limit:
        remaining = limit - leo_need
        if other_need > remaining and other_need > 0:
            scale = remaining / other_need
            for s in others:
                fitted[s] = round(counts[s] * scale)
    else:
        fitted["leo"] = round(limit / per_platform["leo"]) if per_platform["leo"] > 0 else 0
        for s in others:
            fitted[s] = 0
    return fitted


def _survivors(
    shell: str, year: int, params: Params, tracker: FleetTracker, sat: SatelliteResult
) -> int:
    """Platforms still operating from last year, in current-platform equivalents."""
    rr = get_shell_radiation_effects(shell, year, params).replacement_rate
    by_count = tracker.prev_count(shell) * (1.0 - rr)
    by_mass = 0.0
    if sat.dry_mass_kg > 0:
        by_mass = tracker.prev_mass(shell) * (1.0 - rr) / sat.dry_mass_kg
    return min(SHELLS[shell].capacity, math.ceil(max(by_count, by_mass) - 1e-9))


def _upgrade_mass_kg(shell: str, survivors: int, tracker: FleetTracker, sat: SatelliteResult) -> float:
    """Mass lifted to bring last year's surviving platforms up to this year's design."""
    prev_count = tracker.prev_count(shell)
    if survivors <= 0 or prev_count <= 0:
        return 0.0
    legacy_kg = tracker.prev_mass(shell) / prev_count * min(prev_count, survivors)
    return max(0.0, survivors * sat.dry_mass_kg - legacy_kg)


def _lunar_sourced(shell: str, year: int, params: Params) -> bool:
    return shell == "cislunar" and params.lunar_isru_on and year >= params.lunar_isru_year


def _allocate_launch(
    requests: list[tuple[str, float, float]], capacity_kg: float
) -> tuple[dict[str, int], float]:
    """Serve (shell, platforms, kg per platform) requests in one priority tier.

    Shortfalls are shared in proportion to requested mass. Returns platforms
    served per shell and the capacity left.
    """
    served: dict[str, int] = {}
    total_kg = sum(n * kg for _, n, kg in requests)
    if total_kg <= 0:
        return {shell: 0 for shell, _, _ in requests}, capacity_kg
    share = min(1.0, capacity_kg / total_kg)
    used = 0.0
    for shell, n, kg in requests:
        count = math.floor(n * share + 1e-9) if share < 1.0 else int(n)
        served[shell] = count
        used += count * kg
    return served, max(0.0, capacity_kg - used)


def _serve_by_priority(
    replace: dict[str, int],
    growth: dict[str, int],
    kg_per_platform: dict[str, float],
    shells: list[str],
    capacity_kg: float,
) -> tuple[dict[str, int], dict[str, int]]:
    """Split launch capacity across `shells`.

    LEO replacements are served first, then replacements in the other shells,
    then growth in proportion to the mass each shell still needs.
    """
    remaining = capacity_kg
    served_replace: dict[str, int] = {}
    for tier in (["leo"], [s for s in shells if s != "leo"]):
        requests = [(s, replace[s], kg_per_platform[s]) for s in tier if s in shells]
        served, remaining = _allocate_launch(requests, remaining)
        served_replace.update(served)
    requests = [(s, growth[s], kg_per_platform[s]) for s in shells]
    served_growth, _ = _allocate_launch(requests, remaining)
    return served_replace, served_growth


# =============================================================================
# Fleet sizing
# =============================================================================


def size_fleet(
    year: int,
    crossover_year: int | None,
    params: Params,
    tracker: FleetTracker,
    closure: ClosureSettings | None = None,
) -> FleetResult:
    """Size the orbital fleet for `year` and record it in `tracker`.

    Args:
        year: Calendar year.
        crossover_year: Year orbital compute undercuts ground, or None for
            the pre-crossover trickle deployment.
        params: Model parameters.
        tracker: Previous-year carryover; updated in place.
        closure: Iteration limits for platform sizing.
    """
    sats = {shell: size_satellite(year, params, shell, closure) for shell in SHELL_NAMES}
    leo = sats["leo"]

    dynamic_share = min(
        MAX_ELIGIBLE_SHARE,
        params.orbital_eligible_share
        * min(MAX_LCOC_BOOST, params.eligible_lcoc_reference / max(0.01, leo.lcoc)),
    )

    targets = _unconstrained_targets(year, crossover_year, params, sats)

    # Bandwidth
    bw_avail_gbps = get_bandwidth(year, params) * 1000.0
    bw_per = _bw_per_platform(year, params, sats)
    unconstrained_bw = sum(targets[s] * bw_per[s] for s in SHELL_NAMES)
    counts = _fit_protecting_leo(targets, bw_per, bw_avail_gbps)

    # Demand
    eligible_gw = get_demand(year, params) * dynamic_share
    power_gw_per = {s: sats[s].power_kw / 1e6 for s in SHELL_NAMES}
    counts = _fit_protecting_leo(counts, power_gw_per, eligible_gw * DEMAND_HEADROOM)

    # Survivors from last year are a floor
    survivors = {s: _survivors(s, year, params, tracker, sats[s]) for s in SHELL_NAMES}
    for s in SHELL_NAMES:
        counts[s] = min(SHELLS[s].capacity, max(counts[s], survivors[s]))

    # Launch capacity
    max_flights = get_max_flights(year, params)
    payload_kg = get_payload_per_flight_kg(year, params)
    capacity_kg = max_flights * payload_kg

    replace = {}
    growth = {}
    for s in SHELL_NAMES:
        kept = survivors[s]
        replace[s] = max(0, min(counts[s], tracker.prev_count(s)) - kept)
        growth[s] = max(0, counts[s] - kept - replace[s])

    earth = [s for s in SHELL_NAMES if not _lunar_sourced(s, year, params)]
    upgrade_kg = {s: _upgrade_mass_kg(s, survivors[s], tracker, sats[s]) for s in SHELL_NAMES}
    earth_upgrade_kg = sum(upgrade_kg[s] for s in earth)
    needed_kg = earth_upgrade_kg + sum(
        (replace[s] + growth[s]) * sats[s].dry_mass_kg for s in earth
    )
    launch_constrained = needed_kg > capacity_kg

    if launch_constrained:
        # Surviving platforms are upgraded before anything new flies
        served_replace, served_growth = _serve_by_priority(
            replace,
            growth,
            {s: sats[s].dry_mass_kg for s in SHELL_NAMES},
            earth,
            max(0.0, capacity_kg - earth_upgrade_kg),
        )
        for s in earth:
            counts[s] = survivors[s] + served_replace.get(s, 0) + served_growth.get(s, 0)

    launched = {s: max(0, counts[s] - survivors[s]) for s in SHELL_NAMES}
    annual_mass_kg = earth_upgrade_kg + sum(launched[s] * sats[s].dry_mass_kg for s in earth)
    lunar_mass_kg = sum(
        launched[s] * sats[s].dry_mass_kg + upgrade_kg[s] for s in SHELL_NAMES if s not in earth
    )

    # Final fleet
    power_tw = {s: counts[s] * sats[s].power_kw / 1e9 for s in SHELL_NAMES}
    total_power_tw = sum(power_tw.values())
    fleet_tflops = sum(counts[s] * sats[s].tflops for s in SHELL_NAMES)
    bw_needed = sum(counts[s] * bw_per[s] for s in SHELL_NAMES)

    bw_sell = 1.0 if bw_needed <= 0 else min(1.0, bw_avail_gbps / bw_needed)
    fleet_gw = total_power_tw * 1000.0
    demand_sell = 1.0 if fleet_gw <= 0 else min(1.0, eligible_gw / fleet_gw)
    sellable = min(bw_sell, demand_sell)

    weights = {
        s: counts[s] * sats[s].tflops
        for s in SHELL_NAMES
        if sats[s].lcoc_or_none is not None and counts[s] > 0
    }
    total_weight = sum(weights.values())
    if total_weight > 0:
        production_lcoc = sum(w * sats[s].lcoc for s, w in weights.items()) / total_weight
    else:
        production_lcoc = leo.lcoc
    lcoc_effective = production_lcoc / max(0.01, sellable)

    # Bottleneck
    ratios: dict[str, float] = {}
    headroom = max(0.0, 1.0 - leo.margins.thermal)
    breakthrough = (
        params.thermal_active(year) or params.fission_active(year) or params.fusion_active(year)
    )
    if not breakthrough:
        ratios["thermal"] = min(PRE_BREAKTHROUGH_THERMAL_RATIO, headroom)
    elif leo.thermal_limited or headroom < THERMAL_HEADROOM_ALERT:
        ratios["thermal"] = headroom
    if launch_constrained:
        ratios["launch_capacity"] = capacity_kg / needed_kg
    bw_ratio = bw_avail_gbps / unconstrained_bw if unconstrained_bw > 0 else 1.0
    if bw_ratio < 1.0:
        ratios["bandwidth"] = bw_ratio
    if demand_sell < 1.0:
        ratios["demand"] = demand_sell
    slot_util = max(
        (counts[s] / SHELLS[s].capacity for s in SHELL_NAMES if s != "cislunar" and SHELLS[s].viable),
        default=0.0,
    )
    if slot_util > SLOT_ALERT:
        ratios["slots"] = 1.0 - slot_util

    bottleneck = min(ratios, key=ratios.get) if ratios else "power"
    # Reported as bandwidth whenever downlink leaves compute unsold
    if bw_sell < BANDWIDTH_OVERRIDE_SELL:
        bottleneck = "bandwidth"

    fleet_mass_kg = sum(counts[s] * sats[s].dry_mass_kg for s in SHELL_NAMES)
    tracker.record(counts, sats)

    return FleetResult(
        year=year,
        platforms=counts,
        power_tw=power_tw,
        total_power_tw=total_power_tw,
        fleet_tflops=fleet_tflops,
        production_lcoc=production_lcoc,
        lcoc_effective=lcoc_effective,
        bw_avail_gbps=bw_avail_gbps,
        bw_needed_gbps=bw_needed,
        bw_util=min(1.0, bw_needed / bw_avail_gbps) if bw_avail_gbps > 0 else 1.0,
        bw_sell=bw_sell,
        eligible_demand_gw=eligible_gw,
        dynamic_eligible_share=dynamic_share,
        demand_util=min(1.0, fleet_gw / eligible_gw) if eligible_gw > 0 else 0.0,
        demand_sell=demand_sell,
        sellable_util=sellable,
        bottleneck=bottleneck,
        constraint_ratios=ratios,
        replacement_rate=get_shell_radiation_effects("leo", year, params).replacement_rate,
        fleet_mass_kg=fleet_mass_kg,
        annual_mass_kg=annual_mass_kg,
        annual_flights=annual_mass_kg / payload_kg,
        max_flights=max_flights,
        lunar_sourced_mass_kg=lunar_mass_kg,
        platforms_launched=float(sum(launched.values())),
        launch_constrained=launch_constrained,
        starship_flights_to_deploy=fleet_mass_kg / STARSHIP_PAYLOAD_KG,
        delivered_tokens_per_year=get_tokens_per_year(fleet_tflops * sellable, params),
        addressable_fraction=get_addressable_market_fraction(params.orbital_sla),
        sat_power_kw=leo.power_kw,
        cislunar_power_kw=sats["cislunar"].power_kw,
    )
