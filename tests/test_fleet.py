from __future__ import annotations

from types import SimpleNamespace

import pytest

from orbital_compute.config.params import Params
from orbital_compute.constants import SHELL_NAMES
from orbital_compute.fleet import (
    PRE_CROSSOVER_BASE,
    FleetTracker,
    _allocate_launch,
    _fit_protecting_leo,
    _serve_by_priority,
    _upgrade_mass_kg,
    size_fleet,
)
from orbital_compute.orbital import get_shell_radiation_effects
from orbital_compute.physics import get_payload_per_flight_kg
from orbital_compute.satellite import size_satellite
from orbital_compute.simulation import run_scenario


def test_tracker_reset_clears_carryover():
    tracker = FleetTracker()
    size_fleet(2026, None, Params(), tracker)
    assert tracker.prev_count("leo") > 0
    assert tracker.prev_mass("leo") > 0
    tracker.reset()
    assert tracker.prev_count("leo") == 0
    assert tracker.prev_mass("leo") == 0.0


def test_first_year_trickle_deployment():
    tracker = FleetTracker()
    fleet = size_fleet(2026, None, Params(), tracker)
    assert 0 < fleet.leo_platforms <= PRE_CROSSOVER_BASE
    assert fleet.meo_platforms == 0
    assert fleet.geo_platforms == 0
    assert fleet.cislunar_platforms == 0
    assert tracker.prev_count("leo") == fleet.leo_platforms
    assert fleet.total_power_tw == pytest.approx(sum(fleet.power_tw.values()))


def test_fleet_utilisation_and_costs(baseline_result):
    for fleet in baseline_result.fleets:
        assert 0.0 < fleet.sellable_util <= 1.0
        assert fleet.sellable_util == pytest.approx(min(fleet.bw_sell, fleet.demand_sell))
        assert fleet.lcoc_effective >= fleet.production_lcoc
        assert fleet.bottleneck in {"thermal", "launch_capacity", "bandwidth", "demand", "slots", "power"}
        assert fleet.annual_mass_kg >= 0.0
        assert fleet.meo_platforms == 0


def test_fleet_monotonic_floor(baseline_result):
    params = baseline_result.params
    fleets = baseline_result.fleets
    for prev, cur in zip(fleets, fleets[1:]):
        for shell in SHELL_NAMES:
            rr = get_shell_radiation_effects(shell, cur.year, params).replacement_rate
            assert cur.platforms[shell] >= prev.platforms[shell] * (1.0 - rr) - 1e-6


def test_bandwidth_bottleneck_override(baseline_result):
    for fleet in baseline_result.fleets:
        if fleet.bw_sell < 0.95:
            assert fleet.bottleneck == "bandwidth"


def test_same_tracker_reused_after_reset_is_reproducible():
    tracker = FleetTracker()
    params = Params()
    first = [size_fleet(y, None, params, tracker) for y in range(2026, 2031)]
    tracker.reset()
    second = [size_fleet(y, None, params, tracker) for y in range(2026, 2031)]
    assert [f.platforms for f in first] == [f.platforms for f in second]


def test_allocate_launch_shares_shortfall_by_mass():
    served, left = _allocate_launch([("leo", 10, 100.0), ("geo", 10, 100.0)], 1000.0)
    assert served == {"leo": 5, "geo": 5}
    assert left == 0.0


def test_allocate_launch_with_spare_capacity():
    served, left = _allocate_launch([("leo", 10, 100.0), ("geo", 4, 250.0)], 5000.0)
    assert served == {"leo": 10, "geo": 4}
    assert left == pytest.approx(3000.0)


def test_allocate_launch_nothing_requested():
    served, left = _allocate_launch([("leo", 0, 100.0)], 500.0)
    assert served == {"leo": 0}
    assert left == 500.0


def test_fit_protecting_leo_scales_other_shells():
    counts = {"leo": 10, "geo": 10, "cislunar": 0}
    per = {"leo": 1.0, "geo": 1.0, "cislunar": 1.0}
    assert _fit_protecting_leo(counts, per, 15.0) == {"leo": 10, "geo": 5, "cislunar": 0}
    assert _fit_protecting_leo(counts, per, 100.0) == counts


def test_fit_protecting_leo_drops_others_when_leo_overflows():
    counts = {"leo": 10, "geo": 10}
    per = {"leo": 1.0, "geo": 1.0}
    assert _fit_protecting_leo(counts, per, 5.0) == {"leo": 5, "geo": 0}


def test_serve_by_priority_fills_leo_replacements_first():
    replace = {"leo": 10, "meo": 0, "geo": 10, "cislunar": 0}
    growth = {"leo": 20, "meo": 0, "geo": 20, "cislunar": 0}
    kg = {"leo": 100.0, "meo": 100.0, "geo": 100.0, "cislunar": 100.0}
    served_replace, served_growth = _serve_by_priority(replace, growth, kg, ["leo", "meo", "geo"], 1500.0)
    assert served_replace == {"leo": 10, "meo": 0, "geo": 5}
    assert served_growth == {"leo": 0, "meo": 0, "geo": 0}


def test_serve_by_priority_starves_geo_when_leo_takes_everything():
    replace = {"leo": 10, "geo": 10}
    growth = {"leo": 5, "geo": 5}
    kg = {"leo": 100.0, "geo": 100.0}
    served_replace, served_growth = _serve_by_priority(replace, growth, kg, ["leo", "geo"], 1000.0)
    assert served_replace == {"leo": 10, "geo": 0}
    assert served_growth == {"leo": 0, "geo": 0}


def test_serve_by_priority_splits_growth_by_unmet_mass():
    replace = {"leo": 10, "geo": 10}
    growth = {"leo": 30, "geo": 10}
    kg = {"leo": 100.0, "geo": 100.0}
    served_replace, served_growth = _serve_by_priority(replace, growth, kg, ["leo", "geo"], 4000.0)
    assert served_replace == {"leo": 10, "geo": 10}
    assert served_growth == {"leo": 15, "geo": 5}


def test_serve_by_priority_skips_lunar_sourced_shells():
    replace = {"leo": 0, "cislunar": 10}
    growth = {"leo": 4, "cislunar": 40}
    kg = {"leo": 100.0, "cislunar": 100.0}
    served_replace, served_growth = _serve_by_priority(replace, growth, kg, ["leo"], 200.0)
    assert "cislunar" not in served_replace and "cislunar" not in served_growth
    assert served_growth == {"leo": 2}


def test_launch_shortfall_limits_growth_not_survivors():
    params = Params(max_launches_per_year=1)
    year = 2040
    leo = size_satellite(year, params, "leo")
    tracker = FleetTracker()
    tracker.record({"leo": 400}, {"leo": leo})
    fleet = size_fleet(year, 2030, params, tracker)
    rr = get_shell_radiation_effects("leo", year, params).replacement_rate
    assert fleet.launch_constrained
    assert "launch_capacity" in fleet.constraint_ratios
    assert fleet.leo_platforms >= 400 * (1.0 - rr) - 1e-6
    assert fleet.leo_platforms < 400
    assert fleet.annual_mass_kg <= fleet.max_flights * get_payload_per_flight_kg(year, params) + 1e-6


def test_upgrade_mass_charges_design_change():
    tracker = FleetTracker(counts={"leo": 10}, masses={"leo": 10 * 1000.0})
    heavier = SimpleNamespace(dry_mass_kg=3000.0)
    lighter = SimpleNamespace(dry_mass_kg=500.0)
    assert _upgrade_mass_kg("leo", 9, tracker, heavier) == pytest.approx(9 * 2000.0)
    assert _upgrade_mass_kg("leo", 9, tracker, lighter) == 0.0
    assert _upgrade_mass_kg("leo", 0, tracker, heavier) == 0.0
    assert _upgrade_mass_kg("geo", 5, tracker, heavier) == 0.0


@pytest.mark.parametrize("scenario", ["aggressive", "baseline"])
def test_fleet_mass_growth_is_launched(scenario):
    result = run_scenario(scenario, Params())
    for fleets in (result.pre_fleets, result.fleets):
        for prev, cur in zip(fleets, fleets[1:]):
            growth = cur.fleet_mass_kg - prev.fleet_mass_kg
            lifted = cur.annual_mass_kg + cur.lunar_sourced_mass_kg
            assert growth <= lifted + 1e-6 * max(1.0, prev.fleet_mass_kg)


def test_lunar_sourced_cislunar_mass_is_not_earth_launched():
    params = Params(bandwidth=1e9, demand2025=1e7, max_launches_per_year=100_000)
    year = params.lunar_isru_year + 1
    fleet = size_fleet(year, 2030, params, FleetTracker())
    assert fleet.cislunar_platforms > 0
    sats = {shell: size_satellite(year, params, shell) for shell in SHELL_NAMES}
    earth_kg = sum(fleet.platforms[s] * sats[s].dry_mass_kg for s in SHELL_NAMES if s != "cislunar")
    assert fleet.lunar_sourced_mass_kg == pytest.approx(fleet.cislunar_platforms * sats["cislunar"].dry_mass_kg)
    assert fleet.annual_mass_kg == pytest.approx(earth_kg)


def test_cislunar_mass_is_earth_launched_before_isru():
    params = Params(bandwidth=1e9, demand2025=1e7, max_launches_per_year=100_000, lunar_isru_on=False)
    fleet = size_fleet(2046, 2030, params, FleetTracker())
    assert fleet.lunar_sourced_mass_kg == 0.0
    total_kg = sum(
        fleet.platforms[s] * size_satellite(2046, params, s).dry_mass_kg for s in SHELL_NAMES
    )
    assert fleet.annual_mass_kg == pytest.approx(total_kg)
