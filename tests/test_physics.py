from __future__ import annotations

import math

import pytest

from orbital_compute import physics
from orbital_compute.config.params import Params

YEARS = range(2026, 2071)


def test_launch_cost_non_increasing_and_above_floor(default_params):
    costs = [physics.get_launch_cost(y, default_params) for y in YEARS]
    for prev, cur in zip(costs, costs[1:]):
        assert cur <= prev
    assert all(c >= default_params.launch_floor for c in costs)


def test_launch_cost_drops_ninety_percent_by_2050(default_params):
    assert physics.get_launch_cost(2050, default_params) / physics.get_launch_cost(2026, default_params) < 0.1


def test_launch_cost_scales_with_shell(default_params):
    leo = physics.get_launch_cost(2030, default_params, "leo")
    assert physics.get_launch_cost(2030, default_params, "geo") == pytest.approx(1.6 * leo)
    assert physics.get_launch_cost(2030, default_params, "cislunar") == pytest.approx(2.5 * leo)


def test_launch_floor_before_and_after_heavy_lift(default_params):
    assert physics.get_launch_floor(2026, default_params) == physics.CONVENTIONAL_LAUNCH_FLOOR
    assert physics.get_launch_floor(2030, default_params) == default_params.launch_floor


def test_max_flights_ramp_is_capped(default_params):
    assert physics.get_max_flights(2026, default_params) == physics.CONVENTIONAL_FLIGHTS_PER_YEAR
    assert physics.get_max_flights(2070, default_params) == default_params.max_launches_per_year
    assert physics.get_payload_per_flight_kg(2026, default_params) < physics.get_payload_per_flight_kg(2030, default_params)


def test_efficiency_monotonic_and_orbital_below_ground(default_params):
    ground = [physics.get_ground_efficiency(y, default_params) for y in YEARS]
    orbital = [physics.get_orbital_efficiency(y, default_params) for y in YEARS]
    for prev, cur in zip(ground, ground[1:]):
        assert cur >= prev
    for prev, cur in zip(orbital, orbital[1:]):
        assert cur >= prev
    for g, o in zip(ground, orbital):
        assert o <= g


def test_orbital_efficiency_grows_tenfold_by_2050(default_params):
    ratio = physics.get_orbital_efficiency(2050, default_params) / physics.get_orbital_efficiency(2026, default_params)
    assert ratio > 10


def test_radiation_penalty_decays_to_floor(default_params):
    assert physics.get_radiation_penalty(2026, default_params) == pytest.approx(default_params.rad_pen)
    assert physics.get_radiation_penalty(2070, default_params) == physics.RAD_PENALTY_FLOOR


def test_paradigm_multiplier_only_when_active():
    params = Params(photonic_on=True, photonic_year=2035)
    assert physics.get_paradigm_multiplier(2034, params, space=True) == 1.0
    assert physics.get_paradigm_multiplier(2035, params, space=True) == params.photonic_space_mult
    assert physics.get_paradigm_multiplier(2035, params, space=False) == params.photonic_ground_mult


def test_thermo_multiplier_weights_probabilistic_share():
    params = Params(thermo_on=True, thermo_year=2029)
    wp = params.workload_probabilistic
    expected = (1.0 - wp) + params.thermo_space_mult * wp
    assert physics.get_paradigm_multiplier(2030, params, space=True) == pytest.approx(expected)


def test_thermal_breakthrough_cuts_radiator_mass(default_params):
    year = default_params.thermal_year
    before = physics.get_radiator_mass_per_mw(year - 1, 300.0, default_params)
    after = physics.get_radiator_mass_per_mw(year, 300.0, default_params)
    assert after < 0.1 * before
    assert physics.get_radiator_mass_per_mw(2035, 300.0, default_params) < 0.1 * physics.get_radiator_mass_per_mw(
        2028, 300.0, default_params
    )


def test_conventional_radiators_heavier_for_bigger_platforms():
    params = Params(thermal_on=False)
    assert physics.get_radiator_mass_per_mw(2028, 500.0, params) > physics.get_radiator_mass_per_mw(2028, 100.0, params)


def test_radiator_net_flux_positive_and_higher_in_eclipse(default_params):
    sunlit = physics.get_radiator_net_w_per_m2(default_params, in_eclipse=False)
    eclipse = physics.get_radiator_net_w_per_m2(default_params, in_eclipse=True)
    assert 0 < sunlit < eclipse
    avg = physics.get_average_net_flux(default_params)
    assert sunlit < avg < eclipse


def test_eclipse_fraction_override_and_shell_defaults():
    no_override = Params(eclipse_frac=0.0)
    assert 0.0 <= physics.get_eclipse_fraction(no_override, "leo") <= 1.0
    assert physics.get_eclipse_fraction(no_override, "leo") > physics.get_eclipse_fraction(no_override, "geo")
    assert physics.get_eclipse_fraction(Params(eclipse_frac=0.2), "geo") == 0.2


def test_orbital_periods():
    assert 1.5 < physics.get_orbital_period_hours("leo") < 1.7
    assert physics.get_orbital_period_hours("geo") == pytest.approx(23.93, rel=0.01)


def test_eclipse_hours_capped(default_params):
    assert physics.get_eclipse_hours(default_params, "cislunar") <= physics.MAX_ECLIPSE_HOURS


def test_cots_blend_bounds_and_direction():
    assert physics.get_cots_blend(1500.0) == 0.0
    assert physics.get_cots_blend(physics.COTS_RAD_HARD_LAUNCH_COST) == 0.0
    assert physics.get_cots_blend(physics.COTS_FULL_LAUNCH_COST) == pytest.approx(1.0)
    assert physics.get_cots_blend(10.0) == 1.0
    assert physics.get_cots_blend(0.0) == 1.0
    mid = [physics.get_cots_blend(c) for c in (900.0, 500.0, 300.0, 150.0)]
    assert all(0.0 < b < 1.0 for b in mid)
    assert mid == sorted(mid)


def test_bandwidth_grows(default_params):
    assert physics.get_bandwidth(2026, default_params) == pytest.approx(default_params.bandwidth)
    assert physics.get_bandwidth(2030, default_params) > physics.get_bandwidth(2026, default_params)


def test_bw_per_tflop_declines_to_floor(default_params):
    start = physics.get_effective_bw_per_tflop(2026, default_params)
    assert start == pytest.approx(default_params.gbps_per_tflop)
    assert physics.get_effective_bw_per_tflop(2070, default_params) == pytest.approx(
        default_params.gbps_per_tflop * physics.BW_PER_TFLOP_FLOOR
    )


def test_goodput_and_comms_limit(default_params):
    goodput = physics.get_platform_goodput_gbps(2026, default_params)
    assert goodput == pytest.approx(20.0 * 0.25 * 0.85)
    assert physics.get_platform_goodput_gbps(2040, default_params) > goodput
    limit = physics.get_comms_tflops_limit(2026, default_params)
    expected = goodput * 1e9 / 8.0 / default_params.bytes_per_token * default_params.flops_per_token / 1e12
    assert limit == pytest.approx(expected)


def test_token_throughput(default_params):
    assert physics.get_tokens_per_second(1.0, default_params) == pytest.approx(1e12 / 140e9)
    per_year = physics.get_tokens_per_year(1.0, default_params)
    assert per_year < physics.get_tokens_per_second(1.0, default_params) * 8760 * 3600


def test_solar_and_battery_improve_with_caps(default_params):
    assert physics.get_solar_efficiency(2026, default_params) == pytest.approx(default_params.solar_eff)
    assert physics.get_solar_efficiency(2070, default_params) <= physics.MAX_SOLAR_EFF
    assert physics.get_battery_density(2070, default_params) <= physics.MAX_BATTERY_WH_PER_KG
    assert physics.get_battery_density(2030, default_params) > default_params.batt_dens


def test_platform_power_by_shell(default_params):
    leo = physics.get_platform_power_kw(2026, default_params, "leo")
    assert leo == pytest.approx(240.0)
    assert physics.get_platform_power_kw(2026, default_params, "meo") == pytest.approx(0.8 * leo)
    assert physics.get_platform_power_kw(2026, default_params, "geo") == pytest.approx(5.0 * leo)
    assert physics.get_platform_power_kw(2026, default_params, "cislunar") == 0.0
    assert physics.get_platform_power_kw(2036, default_params, "leo") == pytest.approx(6500.0)
    assert physics.get_cislunar_power(2036, default_params) > 0


def test_unknown_shell_raises(default_params):
    with pytest.raises(KeyError):
        physics.get_platform_power_kw(2030, default_params, "heo")


def test_manufacturing_multiplier_learns_to_floor(default_params):
    assert physics.get_prod_mult(2026, default_params) == default_params.prod_mult
    later = physics.get_prod_mult(2040, default_params)
    assert physics.PROD_MULT_FLOOR <= later < default_params.prod_mult
    assert math.isfinite(later)
