from __future__ import annotations

import math

import pytest

from orbital_compute import learning, lunar
from orbital_compute.config.params import Params
from orbital_compute.entities import LunarReadiness, SimulationState


def test_rnd_stock_step():
    assert learning.update_rnd_stock(100.0, 0.0) == pytest.approx(0.15 * math.log10(2.0))


def test_rnd_stock_bounded():
    assert learning.update_rnd_stock(1e30, 4.99) == learning.K_MAX
    assert learning.update_rnd_stock(0.0, 0.0) == 0.0
    assert learning.update_rnd_stock(0.0, 1.0) == pytest.approx(0.98)


def test_rnd_boost_limits():
    none = learning.apply_rnd_boost(0.0)
    assert none.chip_efficiency == 1.0
    assert none.manufacturing_cost == 1.0
    assert none.launch_learn_boost == 0.0
    full = learning.apply_rnd_boost(100.0)
    assert full.chip_efficiency == pytest.approx(2.5)
    assert full.solar_efficiency == pytest.approx(1.3)
    assert full.launch_learn_boost == pytest.approx(0.08)


def test_cadence_boost():
    assert learning.get_cadence_boost(0.0) == pytest.approx(200.0 / 500.0 * 0.08)
    assert learning.get_cadence_boost(1e6) == learning.CADENCE_BOOST_MAX
    params = Params()
    assert learning.get_effective_launch_learn_rate(300.0, params) == pytest.approx(params.launch_learn + 0.08)


def test_state_walk_bounds(baseline_result):
    prev_mass = 0.0
    for state in baseline_result.states:
        assert 0.0 <= state.rnd_stock <= learning.K_MAX
        assert 0.0 <= state.lunar_readiness <= 1.0
        assert state.cumulative_mass_to_orbit_kg >= prev_mass
        prev_mass = state.cumulative_mass_to_orbit_kg
    assert [s.year for s in baseline_result.states] == baseline_result.years


def test_readiness_sigmoid():
    assert lunar.readiness_sigmoid(5.0, 5.0) == pytest.approx(0.5)
    assert lunar.readiness_sigmoid(0.0, 5.0) < 0.01
    assert lunar.readiness_sigmoid(1e9, 5.0) > 0.99
    assert lunar.readiness_sigmoid(10.0, 5.0, k=8) > lunar.readiness_sigmoid(10.0, 5.0, k=2)


def test_readiness_index_bounded():
    params = Params(fusion_on=True, fusion_year=2030)
    state = SimulationState(
        year=2070,
        cumulative_mass_to_orbit_kg=1e12,
        global_compute_exaflops=1e6,
        orbital_power_tw=100.0,
    )
    readiness = lunar.get_lunar_readiness(state, params)
    assert readiness.index == 1.0
    assert readiness.status == "Ready for lunar infrastructure"


def test_efficient_paradigms_keep_launch_on_earth():
    params = Params(thermo_on=True, thermo_year=2029, photonic_on=True, photonic_year=2029, fission_on=False)
    readiness = lunar.get_lunar_readiness(SimulationState(year=2030), params)
    assert readiness.status == "Earth launch sufficient"
    assert readiness.tech_adjustment == pytest.approx(-0.30)


def test_early_state_not_ready(default_params):
    readiness = lunar.get_lunar_readiness(SimulationState(year=2026), default_params)
    assert readiness.status == "Not ready"
    assert 0.0 <= readiness.index < 0.4


def test_unlock_year():
    history = [
        SimulationState(year=2040, lunar=LunarReadiness(index=0.5)),
        SimulationState(year=2041, lunar=LunarReadiness(index=0.75)),
        SimulationState(year=2042, lunar=LunarReadiness(index=0.9)),
    ]
    assert lunar.get_lunar_unlock_year(history) == 2051
    assert lunar.get_lunar_unlock_year(history[:1]) is None


def test_cislunar_launch_cost():
    assert lunar.get_cislunar_launch_cost(2050, 100.0, 2045) == lunar.MASS_DRIVER_COST_PER_KG
    assert lunar.get_cislunar_launch_cost(2040, 100.0, 2045) == 100.0
    assert lunar.get_cislunar_launch_cost(2050, 100.0, None) == 100.0
