from __future__ import annotations

import numpy as np
import pytest

from orbital_compute.config.params import Params
from orbital_compute.ground import get_scarcity_premium, size_ground


@pytest.mark.parametrize("u", [0.0, 0.3, 1.0])
def test_premium_continuous_at_breakpoints(u):
    eps = 1e-9
    assert get_scarcity_premium(u - eps) == pytest.approx(get_scarcity_premium(u + eps), abs=1e-6)


def test_premium_non_decreasing():
    grid = np.linspace(-0.9, 5.0, 600)
    premiums = [get_scarcity_premium(float(u)) for u in grid]
    assert all(b >= a - 1e-12 for a, b in zip(premiums, premiums[1:]))


def test_premium_reference_points():
    assert get_scarcity_premium(-0.9) == 0.6
    assert get_scarcity_premium(0.0) == 1.0
    assert get_scarcity_premium(0.3) == pytest.approx(2.2)
    assert get_scarcity_premium(1.0) == pytest.approx(3.95)


def test_ground_result_consistency(default_params):
    gnd = size_ground(2026, 0.0, default_params)
    assert gnd.base > 0
    assert gnd.market == pytest.approx(gnd.base * gnd.premium)
    assert gnd.total_supply_gw == pytest.approx(gnd.ground_supply_gw)
    assert 0 < gnd.effective_uptime < 1
    assert gnd.utilization == pytest.approx(0.70)


def test_orbital_supply_relieves_scarcity(default_params):
    without = size_ground(2035, 0.0, default_params)
    with_orbital = size_ground(2035, 5000.0, default_params)
    assert with_orbital.unmet_ratio < without.unmet_ratio
    assert with_orbital.premium <= without.premium
    assert with_orbital.base == pytest.approx(without.base)


def test_smr_cuts_energy_cost():
    with_smr = size_ground(2040, 0.0, Params(smr_on=True))
    without = size_ground(2040, 0.0, Params(smr_on=False))
    assert with_smr.energy_cost < without.energy_cost
    assert with_smr.utilization > without.utilization


def test_pue_floor(default_params):
    assert size_ground(2070, 0.0, default_params).pue == pytest.approx(1.08)
