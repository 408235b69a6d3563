from __future__ import annotations

import pytest

from orbital_compute import finance, market
from orbital_compute.config.params import Params


def test_crf_exceeds_straight_line():
    assert finance.get_crf(0.12, 8) > 1 / 8


def test_crf_increases_with_wacc():
    assert finance.get_crf(0.20, 8) > finance.get_crf(0.08, 8)


def test_crf_decreases_with_life():
    assert finance.get_crf(0.12, 15) < finance.get_crf(0.12, 8)


def test_crf_zero_rate_is_straight_line():
    assert finance.get_crf(0.0, 10) == pytest.approx(0.1)
    assert finance.get_crf(0.1, 0) == 1.0


def test_annualize():
    assert finance.annualize(1000.0, 0.1, 10) == pytest.approx(1000.0 * finance.get_crf(0.1, 10))


def test_demand_and_supply_grow(default_params):
    assert market.get_demand(2035, default_params) > market.get_demand(2026, default_params)
    assert market.get_ground_supply(2035, default_params) > market.get_ground_supply(2026, default_params)


def test_smr_boosts_supply():
    with_smr = Params(smr_on=True, smr_year=2032)
    without = Params(smr_on=False)
    assert market.get_ground_supply(2040, with_smr) > market.get_ground_supply(2040, without)
    assert market.get_ground_supply(2031, with_smr) == pytest.approx(market.get_ground_supply(2031, without))


def test_btm_share_bounded(default_params):
    for year in range(2026, 2071):
        assert 0.0 <= market.get_btm_share(year, default_params) <= market.MAX_BTM_SHARE


def test_longer_interconnect_raises_btm_share():
    assert market.get_btm_share(2030, Params(interconnect=72.0)) > market.get_btm_share(2030, Params(interconnect=24.0))


def test_demand_pressure_clamped(default_params):
    for year in range(2026, 2071):
        p = market.get_demand_pressure(year, default_params)
        assert market.MIN_DEMAND_PRESSURE <= p <= market.MAX_DEMAND_PRESSURE
