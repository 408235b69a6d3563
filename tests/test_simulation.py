from __future__ import annotations

import math
from types import SimpleNamespace

import pytest

from orbital_compute.config.params import Params
from orbital_compute.simulation import (
    SCENARIO_ORDER,
    ScenarioEngine,
    find_crossover_year,
    get_scenario_params,
    run_scenario,
)


def _as_rank(year):
    return math.inf if year is None else year


def test_crossover_year_sanity(all_results):
    for result in all_results.values():
        orbital = [f.lcoc_effective for f in result.pre_fleets]
        ground = [g.market for g in result.pre_gnds]
        if result.crossover_year is None:
            assert not orbital[-1] < ground[-1]
            continue
        i = result.crossover_index
        assert all(orbital[j] < ground[j] for j in range(i, len(orbital)))
        if i > 0:
            assert not orbital[i - 1] < ground[i - 1]


def test_scenario_crossover_ordering(all_results):
    ranks = [_as_rank(all_results[name].crossover_year) for name in SCENARIO_ORDER]
    assert ranks[0] <= ranks[1] <= ranks[2]


def test_all_scenarios_cover_full_range(all_results, default_params):
    assert list(all_results) == list(SCENARIO_ORDER)
    for result in all_results.values():
        assert result.years[0] == 2026 and result.years[-1] == 2050
        assert len(result.fleets) == len(result.gnds) == len(result.sats) == len(result.years)
        assert len(result.states) == len(result.years)


def test_ground_priced_against_orbital_supply(baseline_result):
    for fleet, gnd in zip(baseline_result.fleets, baseline_result.gnds):
        assert gnd.orbital_supply_gw == pytest.approx(fleet.total_power_tw * 1000.0)
    assert all(g.orbital_supply_gw == 0.0 for g in baseline_result.pre_gnds)


def test_runs_are_reproducible():
    first = run_scenario("baseline", Params(), 2026, 2032)
    second = run_scenario("baseline", Params(), 2026, 2032)
    assert first.crossover_year == second.crossover_year
    assert [f.platforms for f in first.fleets] == [f.platforms for f in second.fleets]
    assert [g.market for g in first.gnds] == [g.market for g in second.gnds]


def test_scenario_transforms():
    base = Params()
    aggressive = get_scenario_params("aggressive", base)
    conservative = get_scenario_params("conservative", base)
    assert get_scenario_params("baseline", base) == base
    assert aggressive.ai_learn == pytest.approx(base.ai_learn * 1.4)
    assert aggressive.thermal_year == base.thermal_year - 3
    assert conservative.fission_year == base.fission_year + 5
    assert conservative.demand_growth == pytest.approx(base.demand_growth * 0.7)


def test_unknown_scenario_raises():
    with pytest.raises(KeyError):
        run_scenario("optimistic", Params())


def test_reversed_year_range_raises():
    with pytest.raises(ValueError):
        ScenarioEngine(Params(), start_year=2030, end_year=2029)


def test_find_crossover_year():
    years = [2026, 2027, 2028]
    fleets = [SimpleNamespace(lcoc_effective=v) for v in (5.0, 3.0, 1.0)]
    gnds = [SimpleNamespace(market=v) for v in (2.0, 2.0, 2.0)]
    assert find_crossover_year(years, fleets, gnds) == 2028
    never = [SimpleNamespace(lcoc_effective=math.inf) for _ in years]
    assert find_crossover_year(years, never, gnds) is None


def test_lost_crossover_does_not_count():
    years = [2026, 2027, 2028, 2029, 2030]
    gnds = [SimpleNamespace(market=2.0) for _ in years]
    lost = [SimpleNamespace(lcoc_effective=v) for v in (3.0, 1.0, 1.5, 2.5, 3.0)]
    assert find_crossover_year(years, lost, gnds) is None
    regained = [SimpleNamespace(lcoc_effective=v) for v in (3.0, 1.0, 2.5, 1.5, 1.0)]
    assert find_crossover_year(years, regained, gnds) == 2029
    tie = [SimpleNamespace(lcoc_effective=v) for v in (1.0, 1.0, 2.0, 1.0, 1.0)]
    assert find_crossover_year(years, tie, gnds) == 2029
    always = [SimpleNamespace(lcoc_effective=1.0) for _ in years]
    assert find_crossover_year(years, always, gnds) == 2026


def test_year_lookup(baseline_result):
    sat, fleet, gnd = baseline_result.at(2035)
    assert sat.year == fleet.year == gnd.year == 2035
    with pytest.raises(KeyError):
        baseline_result.index_for(2051)
    assert len(baseline_result.lcoc_ratio()) == len(baseline_result.years)
