from __future__ import annotations

import json
import math

import pandas as pd
import pytest

from orbital_compute import plots, reliability, reporting


def test_mask_invalid():
    assert reporting.mask_invalid([1.0, 0.0, -2.0, math.inf, math.nan, None]) == [1.0, None, None, None, None, None]


def test_sanitize_fills_interior_with_geometric_mean():
    assert reporting.sanitize_log_series([1.0, None, 4.0]) == pytest.approx([1.0, 2.0, 4.0])
    assert reporting.sanitize_log_series([1.0, math.inf, -3.0, 16.0]) == pytest.approx([1.0, 4.0, 4.0, 16.0])


def test_sanitize_fills_edges_from_single_neighbour():
    assert reporting.sanitize_log_series([None, 2.0, math.inf]) == pytest.approx([2.0, 2.0, 2.0])


def test_sanitize_all_invalid_stays_none():
    assert reporting.sanitize_log_series([0.0, -1.0, math.nan]) == [None, None, None]


def test_safe_value():
    assert reporting._safe_value(math.inf) is None
    assert reporting._safe_value(math.nan) is None
    assert reporting._safe_value(3) == 3 and isinstance(reporting._safe_value(3), int)
    assert reporting._safe_value(True) is True
    assert reporting._safe_value("leo") == "leo"


def test_build_kpis(baseline_result):
    kpis = reporting.build_kpis(baseline_result)
    assert sorted(kpis) == list(reporting.KPI_YEARS)
    k = kpis[2035]
    _, fleet, gnd = baseline_result.at(2035)
    assert k["ground_market"] == pytest.approx(gnd.market)
    assert k["total_platforms"] == fleet.total_platforms
    assert k["ground_sla_lcoc"] > k["ground_market"]
    if k["orbital_lcoc"] is not None:
        assert k["orbital_sla_lcoc"] > k["orbital_lcoc"]
    assert k["orbital_sla_cost_mult"] == pytest.approx(
        reliability.get_sla_cost_multiplier(baseline_result.params.orbital_sla)
    )


def test_build_kpis_skips_years_outside_run(baseline_result):
    assert 2060 not in reporting.build_kpis(baseline_result, years=(2030, 2060))


def test_scenario_frame(baseline_result):
    frame = reporting.scenario_frame(baseline_result)
    assert len(frame) == len(baseline_result.years)
    assert frame["year"].tolist() == baseline_result.years
    assert {"lcoc_effective", "ground_market", "bottleneck", "total_power_tw"} <= set(frame.columns)


def test_export_scenario_report(baseline_result, tmp_path):
    summary = reporting.export_scenario_report(baseline_result, tmp_path)
    csv_path = tmp_path / "baseline_timeseries.csv"
    json_path = tmp_path / "baseline_summary.json"
    assert csv_path.exists() and json_path.exists()
    assert len(pd.read_csv(csv_path)) == len(baseline_result.years)
    loaded = json.loads(json_path.read_text())
    assert loaded["crossover_year"] == baseline_result.crossover_year
    assert loaded["scenario"] == summary["scenario"] == "baseline"
    assert loaded["years"] == [2026, 2050]


def test_export_comparison_report(all_results, tmp_path):
    comparison = reporting.export_comparison_report(all_results, tmp_path)
    assert (tmp_path / "scenario_comparison.csv").exists()
    loaded = json.loads((tmp_path / "scenario_comparison.json").read_text())
    assert [row["scenario"] for row in loaded["scenarios"]] == list(all_results)
    assert loaded["earliest_crossover"] == comparison["earliest_crossover"]
    crossed = [n for n, r in all_results.items() if r.crossover_year is not None]
    assert sorted(loaded["no_crossover"]) == sorted(set(all_results) - set(crossed))


def test_plots_write_pngs(all_results, baseline_result, tmp_path):
    comparison = plots.plot_lcoc_comparison(all_results, tmp_path / "charts" / "lcoc.png")
    fleet = plots.plot_fleet_power(baseline_result, tmp_path / "fleet.png")
    assert comparison.exists() and comparison.stat().st_size > 0
    assert fleet.exists() and fleet.stat().st_size > 0
