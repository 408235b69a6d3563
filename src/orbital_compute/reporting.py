from __future__ import annotations

import dataclasses
import json
import math
from pathlib import Path
from typing import Any, Iterable, Sequence

import numpy as np
import pandas as pd

from .entities import ScenarioResult
from .reliability import get_orbital_mtbf, get_sla_adjusted_lcoc, get_sla_cost_multiplier

KPI_YEARS = (2026, 2030, 2035, 2040, 2050)


def export_scenario_report(result: ScenarioResult, output_path: Path | str) -> dict[str, Any]:
    """
    Export per-year results and a summary for one scenario.

    Writes:
      - <scenario>_timeseries.csv
      - <scenario>_summary.json
    """
    output_path = Path(output_path)
    output_path.mkdir(parents=True, exist_ok=True)

    frame = scenario_frame(result)
    frame.to_csv(output_path / f"{result.name}_timeseries.csv", index=False)

    summary = _build_summary(result)
    summary_path = output_path / f"{result.name}_summary.json"
    summary_path.write_text(json.dumps(summary, indent=2))
    return summary


def export_comparison_report(
    results: dict[str, ScenarioResult],
    output_path: Path | str,
) -> dict[str, Any]:
    """
    Export a side-by-side comparison of scenarios.

    Writes:
      - scenario_comparison.json
      - scenario_comparison.csv
    """
    output_path = Path(output_path)
    output_path.mkdir(parents=True, exist_ok=True)

    rows = [_comparison_row(result) for result in results.values()]
    pd.DataFrame(rows).to_csv(output_path / "scenario_comparison.csv", index=False)

    crossovers = {
        name: r.crossover_year for name, r in results.items() if r.crossover_year is not None
    }
    comparison = {
        "scenarios": rows,
        "earliest_crossover": min(crossovers, key=crossovers.get) if crossovers else None,
        "no_crossover": [name for name, r in results.items() if r.crossover_year is None],
    }
    (output_path / "scenario_comparison.json").write_text(json.dumps(comparison, indent=2))
    return comparison


def scenario_frame(result: ScenarioResult) -> pd.DataFrame:
    """One row per simulated year."""
    rows = []
    for i, year in enumerate(result.years):
        sat, fleet, gnd, state = result.sats[i], result.fleets[i], result.gnds[i], result.states[i]
        rows.append(
            {
                "year": year,
                "leo_power_source": sat.power_source,
                "leo_power_kw": sat.power_kw,
                "leo_compute_kw": sat.compute_kw,
                "leo_dry_mass_kg": sat.dry_mass_kg,
                "leo_tflops": sat.tflops,
                "leo_binding": sat.binding,
                "leo_lcoc": sat.lcoc_or_none,
                "launch_cost_per_kg": sat.launch_cost_per_kg,
                "production_lcoc": fleet.production_lcoc,
                "lcoc_effective": fleet.lcoc_effective_or_none,
                "ground_base": gnd.base,
                "ground_market": gnd.market,
                "scarcity_premium": gnd.premium,
                "leo_platforms": fleet.leo_platforms,
                "meo_platforms": fleet.meo_platforms,
                "geo_platforms": fleet.geo_platforms,
                "cislunar_platforms": fleet.cislunar_platforms,
                "total_power_tw": fleet.total_power_tw,
                "fleet_tflops": fleet.fleet_tflops,
                "bw_sell": fleet.bw_sell,
                "demand_sell": fleet.demand_sell,
                "sellable_util": fleet.sellable_util,
                "bottleneck": fleet.bottleneck,
                "annual_mass_kg": fleet.annual_mass_kg,
                "annual_flights": fleet.annual_flights,
                "launch_constrained": fleet.launch_constrained,
                "delivered_tokens_per_year": fleet.delivered_tokens_per_year,
                "cumulative_mass_to_orbit_kg": state.cumulative_mass_to_orbit_kg,
                "global_compute_exaflops": state.global_compute_exaflops,
                "rnd_stock": state.rnd_stock,
                "lunar_readiness": state.lunar_readiness,
            }
        )
    return pd.DataFrame(rows)


def build_kpis(
    result: ScenarioResult, years: Iterable[int] = KPI_YEARS
) -> dict[int, dict[str, Any]]:
    """Headline values at selected years; years outside the run are skipped."""
    params = result.params
    kpis = {}
    for year in years:
        if not result.years[0] <= year <= result.years[-1]:
            continue
        sat, fleet, gnd = result.at(year)
        # Cost per useful GPU-hour once failures and checkpoint writes are paid for
        orbital_sla_lcoc = get_sla_adjusted_lcoc(
            fleet.lcoc_effective,
            params.orbital_sla,
            get_orbital_mtbf(year, "leo", params),
            params.checkpoint_sec,
            params.recovery_sec,
        )
        ground_sla_lcoc = get_sla_adjusted_lcoc(
            gnd.market,
            params.ground_sla,
            params.ground_mtbf_hours,
            params.checkpoint_sec,
            params.recovery_sec,
        )
        kpis[year] = {
            "orbital_lcoc": _safe_value(fleet.lcoc_effective),
            "ground_market": _safe_value(gnd.market),
            "lcoc_ratio": _safe_value(fleet.lcoc_effective / gnd.market) if gnd.market > 0 else None,
            "orbital_sla_lcoc": _safe_value(orbital_sla_lcoc),
            "ground_sla_lcoc": _safe_value(ground_sla_lcoc),
            "orbital_sla_cost_mult": _safe_value(get_sla_cost_multiplier(params.orbital_sla)),
            "leo_platform_power_kw": sat.power_kw,
            "total_platforms": fleet.total_platforms,
            "total_power_tw": fleet.total_power_tw,
            "bottleneck": fleet.bottleneck,
        }
    return kpis


def mask_invalid(values: Sequence[float | None]) -> list[float | None]:
    """Replace non-finite and non-positive points with None."""
    return [
        float(v) if v is not None and math.isfinite(v) and v > 0 else None for v in values
    ]


def sanitize_log_series(values: Sequence[float | None]) -> list[float | None]:
    """Make a series plottable on a log axis.

    Invalid points are filled with the geometric mean of the nearest valid
    neighbours, or the single neighbour at either end. A series with no valid
    point stays all None.
    """
    masked = mask_invalid(values)
    arr = np.array([np.nan if v is None else v for v in masked], dtype=float)
    valid = np.flatnonzero(~np.isnan(arr))
    if len(valid) == 0:
        return masked

    filled = arr.copy()
    for i in np.flatnonzero(np.isnan(arr)):
        left = valid[valid < i]
        right = valid[valid > i]
        if len(left) and len(right):
            filled[i] = np.sqrt(arr[left[-1]] * arr[right[0]])
        elif len(left):
            filled[i] = arr[left[-1]]
        else:
            filled[i] = arr[right[0]]
    return [float(v) for v in filled]


def _build_summary(result: ScenarioResult) -> dict[str, Any]:
    final = result.states[-1]
    return {
        "scenario": result.name,
        "years": [result.years[0], result.years[-1]],
        "crossover_year": result.crossover_year,
        "lunar_unlock_year": result.lunar_unlock_year,
        "kpis": {str(year): values for year, values in build_kpis(result).items()},
        "final_state": {
            "cumulative_mass_to_orbit_kg": final.cumulative_mass_to_orbit_kg,
            "cumulative_orbital_flights": final.cumulative_orbital_flights,
            "orbital_power_tw": final.orbital_power_tw,
            "global_compute_exaflops": final.global_compute_exaflops,
            "rnd_stock": final.rnd_stock,
            "lunar_readiness": final.lunar_readiness,
            "lunar_status": final.lunar.status,
        },
        "invalid_designs": [
            {"year": s.year, "reason": s.invalid_reason} for s in result.sats if not s.is_valid
        ],
        "params": {k: _safe_value(v) for k, v in dataclasses.asdict(result.params).items()},
    }


def _comparison_row(result: ScenarioResult) -> dict[str, Any]:
    row: dict[str, Any] = {
        "scenario": result.name,
        "crossover_year": result.crossover_year,
        "lunar_unlock_year": result.lunar_unlock_year,
    }
    last = result.years[-1]
    _, fleet, gnd = result.at(last)
    row["final_lcoc_effective"] = _safe_value(fleet.lcoc_effective)
    row["final_ground_market"] = _safe_value(gnd.market)
    row["final_total_power_tw"] = fleet.total_power_tw
    row["final_platforms"] = fleet.total_platforms
    return row


def _safe_value(value: Any) -> Any:
    """JSON-safe scalar: non-finite floats become None."""
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    return value
