"""
Charts for scenario results.

Writes PNGs with the non-interactive Agg backend so plotting works headless.
"""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from .entities import ScenarioResult  # noqa: E402
from .reporting import sanitize_log_series  # noqa: E402

plt.rcParams.update(
    {
        "font.family": "serif",
        "font.size": 11,
        "axes.titlesize": 14,
        "axes.labelsize": 12,
        "figure.dpi": 150,
    }
)

SCENARIO_COLORS = {
    "aggressive": "#E94F37",  # Vermillion
    "baseline": "#2E86AB",  # Steel blue
    "conservative": "#6C757D",  # Grey
}
SHELL_COLORS = {
    "leo": "#2E86AB",
    "meo": "#A23B72",
    "geo": "#F18F01",
    "cislunar": "#6C757D",
}


def plot_lcoc_comparison(results: dict[str, ScenarioResult], output_path: Path | str) -> Path:
    """Delivered orbital LCOC against the ground market price, log scale."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(10, 6))
    for name, result in results.items():
        color = SCENARIO_COLORS.get(name, "black")
        orbital = sanitize_log_series([f.lcoc_effective for f in result.fleets])
        ground = sanitize_log_series([g.market for g in result.gnds])
        if all(v is not None for v in orbital):
            ax.plot(result.years, orbital, color=color, linewidth=2, label=f"{name} orbital")
        if all(v is not None for v in ground):
            ax.plot(result.years, ground, color=color, linestyle="--", label=f"{name} ground")
        if result.crossover_year is not None:
            ax.axvline(result.crossover_year, color=color, linestyle=":", alpha=0.6)

    ax.set_yscale("log")
    ax.set_xlabel("Year")
    ax.set_ylabel("Cost ($/GPU-hr)")
    ax.set_title("Orbital vs Terrestrial Compute Cost")
    ax.legend(loc="upper right", fontsize=9)
    ax.grid(True, which="both", alpha=0.3)

    fig.tight_layout()
    fig.savefig(output_path, bbox_inches="tight")
    plt.close(fig)
    return output_path


def plot_fleet_power(result: ScenarioResult, output_path: Path | str) -> Path:
    """Stacked orbital fleet power by shell (TW)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    shells = list(result.fleets[0].power_tw) if result.fleets else []
    series = [[f.power_tw.get(shell, 0.0) for f in result.fleets] for shell in shells]

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.stackplot(
        result.years,
        series,
        labels=[shell.upper() for shell in shells],
        colors=[SHELL_COLORS.get(shell, "black") for shell in shells],
        alpha=0.85,
    )
    ax.set_xlabel("Year")
    ax.set_ylabel("Orbital power (TW)")
    ax.set_title(f"Fleet Power by Shell ({result.name})")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    fig.savefig(output_path, bbox_inches="tight")
    plt.close(fig)
    return output_path
