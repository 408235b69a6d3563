"""
Orbital Compute Techno-Economic Model.

Ties runtime settings, parameter overrides and the scenario engine together:
load overrides, run the selected scenarios, export reports and charts.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from . import plots, reporting, utils
from .closure import ClosureSettings
from .config.params import Params
from .config.settings import ModelSettings
from .constants import DEFAULT_CLOSURE
from .entities import ScenarioResult
from .simulation import ScenarioEngine


# =============================================================================
# Core Model Class
# =============================================================================


class OrbitalComputeModel:
    """
    Scenario runner for orbital vs terrestrial compute economics.

    Parameters start from the Params defaults; an optional YAML override
    file supplies a `params:` section and, optionally, a `solver:` section
    for the satellite mass closure.
    """

    def __init__(
        self,
        settings: ModelSettings,
        params_path: Path | str | None = None,
    ):
        """
        Initialize the model.

        Args:
            settings: Runtime settings (REQUIRED)
            params_path: Optional YAML file of parameter overrides

        Raises:
            ValueError: If settings is None or the override file is empty
            FileNotFoundError: If the override file is not found
            TypeError: If an override has the wrong type
        """
        if settings is None:
            raise ValueError("settings is REQUIRED")

        self.settings = settings
        self.overrides: utils.ConfigTracker | None = None
        self.closure: ClosureSettings = DEFAULT_CLOSURE

        if params_path is not None:
            self.overrides = utils.load_constants_from_file(params_path)
            self.params = Params.from_config(self.overrides)
            if "solver" in self.overrides:
                self.closure = ClosureSettings.from_config(self.overrides)
        else:
            self.params = Params()

        self.results: dict[str, ScenarioResult] = {}

    def check_unused_parameters(self) -> None:
        """Report override keys the model never read."""
        if self.overrides is not None:
            self.overrides.report_unused()

    def run(self) -> dict[str, ScenarioResult]:
        """Run every scenario in the settings."""
        engine = ScenarioEngine(
            self.params,
            start_year=self.settings.start_year,
            end_year=self.settings.end_year,
            closure=self.closure,
        )
        self.results = {s.value: engine.run(s.value) for s in self.settings.scenarios}
        return self.results

    def export_results(self, output_path: Path | str) -> dict[str, Any]:
        """Write per-scenario reports, the comparison report and optional plots."""
        if not self.results:
            raise RuntimeError("No results available. Call run() first.")

        output_path = Path(output_path)
        output_path.mkdir(parents=True, exist_ok=True)

        summaries = {
            name: reporting.export_scenario_report(result, output_path)
            for name, result in self.results.items()
        }
        comparison = reporting.export_comparison_report(self.results, output_path)

        if self.settings.make_plots:
            plots.plot_lcoc_comparison(self.results, output_path / "lcoc_comparison.png")
            for name, result in self.results.items():
                plots.plot_fleet_power(result, output_path / f"{name}_fleet_power.png")

        print(f"Results exported to {output_path}")
        return {"summaries": summaries, "comparison": comparison}
