#!/usr/bin/env python3
"""
Orbital Compute Simulator - Main Pipeline Entry Point.

Usage:
    orbital-compute                               # Baseline scenario, 2026-2050
    orbital-compute --scenario all                # All three scenarios
    orbital-compute --end-year 2070               # Extend the horizon
    orbital-compute --params overrides.yaml       # Parameter overrides
    orbital-compute --output results/run1 --plots # Custom output, with charts
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import Sequence

from .config.settings import ModelSettings, ScenarioType
from .constants import END_YEAR, START_YEAR
from .entities import ScenarioResult
from .model import OrbitalComputeModel


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Orbital vs Terrestrial Compute Techno-Economic Simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  orbital-compute --scenario all --plots
  orbital-compute --scenario aggressive --end-year 2060 --output results/aggressive
        """,
    )

    parser.add_argument(
        "--scenario",
        type=str,
        choices=[s.value for s in ScenarioType] + ["all"],
        default="baseline",
        help="Scenario to run, or 'all' (default: baseline)",
    )

    parser.add_argument(
        "--start-year",
        type=int,
        default=START_YEAR,
        help=f"First simulated year (default: {START_YEAR})",
    )

    parser.add_argument(
        "--end-year",
        type=int,
        default=END_YEAR,
        help=f"Last simulated year (default: {END_YEAR}, max 2070)",
    )

    parser.add_argument(
        "--params",
        type=str,
        default=None,
        help="YAML file with a 'params:' section of overrides",
    )

    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory for results (default: results/<timestamp>)",
    )

    parser.add_argument(
        "--plots",
        action="store_true",
        help="Write PNG charts alongside the reports",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )

    return parser.parse_args(argv)


def create_settings(args: argparse.Namespace) -> ModelSettings:
    """
    Create ModelSettings from command line arguments.

    Raises:
        ValueError: If the year range is invalid
    """
    if args.output:
        output_dir = Path(args.output)
    else:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_dir = Path(f"results/{timestamp}")

    return ModelSettings(
        scenarios=ScenarioType.parse(args.scenario),
        start_year=args.start_year,
        end_year=args.end_year,
        make_plots=args.plots,
        output_dir=output_dir,
    )


def run_pipeline(
    settings: ModelSettings,
    params_path: Path | str | None = None,
    verbose: bool = False,
) -> dict[str, ScenarioResult]:
    """
    Run the complete simulation pipeline.

    Args:
        settings: Model settings (REQUIRED)
        params_path: Optional parameter override file
        verbose: Enable verbose output

    Returns:
        Scenario results keyed by scenario name
    """
    if settings is None:
        raise ValueError("settings is REQUIRED")

    if verbose:
        print("=" * 60)
        print("Orbital vs Terrestrial Compute Simulator")
        print("=" * 60)
        print(f"Scenarios: {', '.join(s.value for s in settings.scenarios)}")
        print(f"Years: {settings.start_year}-{settings.end_year}")
        print(f"Params: {params_path or 'defaults'}")
        print(f"Output: {settings.output_dir}")
        print("=" * 60)

    # ---------------------------------------------------------------------
    # Step 1: Initialize Model
    # ---------------------------------------------------------------------
    if verbose:
        print("\n[Step 1] Initializing model...")

    model = OrbitalComputeModel(settings=settings, params_path=params_path)

    try:
        if verbose:
            print(f"  - Closure: max_iterations={model.closure.max_iterations}, "
                  f"tolerance={model.closure.tolerance}")

        # ---------------------------------------------------------------------
        # Step 2: Run Scenarios
        # ---------------------------------------------------------------------
        if verbose:
            print("[Step 2] Running scenarios...")

        results = model.run()

        if verbose:
            for name, result in results.items():
                crossover = result.crossover_year or "none"
                unlock = result.lunar_unlock_year or "none"
                _, fleet, gnd = result.at(result.years[-1])
                print(f"\n[Result] {name}")
                print(f"  - Crossover year: {crossover}")
                print(f"  - Lunar unlock year: {unlock}")
                print(f"  - Final orbital LCOC: ${fleet.lcoc_effective:.3f}/GPU-hr")
                print(f"  - Final ground market: ${gnd.market:.3f}/GPU-hr")
                print(f"  - Final fleet power: {fleet.total_power_tw:.4f} TW")
                print(f"  - Final bottleneck: {fleet.bottleneck}")

        # ---------------------------------------------------------------------
        # Step 3: Export Results
        # ---------------------------------------------------------------------
        if verbose:
            print(f"\n[Step 3] Exporting results to {settings.output_dir}...")

        model.export_results(settings.output_dir)

        if verbose:
            print("\n[Done]")

        return results

    finally:
        if verbose:
            print("\n[Audit] Checking for unused configuration parameters...")
        model.check_unused_parameters()


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        settings = create_settings(args)
        run_pipeline(
            settings=settings,
            params_path=Path(args.params) if args.params else None,
            verbose=args.verbose,
        )
        return 0

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except (ValueError, KeyError, TypeError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 3
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        raise


if __name__ == "__main__":
    sys.exit(main())
