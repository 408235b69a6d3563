"""
Variable Settings for the Orbital Compute Simulator.

This module contains runtime-configurable settings that may change between runs:
which scenarios to run, the simulated year range and where to write output.

Static tables (shells, scenario transforms, solver settings) are in
config/constants.yaml. Model parameters are in config/params.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

# Sentinel for detecting missing required fields
_MISSING = object()

# Furthest year the learning curves are calibrated for
MAX_END_YEAR = 2070


class ScenarioType(Enum):
    """Scenario variants applied on top of the base parameters."""

    AGGRESSIVE = "aggressive"
    BASELINE = "baseline"
    CONSERVATIVE = "conservative"

    @classmethod
    def parse(cls, name: str) -> list["ScenarioType"]:
        """Map a CLI scenario string to one or all scenario types."""
        if name == "all":
            return list(cls)
        return [cls(name)]


@dataclass
class ModelSettings:
    """
    Runtime configuration for a single model run.

    `scenarios` is required. Year range defaults match constants.yaml.
    """

    scenarios: list[ScenarioType]
    start_year: int = 2026
    end_year: int = 2050
    make_plots: bool = False
    output_dir: Path = field(default_factory=lambda: Path("results"))

    def __post_init__(self):
        if isinstance(self.scenarios, ScenarioType):
            self.scenarios = [self.scenarios]
        _validate_required(self, "scenarios", self.scenarios, list)
        if not self.scenarios:
            raise ValueError("ModelSettings.scenarios cannot be empty")
        for scenario in self.scenarios:
            _validate_required(self, "scenarios[]", scenario, ScenarioType)

        _validate_required(self, "start_year", self.start_year, int)
        _validate_required(self, "end_year", self.end_year, int)
        _validate_positive(self, "start_year", self.start_year)
        _validate_range(self, "end_year", self.end_year, self.start_year, MAX_END_YEAR)
        _validate_required(self, "make_plots", self.make_plots, bool)

        # Coerce output_dir to Path if string
        if isinstance(self.output_dir, str):
            self.output_dir = Path(self.output_dir)

    @property
    def years(self) -> list[int]:
        return list(range(self.start_year, self.end_year + 1))


def _validate_required(
    obj: Any, field_name: str, value: Any, expected_type: type
) -> None:
    """Validate that a required field is provided and has correct type."""
    if value is _MISSING or value is None:
        raise ValueError(
            f"{obj.__class__.__name__}.{field_name} is REQUIRED and was not provided"
        )
    # bool is an int subclass; do not let True pass as a year
    if expected_type is int and isinstance(value, bool):
        raise TypeError(
            f"{obj.__class__.__name__}.{field_name} must be int, got bool"
        )
    if not isinstance(value, expected_type):
        raise TypeError(
            f"{obj.__class__.__name__}.{field_name} must be {expected_type.__name__}, "
            f"got {type(value).__name__}"
        )


def _validate_positive(obj: Any, field_name: str, value: float | int) -> None:
    """Validate that a numeric field is positive."""
    if value <= 0:
        raise ValueError(
            f"{obj.__class__.__name__}.{field_name} must be positive, got {value}"
        )


def _validate_range(
    obj: Any, field_name: str, value: float, min_val: float, max_val: float
) -> None:
    """Validate that a numeric field is within range."""
    if not (min_val <= value <= max_val):
        raise ValueError(
            f"{obj.__class__.__name__}.{field_name} must be in [{min_val}, {max_val}], got {value}"
        )
