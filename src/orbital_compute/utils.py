from __future__ import annotations

import math
import sys
from pathlib import Path
from typing import Any

import yaml

# =============================================================================
# Constants
# =============================================================================

DEFAULT_CONSTANTS_PATH = Path(__file__).parent / "config" / "constants.yaml"

REQUIRED_CONSTANT_SECTIONS = ["time", "physics", "shells", "scenarios", "solver"]
REQUIRED_TIME_KEYS = ["start_year", "end_year", "hours_per_year"]
REQUIRED_PHYSICS_KEYS = [
    "stefan_boltzmann",
    "solar_constant",
    "earth_radius_km",
    "earth_mu_km3_s2",
    "h100_tflops",
    "starship_payload_kg",
    "conventional_payload_kg",
]
REQUIRED_SHELLS = ["leo", "meo", "geo", "cislunar"]
REQUIRED_SHELL_KEYS = [
    "altitude_km",
    "latency_ms",
    "tid_mult",
    "seu_mult",
    "capacity",
    "cost_mult",
    "eclipse_frac",
]
REQUIRED_SCENARIOS = ["aggressive", "baseline", "conservative"]
REQUIRED_SCENARIO_KEYS = [
    "learn_mult",
    "tech_year_offset",
    "demand_mult",
    "launch_learn_mult",
]
REQUIRED_SOLVER_KEYS = ["max_iterations", "tolerance"]


# =============================================================================
# Config Tracker
# =============================================================================


class ConfigTracker(dict):
    """
    Wraps a configuration dictionary to track key access.
    Inherits from dict to pass isinstance checks.
    """

    def __init__(self, data: Any, path: str = ""):
        super().__init__(data)
        self._data = data
        self._path = path
        self._accessed = set()
        self._children = {}

    def __getitem__(self, key: Any) -> Any:
        self._accessed.add(key)

        if key in self._children:
            return self._children[key]

        val = self._data[key]

        # Nested sections are wrapped so their keys are audited too
        if isinstance(val, dict):
            child_path = f"{self._path}.{key}" if self._path else str(key)
            tracker = ConfigTracker(val, child_path)
            self._children[key] = tracker
            return tracker

        return val

    def get(self, key: Any, default: Any = None) -> Any:
        self._accessed.add(key)
        if key in self._data:
            return self.__getitem__(key)
        return default

    def items(self):
        for k in self:
            yield k, self[k]

    def values(self):
        for k in self:
            yield self[k]

    def report_unused(self, out_stream=None) -> None:
        """Print unused parameters to the output stream (stdout by default)."""
        out_stream = out_stream or sys.stdout
        unused = self.collect_unused()
        if unused:
            out_stream.write("\n" + "=" * 60 + "\n")
            out_stream.write(
                "WARNING: The following configuration parameters were NOT used:\n"
            )
            out_stream.write("=" * 60 + "\n")
            for path in sorted(unused):
                out_stream.write(f"  - {path}\n")
            out_stream.write("=" * 60 + "\n")

    def collect_unused(self) -> list[str]:
        unused = []
        for k in self:
            if k not in self._accessed:
                full_path = f"{self._path}.{k}" if self._path else str(k)
                unused.append(full_path)
            elif k in self._children:
                unused.extend(self._children[k].collect_unused())
        return unused


# =============================================================================
# Loading & Validation
# =============================================================================


def load_constants_from_file(path: Path | str) -> ConfigTracker:
    """Load a YAML file and wrap it with a tracker.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is empty or not a mapping
    """
    path = Path(path)
    if not path.exists():
        # Try relative to this file
        path = Path(__file__).parent / path
    if not path.exists():
        raise FileNotFoundError(f"Constants file not found: {path}")
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        raise ValueError(f"Constants file is empty: {path}")
    if not isinstance(data, dict):
        raise ValueError(f"Constants file must contain a mapping: {path}")
    return ConfigTracker(data)


def validate_constants(constants: ConfigTracker | dict[str, Any]) -> None:
    """
    Validate that all required keys are present in constants.

    Raises:
        KeyError: If required key is missing
        ValueError: If a value is out of range
    """
    for section in REQUIRED_CONSTANT_SECTIONS:
        if section not in constants:
            raise KeyError(f"Missing required section in constants.yaml: '{section}'")

    _require_keys(constants["time"], REQUIRED_TIME_KEYS, "time")
    _require_keys(constants["physics"], REQUIRED_PHYSICS_KEYS, "physics")
    _require_keys(constants["solver"], REQUIRED_SOLVER_KEYS, "solver")

    shells = constants["shells"]
    for name in REQUIRED_SHELLS:
        if name not in shells:
            raise KeyError(f"Missing required shell in constants.yaml: '{name}'")
        _require_keys(shells[name], REQUIRED_SHELL_KEYS, f"shells.{name}")
        if shells[name]["capacity"] < 0:
            raise ValueError(f"shells.{name}.capacity must be non-negative")

    scenarios = constants["scenarios"]
    for name in REQUIRED_SCENARIOS:
        if name not in scenarios:
            raise KeyError(f"Missing required scenario in constants.yaml: '{name}'")
        _require_keys(scenarios[name], REQUIRED_SCENARIO_KEYS, f"scenarios.{name}")

    time = constants["time"]
    if time["end_year"] < time["start_year"]:
        raise ValueError("time.end_year must not precede time.start_year")
    if constants["solver"]["max_iterations"] < 1:
        raise ValueError("solver.max_iterations must be at least 1")
    if constants["solver"]["tolerance"] <= 0:
        raise ValueError("solver.tolerance must be positive")


def _require_keys(section: Any, keys: list[str], label: str) -> None:
    for key in keys:
        if key not in section:
            raise KeyError(f"Missing required key in constants.yaml {label}: '{key}'")


# =============================================================================
# Time Helpers
# =============================================================================


def get_index_for_year(year: int, start_year: int) -> int:
    """Convert a calendar year to its offset in per-year result arrays."""
    return int(year) - int(start_year)


def years_since(year: int, start_year: int) -> int:
    """Whole years elapsed since `start_year`, never negative."""
    return max(0, int(year) - int(start_year))


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def is_finite_positive(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and value > 0
