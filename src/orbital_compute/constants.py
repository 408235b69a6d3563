"""Static tables loaded once from the packaged constants.yaml."""

from __future__ import annotations

from typing import Any, Mapping

from . import utils
from .closure import ClosureSettings
from .config.params import ScenarioTransform
from .entities import Shell


def build_shells(constants: Mapping[str, Any]) -> dict[str, Shell]:
    shells = {}
    for name, cfg in constants["shells"].items():
        shells[name] = Shell(
            name=name,
            altitude_km=float(cfg["altitude_km"]),
            latency_ms=float(cfg["latency_ms"]),
            tid_mult=float(cfg["tid_mult"]),
            seu_mult=float(cfg["seu_mult"]),
            capacity=int(cfg["capacity"]),
            cost_mult=float(cfg["cost_mult"]),
            eclipse_frac=float(cfg["eclipse_frac"]),
        )
    return shells


def build_scenarios(constants: Mapping[str, Any]) -> dict[str, ScenarioTransform]:
    return {
        name: ScenarioTransform.from_config(name, cfg)
        for name, cfg in constants["scenarios"].items()
    }


CONSTANTS = utils.load_constants_from_file(utils.DEFAULT_CONSTANTS_PATH)
utils.validate_constants(CONSTANTS)

_time = CONSTANTS["time"]
_physics = CONSTANTS["physics"]

START_YEAR: int = int(_time["start_year"])
END_YEAR: int = int(_time["end_year"])
HOURS_PER_YEAR: float = float(_time["hours_per_year"])
SECONDS_PER_YEAR: float = HOURS_PER_YEAR * 3600.0
YEARS: list[int] = list(range(START_YEAR, END_YEAR + 1))

STEFAN_BOLTZMANN: float = float(_physics["stefan_boltzmann"])
SOLAR_CONSTANT: float = float(_physics["solar_constant"])
EARTH_RADIUS_KM: float = float(_physics["earth_radius_km"])
EARTH_MU_KM3_S2: float = float(_physics["earth_mu_km3_s2"])
H100_TFLOPS: float = float(_physics["h100_tflops"])
STARSHIP_PAYLOAD_KG: float = float(_physics["starship_payload_kg"])
CONVENTIONAL_PAYLOAD_KG: float = float(_physics["conventional_payload_kg"])

SHELLS: dict[str, Shell] = build_shells(CONSTANTS)
SHELL_NAMES: tuple[str, ...] = tuple(SHELLS)
SCENARIOS: dict[str, ScenarioTransform] = build_scenarios(CONSTANTS)
DEFAULT_CLOSURE = ClosureSettings.from_config(CONSTANTS)


def get_shell(name: str) -> Shell:
    """Look up a shell by name.

    Raises:
        KeyError: If the shell is unknown.
    """
    try:
        return SHELLS[name]
    except KeyError:
        raise KeyError(f"Unknown shell '{name}' (expected one of {list(SHELLS)})") from None
