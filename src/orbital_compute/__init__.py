"""Orbital vs terrestrial compute techno-economic simulator."""

from .config import ModelSettings, Params, ScenarioType
from .entities import FleetResult, GroundResult, SatelliteResult, ScenarioResult
from .fleet import FleetTracker, size_fleet
from .ground import size_ground
from .satellite import size_satellite
from .simulation import compute_all, run_scenario

__version__ = "0.1.0"

__all__ = [
    "FleetResult",
    "FleetTracker",
    "GroundResult",
    "ModelSettings",
    "Params",
    "SatelliteResult",
    "ScenarioResult",
    "ScenarioType",
    "compute_all",
    "run_scenario",
    "size_fleet",
    "size_ground",
    "size_satellite",
]
