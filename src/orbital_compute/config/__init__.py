"""Configuration package for the Orbital Compute Simulator."""

from .params import Params, ScenarioTransform
from .settings import MAX_END_YEAR, ModelSettings, ScenarioType

__all__ = [
    "MAX_END_YEAR",
    "ModelSettings",
    "Params",
    "ScenarioTransform",
    "ScenarioType",
]
