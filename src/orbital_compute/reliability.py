"""
SLA and reliability calculations for orbital and ground infrastructure.

Training workloads are checkpoint-resilient: a failure only loses the work
since the last checkpoint plus the restart time, so effective uptime depends
on MTBF and checkpoint interval as much as on the raw SLA.
"""

from __future__ import annotations

import math

from .config.params import Params
from .constants import HOURS_PER_YEAR, START_YEAR, get_shell
from .utils import years_since

# Minimum SLA each workload class tolerates
WORKLOAD_SLA_THRESHOLDS = {
    "real_time_inference": 0.9999,
    "enterprise_inference": 0.999,
    "model_training": 0.99,
    "batch_processing": 0.95,
    "research": 0.90,
}

# Share of compute demand by workload class
WORKLOAD_MIX = {
    "real_time_inference": 0.15,
    "enterprise_inference": 0.25,
    "model_training": 0.40,
    "batch_processing": 0.15,
    "research": 0.05,
}

SHELL_MTBF_MULT = {"leo": 1.0, "meo": 0.5, "geo": 1.2, "cislunar": 0.8}
MTBF_ANNUAL_IMPROVEMENT = 1.10
THERMAL_MTBF_MULT = 1.3
MAX_MTBF_VS_GROUND = 1.5
DEFAULT_CHECKPOINT_DURATION_SEC = 60.0


def get_shell_sla(shell: str, params: Params) -> float:
    """Target SLA of platforms in `shell`. All shells share the orbital target."""
    get_shell(shell)
    return params.orbital_sla


def calculate_effective_uptime(
    raw_sla: float,
    mtbf_hours: float,
    checkpoint_sec: float,
    recovery_sec: float,
) -> float:
    """Fraction of the year doing useful work.

    Raw SLA downtime plus, per failure, half a checkpoint interval of lost
    work and the recovery time.
    """
    raw_downtime_hours = HOURS_PER_YEAR * (1.0 - raw_sla)
    failures_per_year = HOURS_PER_YEAR / max(1e-9, mtbf_hours)
    lost_per_failure_sec = checkpoint_sec / 2.0 + recovery_sec
    recovery_hours = failures_per_year * lost_per_failure_sec / 3600.0
    return max(0.0, 1.0 - (raw_downtime_hours + recovery_hours) / HOURS_PER_YEAR)


def calculate_checkpoint_efficiency(
    checkpoint_sec: float, checkpoint_duration_sec: float = DEFAULT_CHECKPOINT_DURATION_SEC
) -> float:
    """Fraction of wall time spent computing rather than writing checkpoints."""
    if checkpoint_sec <= 0:
        return 0.5
    return max(0.5, (checkpoint_sec - checkpoint_duration_sec) / checkpoint_sec)


def get_sla_adjusted_lcoc(
    base_lcoc: float,
    target_sla: float,
    mtbf_hours: float,
    checkpoint_sec: float,
    recovery_sec: float,
) -> float:
    """LCOC per useful GPU-hour after uptime and checkpoint losses."""
    uptime = calculate_effective_uptime(target_sla, mtbf_hours, checkpoint_sec, recovery_sec)
    efficiency = uptime * calculate_checkpoint_efficiency(checkpoint_sec)
    if efficiency <= 0:
        return math.inf
    return base_lcoc / efficiency


def get_sla_cost_multiplier(target_sla: float) -> float:
    """Infrastructure cost multiplier for reliability: ~1.3x per nine above 99%."""
    if target_sla >= 1.0:
        return math.inf
    nines = -math.log10(1.0 - target_sla)
    if nines <= 2:
        return 1.0
    return 1.3 ** (nines - 2)


def get_servable_workloads(infrastructure_sla: float) -> dict[str, bool]:
    return {
        name: infrastructure_sla >= threshold
        for name, threshold in WORKLOAD_SLA_THRESHOLDS.items()
    }


def get_addressable_market_fraction(infrastructure_sla: float) -> float:
    """Share of compute demand whose SLA needs `infrastructure_sla` satisfies."""
    servable = get_servable_workloads(infrastructure_sla)
    return sum(WORKLOAD_MIX[name] for name, ok in servable.items() if ok)


def get_orbital_mtbf(year: int, shell: str, params: Params) -> float:
    """Platform MTBF in `shell` (hours), capped relative to ground hardware."""
    t = years_since(year, START_YEAR)
    mtbf = params.orbital_mtbf_hours * MTBF_ANNUAL_IMPROVEMENT**t
    mtbf *= SHELL_MTBF_MULT.get(shell, 1.0)
    if params.thermal_active(year):
        mtbf *= THERMAL_MTBF_MULT
    return min(mtbf, params.ground_mtbf_hours * MAX_MTBF_VS_GROUND)
