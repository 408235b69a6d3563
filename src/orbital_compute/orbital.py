"""Per-shell radiation degradation (TID lifetime, SEU availability)."""

from __future__ import annotations

from .config.params import Params
from .constants import SHELL_NAMES, START_YEAR, get_shell
from .entities import RadiationEffects
from .utils import years_since

# Share of radiation damage avoided by photonic compute; the remainder hits
# the electronic parts photonic platforms still carry
PHOTONIC_MITIGATION = 0.7
MAX_REPLACEMENT_RATE = 0.30


def get_shell_radiation_effects(shell: str, year: int, params: Params) -> RadiationEffects:
    """Radiation effects for platforms operating in `shell` during `year`."""
    info = get_shell(shell)
    photonic = params.photonic_active(year)
    t = years_since(year, START_YEAR)

    tid_factor = info.tid_mult
    if photonic:
        tid_factor *= 1.0 - PHOTONIC_MITIGATION
    effective_life = params.sat_life / max(1e-6, tid_factor)

    # Rad-hard design practice improves SEU tolerance geometrically
    rad_hard_base = 0.82 + params.rad_pen * 0.1
    excess = (info.seu_mult - 1.0) * rad_hard_base**t
    if photonic:
        excess *= 1.0 - PHOTONIC_MITIGATION
    # Shells quieter than LEO do not earn more than full availability
    seu_penalty = max(1.0, 1.0 + excess)

    return RadiationEffects(
        shell=shell,
        tid_factor=tid_factor,
        effective_life_years=effective_life,
        seu_penalty=seu_penalty,
        availability_factor=1.0 / seu_penalty,
        replacement_rate=min(MAX_REPLACEMENT_RATE, 1.0 / max(1e-6, effective_life)),
    )


def get_all_shell_reliability(year: int, params: Params) -> dict[str, RadiationEffects]:
    return {name: get_shell_radiation_effects(name, year, params) for name in SHELL_NAMES}
