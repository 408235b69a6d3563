"""Scenario orchestration: crossover search, fleet build-out and state walk."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..closure import ClosureSettings
from ..config.params import Params
from ..constants import END_YEAR, SCENARIOS, START_YEAR
from ..entities import FleetResult, GroundResult, ScenarioResult
from ..fleet import FleetTracker, size_fleet
from ..ground import size_ground
from ..learning import init_simulation_state, update_simulation_state
from ..lunar import get_lunar_unlock_year
from ..satellite import size_satellite

SCENARIO_ORDER = ("aggressive", "baseline", "conservative")


def get_scenario_params(name: str, base: Params) -> Params:
    """Apply the named scenario transform to `base`.

    Raises:
        KeyError: If `name` is not a known scenario.
    """
    if name not in SCENARIOS:
        raise KeyError(f"Unknown scenario '{name}'. Available: {sorted(SCENARIOS)}")
    return SCENARIOS[name].apply(base)


def find_crossover_year(
    years: Sequence[int],
    fleets: Sequence[FleetResult],
    gnds: Sequence[GroundResult],
) -> int | None:
    """First year from which delivered orbital LCOC stays below the ground market price.

    A crossover that is lost again before the end of the run does not count.
    """
    orbital = np.array([f.lcoc_effective for f in fleets], dtype=float)
    ground = np.array([g.market for g in gnds], dtype=float)
    hits = orbital < ground
    if len(hits) == 0 or not hits[-1]:
        return None
    misses = np.flatnonzero(~hits)
    start = int(misses[-1]) + 1 if len(misses) else 0
    return int(years[start])


class ScenarioEngine:
    """Runs scenarios over a fixed year range."""

    def __init__(
        self,
        base_params: Params,
        start_year: int = START_YEAR,
        end_year: int = END_YEAR,
        closure: ClosureSettings | None = None,
    ):
        if end_year < start_year:
            raise ValueError(f"end_year ({end_year}) must be >= start_year ({start_year})")
        self.base_params = base_params
        self.years = list(range(start_year, end_year + 1))
        self.closure = closure

    def run(self, name: str) -> ScenarioResult:
        """Run one scenario.

        Pass 1 sizes the fleet as if orbital compute never crossed over and
        prices ground with no orbital supply; the year from which the delivered
        orbital cost stays below that market is the crossover. Pass 2 re-runs the
        fleet with post-crossover growth and prices ground against the
        resulting orbital supply. The tracker is reset before each pass.
        """
        params = get_scenario_params(name, self.base_params)
        years = self.years
        tracker = FleetTracker()

        sats = [size_satellite(y, params, "leo", self.closure) for y in years]

        tracker.reset()
        pre_fleets = [size_fleet(y, None, params, tracker, self.closure) for y in years]
        pre_gnds = [size_ground(y, 0.0, params) for y in years]
        crossover_year = find_crossover_year(years, pre_fleets, pre_gnds)

        tracker.reset()
        fleets = [size_fleet(y, crossover_year, params, tracker, self.closure) for y in years]
        gnds = [size_ground(y, f.total_power_tw * 1000.0, params) for y, f in zip(years, fleets)]

        states = []
        state = init_simulation_state(years[0], params)
        for year, fleet, gnd in zip(years, fleets, gnds):
            state = update_simulation_state(state, year, fleet, gnd, params)
            states.append(state)

        return ScenarioResult(
            name=name,
            params=params,
            years=list(years),
            sats=sats,
            fleets=fleets,
            gnds=gnds,
            pre_fleets=pre_fleets,
            pre_gnds=pre_gnds,
            crossover_year=crossover_year,
            lunar_unlock_year=get_lunar_unlock_year(states),
            states=states,
        )

    def run_all(self, names: Sequence[str] = SCENARIO_ORDER) -> dict[str, ScenarioResult]:
        return {name: self.run(name) for name in names}


def run_scenario(
    name: str,
    base_params: Params,
    start_year: int = START_YEAR,
    end_year: int = END_YEAR,
    closure: ClosureSettings | None = None,
) -> ScenarioResult:
    return ScenarioEngine(base_params, start_year, end_year, closure).run(name)


def compute_all(
    base_params: Params,
    start_year: int = START_YEAR,
    end_year: int = END_YEAR,
    closure: ClosureSettings | None = None,
) -> dict[str, ScenarioResult]:
    """Run the aggressive, baseline and conservative scenarios."""
    return ScenarioEngine(base_params, start_year, end_year, closure).run_all()
