"""Fixed-point iteration used by the satellite mass closure.

The satellite model is a set of coupled relations (compute power sets waste
heat, waste heat sets radiator mass, radiator mass sets dry mass, dry mass sets
the radiator budget, the budget sets the thermal limit on compute power). It
is solved by plain successive substitution: apply the update map until every
tracked component changes by less than `tolerance` (relative), or until
`max_iterations` updates have been applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

State = tuple[float, ...]


@dataclass(frozen=True)
class ClosureSettings:
    """Iteration limits for `solve_fixed_point`."""

    max_iterations: int = 20
    tolerance: float = 0.01

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError(
                f"ClosureSettings.max_iterations must be >= 1, got {self.max_iterations}"
            )
        if self.tolerance <= 0:
            raise ValueError(
                f"ClosureSettings.tolerance must be positive, got {self.tolerance}"
            )

    @classmethod
    def from_config(cls, constants: Mapping[str, Any]) -> "ClosureSettings":
        """Load from constants.yaml solver section."""
        solver = constants.get("solver", {})
        return cls(
            max_iterations=int(solver.get("max_iterations", 20)),
            tolerance=float(solver.get("tolerance", 0.01)),
        )


@dataclass
class ClosureResult:
    state: State
    iterations: int
    converged: bool
    residual: float  # largest relative change in the final update


def relative_change(old: float, new: float) -> float:
    scale = max(abs(old), abs(new))
    if scale < 1e-12:
        return 0.0
    return abs(new - old) / scale


def solve_fixed_point(
    update: Callable[[State], State],
    initial: Sequence[float],
    settings: ClosureSettings | None = None,
    tracked: Sequence[int] | None = None,
) -> ClosureResult:
    """Iterate `update` from `initial` until the tracked components settle.

    Args:
        update: Map from the current state to the next state.
        initial: Starting state.
        settings: Iteration limits (defaults to 20 iterations, 1% tolerance).
        tracked: Indices of state components checked for convergence.
            All components when omitted.

    Returns:
        ClosureResult holding the last state produced. When the limit is hit
        first, `converged` is False and the last state is still returned.
    """
    settings = settings or ClosureSettings()
    state: State = tuple(float(x) for x in initial)
    indices = range(len(state)) if tracked is None else tracked

    residual = float("inf")
    for iteration in range(1, settings.max_iterations + 1):
        new_state = tuple(float(x) for x in update(state))
        residual = max(
            (relative_change(state[i], new_state[i]) for i in indices), default=0.0
        )
        state = new_state
        if residual < settings.tolerance:
            return ClosureResult(state, iteration, True, residual)

    return ClosureResult(state, settings.max_iterations, False, residual)
