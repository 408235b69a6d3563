"""Finance primitives."""

from __future__ import annotations


def get_crf(wacc: float, years: float) -> float:
    """Capital recovery factor.

    Converts a lump-sum capital cost into a level annual payment over `years`
    at discount rate `wacc`. A zero or negative rate (or life) degrades to
    straight-line recovery over at least one year.
    """
    if wacc <= 0 or years <= 0:
        return 1.0 / max(1.0, years)
    growth = (1.0 + wacc) ** years
    return wacc * growth / (growth - 1.0)


def annualize(capex: float, wacc: float, years: float) -> float:
    return capex * get_crf(wacc, years)
