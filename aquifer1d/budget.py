"""Domain budget of a converged steady state."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .grid import Grid1D
from .model import SPECIES, STOICHIOMETRY, DerivativeResult

if TYPE_CHECKING:
    from .solver import SteadyState

BUDGET_KEYS = (
    "aerobic_mineralization",
    "denitrification",
    "nitrification",
    "aeration",
) + tuple(f"{name}_flux_{side}" for name in SPECIES for side in ("up", "down"))


def budget(steady: "SteadyState") -> dict[str, float]:
    """Flat mapping of the four reaction totals and the ten boundary fluxes."""
    result = steady.result
    out: dict[str, float] = {}
    for key in BUDGET_KEYS:
        if key in result.totals:
            out[key] = float(result.totals[key])
        else:
            out[key] = float(result.fluxes[key])
    return out


def species_balance(result: DerivativeResult, grid: Grid1D, por: float) -> dict[str, float]:
    """Per-species mass balance ``in - out + sources`` in the budget's units.

    Equals ``sum(dC/dt) * dx * por`` and vanishes at steady state.
    """
    scale = grid.dx_m * por
    out: dict[str, float] = {}
    for name in SPECIES:
        source = 0.0
        for rate_name, coeff in STOICHIOMETRY[name].items():
            source += coeff * float(np.sum(getattr(result.rates, rate_name))) * scale
        out[name] = result.fluxes[f"{name}_flux_up"] - result.fluxes[f"{name}_flux_down"] + source
    return out


def nitrogen_balance(result: DerivativeResult) -> float:
    """Inorganic nitrogen balance in mmol N per m2 of aquifer section per day.

    Net boundary inflow of NO3, NH3 and N2 counted as N atoms, plus the NH3
    released by mineralization (16/106 per DON). Zero for a converged state.
    """
    totals = result.totals
    fluxes = result.fluxes
    inorganic = 0.0
    for name, n_atoms in (("NO3", 1.0), ("NH3", 1.0), ("N2", 2.0)):
        inorganic += n_atoms * (fluxes[f"{name}_flux_up"] - fluxes[f"{name}_flux_down"])
    released = (totals["aerobic_mineralization"] + totals["denitrification"]) * 16.0 / 106.0
    # denitrified NO3 ends up as N2: 4/5 NO3 -> 2/5 N2 conserves N atoms
    return inorganic + released


__all__ = ["BUDGET_KEYS", "budget", "nitrogen_balance", "species_balance"]
