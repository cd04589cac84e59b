"""Profile diagnostics for converged steady states.

Concentrations in mmol/L, positions in m from the river boundary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

import numpy as np

from .budget import budget, nitrogen_balance, species_balance
from .grid import Grid1D
from .model import SPECIES

if TYPE_CHECKING:
    from .solver import SteadyState


def total_mass(C: np.ndarray, grid: Grid1D, por: float) -> float:
    """Dissolved amount per m2 of aquifer section, ``sum(C) * dx * por``."""
    arr = np.asarray(C, dtype=float)
    if arr.shape != (grid.N,):
        raise ValueError(f"C must have shape ({grid.N},), got {arr.shape}.")
    return float(np.sum(arr) * grid.dx_m * por)


def profiles_table(steady: "SteadyState") -> dict[str, np.ndarray]:
    """Columns ``x_m`` plus one array per species."""
    table = {"x_m": np.asarray(steady.grid.x_m, dtype=float).copy()}
    table.update(steady.profiles())
    return table


def crossing_position(
    profile: np.ndarray,
    x_m: np.ndarray,
    threshold: float,
    mode: Literal["first", "last"] = "first",
) -> float | None:
    """Find where a profile crosses ``threshold`` via linear interpolation.

    Returns ``None`` if no crossing exists.
    """
    p = np.asarray(profile, dtype=float)
    x = np.asarray(x_m, dtype=float)
    if p.ndim != 1 or x.ndim != 1:
        raise ValueError("profile and x_m must be 1D arrays.")
    if p.shape[0] != x.shape[0]:
        raise ValueError("profile and x_m must have same length.")
    if p.shape[0] < 2:
        return None
    if mode not in ("first", "last"):
        raise ValueError(f"Unsupported mode '{mode}'. Use 'first' or 'last'.")

    th = float(threshold)
    crossings: list[float] = []
    for k in range(p.shape[0] - 1):
        p0 = float(p[k])
        p1 = float(p[k + 1])
        if p0 == th:
            crossings.append(float(x[k]))
        if not ((p0 - th) * (p1 - th) < 0.0 or p1 == th):
            continue
        if p1 == p0:
            crossings.append(float(x[k]))
        else:
            frac = (th - p0) / (p1 - p0)
            crossings.append(float(x[k] + frac * (x[k + 1] - x[k])))

    if not crossings:
        return None
    return crossings[0] if mode == "first" else crossings[-1]


def front_position(C: np.ndarray, grid: Grid1D, threshold: float) -> float | None:
    """First position where a species profile crosses ``threshold``."""
    arr = np.asarray(C, dtype=float)
    if arr.shape != (grid.N,):
        raise ValueError(f"C must have shape ({grid.N},), got {arr.shape}.")
    return crossing_position(arr, grid.x_m, threshold, mode="first")


def summary(steady: "SteadyState", *, front_fraction: float = 0.1) -> dict[str, Any]:
    """Report payload: budget, balances, inlet/outlet values and redox fronts.

    Fronts are where O2 and NO3 first drop below ``front_fraction`` of their
    river value.
    """
    if not 0.0 < front_fraction < 1.0:
        raise ValueError(f"front_fraction must be in (0, 1), got {front_fraction}.")

    grid = steady.grid
    params = steady.params
    prof = steady.profiles()

    report: dict[str, Any] = {
        "N": grid.N,
        "L_m": grid.L_m,
        "iterations": steady.iterations,
        "residual_norm": steady.residual_norm,
        "budget": budget(steady),
        "species_balance": species_balance(steady.result, grid, params.por),
        "nitrogen_balance": nitrogen_balance(steady.result),
        "inlet": {name: float(prof[name][0]) for name in SPECIES},
        "outlet": {name: float(prof[name][-1]) for name in SPECIES},
        "stored": {name: total_mass(prof[name], grid, params.por) for name in SPECIES},
        "fronts_m": {
            "O2": front_position(prof["O2"], grid, front_fraction * params.riverO2),
            "NO3": front_position(prof["NO3"], grid, front_fraction * params.riverNO3),
        },
    }
    return report
