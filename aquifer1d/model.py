"""Full rate-of-change function for the five-species system.

The state vector is the concatenation ``[DON, O2, NO3, NH3, N2]``, each block
holding all N cells. Block order is fixed; every helper here relies on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import numpy as np
from scipy import sparse

from .grid import Grid1D
from .parameters import ParameterSet
from .reactions import REACTIONS, ReactionRates, reaction_partials, reaction_rates
from .transport import TransportResult, transport_matrix, transport_operator

SPECIES = ("DON", "O2", "NO3", "NH3", "N2")
N_SPECIES = len(SPECIES)

# mmol of species produced per mmol of reaction, columns follow REACTIONS
STOICHIOMETRY: dict[str, dict[str, float]] = {
    "DON": {"aeroMin": -1.0, "denitri": -1.0},
    "O2": {"aeroMin": -1.0, "nitri": -2.0, "aeration": 1.0},
    "NO3": {"denitri": -4.0 / 5.0, "nitri": 1.0},
    "NH3": {"aeroMin": 16.0 / 106.0, "denitri": 16.0 / 106.0, "nitri": -1.0},
    "N2": {"denitri": 2.0 / 5.0},
}

TOTAL_KEYS = {
    "aeroMin": "aerobic_mineralization",
    "denitri": "denitrification",
    "nitri": "nitrification",
    "aeration": "aeration",
}


@dataclass(frozen=True)
class DerivativeResult:
    """Derivative vector and diagnostics for one state.

    ``totals`` are domain integrals ``sum(rate * dx * por)`` and ``fluxes``
    the upstream/downstream boundary fluxes keyed ``<species>_flux_up`` /
    ``<species>_flux_down``.
    """

    dCdt: np.ndarray
    totals: dict[str, float]
    fluxes: dict[str, float]
    rates: ReactionRates
    transport: dict[str, TransportResult]


def state_size(grid: Grid1D) -> int:
    return N_SPECIES * grid.N


def split_state(C: np.ndarray, N: int) -> dict[str, np.ndarray]:
    """Split a state vector into named per-species views."""
    arr = np.asarray(C, dtype=float)
    if arr.shape != (N_SPECIES * N,):
        raise ValueError(f"state must have shape ({N_SPECIES * N},), got {arr.shape}.")
    return {name: arr[k * N : (k + 1) * N] for k, name in enumerate(SPECIES)}


def pack_state(profiles: Mapping[str, np.ndarray]) -> np.ndarray:
    """Concatenate named per-species arrays in species order."""
    missing = [name for name in SPECIES if name not in profiles]
    if missing:
        raise ValueError(f"Missing species: {', '.join(missing)}.")
    blocks = [np.asarray(profiles[name], dtype=float).reshape(-1) for name in SPECIES]
    if len({b.size for b in blocks}) != 1:
        raise ValueError("All species profiles must have the same length.")
    return np.concatenate(blocks)


def interpolate_state(C: np.ndarray, grid_from: Grid1D, grid_to: Grid1D) -> np.ndarray:
    """Linearly interpolate a state onto another grid's cell centres."""
    parts = split_state(C, grid_from.N)
    return pack_state(
        {name: np.interp(grid_to.x_m, grid_from.x_m, values) for name, values in parts.items()}
    )


def derivative(t: float | None, C: np.ndarray, params: ParameterSet, grid: Grid1D) -> DerivativeResult:
    """Evaluate dC/dt for the coupled system. ``t`` is accepted and ignored."""
    del t
    parts = split_state(C, grid.N)
    D = params.dispersion
    VF = params.por

    transport: dict[str, TransportResult] = {}
    for name, C_up in zip(SPECIES, params.river_concentrations()):
        transport[name] = transport_operator(parts[name], C_up, D, params.v_adv, VF, grid)

    rates = reaction_rates(parts["DON"], parts["O2"], parts["NO3"], parts["NH3"], params)

    dDON = transport["DON"].dCdt - rates.aeroMin - rates.denitri
    dO2 = transport["O2"].dCdt + rates.aeration - rates.aeroMin - 2.0 * rates.nitri
    dNO3 = transport["NO3"].dCdt - (4.0 / 5.0) * rates.denitri + rates.nitri
    dNH3 = transport["NH3"].dCdt + (rates.aeroMin + rates.denitri) * (16.0 / 106.0) - rates.nitri
    dN2 = transport["N2"].dCdt + (2.0 / 5.0) * rates.denitri

    scale = grid.dx_m * VF
    totals = {TOTAL_KEYS[name]: float(np.sum(getattr(rates, name)) * scale) for name in REACTIONS}

    fluxes: dict[str, float] = {}
    for name in SPECIES:
        fluxes[f"{name}_flux_up"] = transport[name].flux_up
        fluxes[f"{name}_flux_down"] = transport[name].flux_down

    return DerivativeResult(
        dCdt=np.concatenate([dDON, dO2, dNO3, dNH3, dN2]),
        totals=totals,
        fluxes=fluxes,
        rates=rates,
        transport=transport,
    )


def residual(C: np.ndarray, params: ParameterSet, grid: Grid1D) -> np.ndarray:
    """Shortcut for the derivative vector only."""
    return derivative(None, C, params, grid).dCdt


def jacobian(C: np.ndarray, params: ParameterSet, grid: Grid1D) -> sparse.csc_matrix:
    """Analytic Jacobian d(dC/dt)/dC as a sparse (5N x 5N) matrix.

    Diagonal blocks carry the tridiagonal transport operator; reactions add
    pointwise (diagonal) couplings between species blocks.
    """
    parts = split_state(C, grid.N)
    A, _ = transport_matrix(params.dispersion, params.v_adv, params.por, grid)
    partials = reaction_partials(parts["DON"], parts["O2"], parts["NO3"], parts["NH3"], params)

    blocks: list[list[sparse.spmatrix | None]] = []
    for row_name in SPECIES:
        row: list[sparse.spmatrix | None] = []
        for col_name in SPECIES:
            coupling = np.zeros(grid.N, dtype=float)
            for rate_name, coeff in STOICHIOMETRY[row_name].items():
                d_rate = partials.get((rate_name, col_name))
                if d_rate is not None:
                    coupling += coeff * d_rate
            block = sparse.diags(coupling, 0, shape=(grid.N, grid.N), format="csr")
            if row_name == col_name:
                block = block + A
            row.append(block)
        blocks.append(row)

    return sparse.bmat(blocks, format="csc")
