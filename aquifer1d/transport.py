"""Advection-dispersion operator for a single species.

Finite-volume fluxes on a uniform grid:

- internal faces: upwind advection plus central dispersion
- upstream face: advective inflow of the fixed river value ``C_up``
- downstream face: zero-gradient outflow, advective only

``dC/dt[i] = -(flux[i+1] - flux[i]) / (dx * VF)``
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy import sparse

from .grid import Grid1D


@dataclass(frozen=True)
class TransportResult:
    """Transport contribution for one species."""

    dCdt: np.ndarray
    flux: np.ndarray
    flux_up: float
    flux_down: float


def _check_coefficients(D: float, v: float, VF: float) -> None:
    for name, value in (("D", D), ("v", v), ("VF", VF)):
        if not np.isfinite(value):
            raise ValueError(f"{name} must be finite, got {value}.")
    if D < 0.0:
        raise ValueError(f"D must be >= 0, got {D}.")
    if VF <= 0.0:
        raise ValueError(f"VF must be > 0, got {VF}.")


def face_fluxes(
    C: np.ndarray,
    C_up: float,
    D: float,
    v: float,
    VF: float,
    grid: Grid1D,
) -> np.ndarray:
    """Return the N+1 face fluxes (mmol/L * m/d per unit area of aquifer)."""
    _check_coefficients(float(D), float(v), float(VF))
    arr = np.asarray(C, dtype=float)
    if arr.shape != (grid.N,):
        raise ValueError(f"C must have shape ({grid.N},), got {arr.shape}.")
    if not np.all(np.isfinite(arr)):
        raise ValueError("C must be finite.")
    if not np.isfinite(float(C_up)):
        raise ValueError(f"C_up must be finite, got {C_up}.")

    v_pos = max(float(v), 0.0)
    v_neg = min(float(v), 0.0)
    dx = grid.dx_m

    flux = np.empty(grid.N + 1, dtype=float)
    flux[0] = VF * (v_pos * float(C_up) + v_neg * arr[0])
    flux[1:-1] = VF * (v_pos * arr[:-1] + v_neg * arr[1:]) - VF * D * (arr[1:] - arr[:-1]) / dx
    flux[-1] = VF * float(v) * arr[-1]
    return flux


def transport_operator(
    C: np.ndarray,
    C_up: float,
    D: float,
    v: float,
    VF: float,
    grid: Grid1D,
) -> TransportResult:
    """Transport rate of change per cell plus the two boundary fluxes."""
    flux = face_fluxes(C, C_up, D, v, VF, grid)
    dCdt = -(flux[1:] - flux[:-1]) / (grid.dx_m * VF)
    return TransportResult(
        dCdt=dCdt,
        flux=flux,
        flux_up=float(flux[0]),
        flux_down=float(flux[-1]),
    )


def transport_matrix(
    D: float,
    v: float,
    VF: float,
    grid: Grid1D,
) -> tuple[sparse.csr_matrix, np.ndarray]:
    """Assemble dC/dt = A*C + b*C_up for the operator above.

    ``b`` is the response to a unit upstream concentration, so the affine
    part for a river value ``C_up`` is ``b * C_up``.
    """
    _check_coefficients(float(D), float(v), float(VF))
    n = grid.N
    dx = grid.dx_m
    v_pos = max(float(v), 0.0)
    v_neg = min(float(v), 0.0)

    # d(flux at internal face)/dC on the left and right cell, scaled by 1/(dx*VF)
    left = (v_pos + D / dx) / dx
    right = (v_neg - D / dx) / dx

    main = np.zeros(n, dtype=float)
    lower = np.full(max(n - 1, 0), left, dtype=float)
    upper = np.full(max(n - 1, 0), -right, dtype=float)

    # outflow through the right face of each cell
    main[:-1] -= left
    main[-1] -= float(v) / dx
    # inflow through the left face of each cell
    main[1:] += right
    main[0] += v_neg / dx

    if n == 1:
        A = sparse.csr_matrix(main.reshape(1, 1))
    else:
        A = sparse.diags([lower, main, upper], offsets=[-1, 0, 1], shape=(n, n), format="csr", dtype=float)
    b = np.zeros(n, dtype=float)
    b[0] = v_pos / dx
    return A, b


def total_transport(result: TransportResult, grid: Grid1D, VF: float) -> float:
    """Domain integral of the transport term, sum(dC/dt) * dx * VF."""
    return float(np.sum(result.dCdt) * grid.dx_m * VF)
