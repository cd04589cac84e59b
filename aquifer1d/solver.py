"""Steady-state solver: projected pseudo-transient continuation.

Each iteration takes one backward-Euler step of size ``dt`` linearized at the
current iterate,

    (I/dt - J) delta = F(x),    x <- max(x + delta, floor)

and grows ``dt`` by switched evolution relaxation as the residual falls,
by at least ``min_dt_growth`` while the residual does not blow up (a front
moving through the domain keeps the residual roughly flat). For large ``dt``
the update is the plain Newton step, so the final convergence is quadratic.
Negative components are projected onto ``floor`` after every update.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Literal

import numpy as np
from scipy import sparse
from scipy.sparse.linalg import splu

from .errors import NonConvergenceError, NonPhysicalStateError, NumericalInstabilityError
from .grid import Grid1D
from .model import N_SPECIES, DerivativeResult, derivative, jacobian, residual, split_state, state_size
from .parameters import ParameterSet

logger = logging.getLogger(__name__)

JacobianKind = Literal["analytic", "fd"]


@dataclass(frozen=True)
class SolverOptions:
    """Tolerances and iteration controls for :func:`solve_steady_state`."""

    atol: float = 1.0e-10
    rtol: float = 1.0e-10
    max_iter: int = 200
    dt0: float = 1.0
    dt_max: float = 1.0e15
    dt_min: float = 1.0e-10
    max_dt_growth: float = 10.0
    min_dt_growth: float = 1.5
    max_residual_growth: float = 2.0
    floor: float = 0.0
    max_stall: int = 25
    jacobian: JacobianKind = "analytic"
    workers: int = 1

    def __post_init__(self) -> None:
        if self.atol < 0.0 or self.rtol < 0.0:
            raise ValueError("atol and rtol must be >= 0.")
        if self.atol == 0.0 and self.rtol == 0.0:
            raise ValueError("atol and rtol cannot both be zero.")
        if int(self.max_iter) < 1:
            raise ValueError(f"max_iter must be >= 1, got {self.max_iter}.")
        if not 0.0 < self.dt_min <= self.dt0 <= self.dt_max:
            raise ValueError("Require 0 < dt_min <= dt0 <= dt_max.")
        if not 1.0 <= self.min_dt_growth <= self.max_dt_growth:
            raise ValueError("Require 1 <= min_dt_growth <= max_dt_growth.")
        if self.max_residual_growth < 1.0:
            raise ValueError(f"max_residual_growth must be >= 1, got {self.max_residual_growth}.")
        if self.floor < 0.0:
            raise ValueError(f"floor must be >= 0, got {self.floor}.")
        if int(self.max_stall) < 1:
            raise ValueError(f"max_stall must be >= 1, got {self.max_stall}.")
        if self.jacobian not in ("analytic", "fd"):
            raise ValueError(f"jacobian must be 'analytic' or 'fd', got {self.jacobian!r}.")
        if int(self.workers) < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}.")


@dataclass(frozen=True)
class SteadyState:
    """Converged state vector plus the derivative evaluated there."""

    C: np.ndarray
    result: DerivativeResult
    grid: Grid1D
    params: ParameterSet
    iterations: int
    residual_norm: float

    def profiles(self) -> dict[str, np.ndarray]:
        """Per-species concentration arrays aligned with ``grid.x_m``."""
        return {name: values.copy() for name, values in split_state(self.C, self.grid.N).items()}

    def budget(self) -> dict[str, float]:
        from .budget import budget

        return budget(self)


def _sparsity_pattern(grid: Grid1D) -> sparse.csc_matrix:
    n = grid.N
    if n > 1:
        tri = sparse.diags([np.ones(n - 1), np.ones(n), np.ones(n - 1)], offsets=[-1, 0, 1], shape=(n, n))
    else:
        tri = sparse.identity(1)
    coupling = sparse.kron(np.ones((N_SPECIES, N_SPECIES)), sparse.identity(n))
    transport = sparse.kron(sparse.identity(N_SPECIES), tri)
    pattern = (coupling + transport).tocsc()
    pattern.data[:] = 1.0
    return pattern


def fd_jacobian(
    C: np.ndarray,
    params: ParameterSet,
    grid: Grid1D,
    F0: np.ndarray | None = None,
    workers: int = 1,
) -> sparse.csc_matrix:
    """Forward-difference Jacobian using a 15-colour column grouping.

    Columns of the same species whose cells are 3 apart never touch the same
    residual row, so they are perturbed together.
    """
    x = np.asarray(C, dtype=float)
    F0 = residual(x, params, grid) if F0 is None else F0
    n = grid.N
    eps = np.sqrt(np.finfo(float).eps)
    steps = eps * np.maximum(np.abs(x), 1.0e-3)

    groups: list[np.ndarray] = []
    for k in range(N_SPECIES):
        for c in range(3):
            groups.append(k * n + np.arange(c, n, 3))

    def _column_block(cols: np.ndarray) -> np.ndarray:
        xp = x.copy()
        xp[cols] += steps[cols]
        return residual(xp, params, grid) - F0

    if workers > 1:
        with ThreadPoolExecutor(max_workers=int(workers)) as pool:
            diffs = list(pool.map(_column_block, groups))
    else:
        diffs = [_column_block(cols) for cols in groups]

    pattern = _sparsity_pattern(grid)
    rows: list[np.ndarray] = []
    cols_out: list[np.ndarray] = []
    vals: list[np.ndarray] = []
    for cols, dF in zip(groups, diffs):
        for j in cols:
            r = pattern.indices[pattern.indptr[j] : pattern.indptr[j + 1]]
            rows.append(r)
            cols_out.append(np.full(r.size, j))
            vals.append(dF[r] / steps[j])

    size = state_size(grid)
    return sparse.csc_matrix(
        (np.concatenate(vals), (np.concatenate(rows), np.concatenate(cols_out))),
        shape=(size, size),
    )


def _converged(F: np.ndarray, x: np.ndarray, options: SolverOptions) -> bool:
    return bool(np.all(np.abs(F) <= options.atol + options.rtol * np.abs(x)))


def _initial_state(C0: np.ndarray | None, grid: Grid1D) -> np.ndarray:
    size = state_size(grid)
    if C0 is None:
        return np.zeros(size, dtype=float)
    x = np.array(C0, dtype=float).reshape(-1)
    if x.shape != (size,):
        raise ValueError(f"C0 must have shape ({size},), got {x.shape}.")
    if not np.all(np.isfinite(x)):
        raise ValueError("C0 must be finite.")
    if np.any(x < 0.0):
        raise ValueError("C0 must be non-negative.")
    return x


def solve_steady_state(
    params: ParameterSet,
    grid: Grid1D,
    C0: np.ndarray | None = None,
    options: SolverOptions | None = None,
) -> SteadyState:
    """Drive dC/dt to zero from ``C0`` (zeros by default).

    Raises
    ------
    NonConvergenceError
        ``max_iter`` exhausted, or the pseudo time step collapsed.
    NonPhysicalStateError
        The non-negativity projection kept the residual from decreasing.
    NumericalInstabilityError
        Non-finite values in the residual, Jacobian or update.
    """
    opts = SolverOptions() if options is None else options
    x = np.maximum(_initial_state(C0, grid), opts.floor)
    size = x.size
    identity = sparse.identity(size, format="csc", dtype=float)

    F = residual(x, params, grid)
    if not np.all(np.isfinite(F)):
        raise NumericalInstabilityError(
            "Residual is not finite at the initial state.", iterations=0, last_state=x
        )
    norm = float(np.max(np.abs(F)))
    dt = float(opts.dt0)
    stall = 0

    for it in range(1, int(opts.max_iter) + 1):
        if _converged(F, x, opts):
            return _finish(x, params, grid, it - 1, norm)

        if opts.jacobian == "fd":
            J = fd_jacobian(x, params, grid, F0=F, workers=opts.workers)
        else:
            J = jacobian(x, params, grid)
        if not np.all(np.isfinite(J.data)):
            raise NumericalInstabilityError(
                "Jacobian is not finite.", iterations=it, residual_norm=norm, last_state=x
            )

        try:
            delta = splu((identity / dt - J).tocsc()).solve(F)
        except RuntimeError:
            logger.debug("iter %d: singular system at dt=%.3e, reducing dt", it, dt)
            dt = _shrink(dt, opts, it, norm, x, reason="singular linear system")
            continue
        trial = x + delta
        if not np.all(np.isfinite(trial)):
            raise NumericalInstabilityError(
                "Update is not finite.", iterations=it, residual_norm=norm, last_state=x
            )

        clipped = bool(np.any(trial < opts.floor))
        x_new = np.maximum(trial, opts.floor)
        F_new = residual(x_new, params, grid)
        if not np.all(np.isfinite(F_new)):
            logger.debug("iter %d: non-finite trial residual at dt=%.3e, reducing dt", it, dt)
            dt = _shrink(dt, opts, it, norm, x, reason="non-finite trial residual")
            continue

        norm_new = float(np.max(np.abs(F_new)))
        if clipped and norm_new >= norm:
            stall += 1
            if stall > opts.max_stall:
                raise NonPhysicalStateError(
                    f"Non-negativity projection stalled for {stall} iterations.",
                    iterations=it,
                    residual_norm=norm_new,
                    last_state=x_new,
                )
        else:
            stall = 0

        ratio = float("inf") if norm_new == 0.0 else norm / norm_new
        if norm_new <= opts.max_residual_growth * norm:
            growth = min(max(ratio, opts.min_dt_growth), opts.max_dt_growth)
        else:
            growth = ratio
        dt = min(dt * growth, opts.dt_max)
        if dt < opts.dt_min:
            raise NonConvergenceError(
                f"Pseudo time step collapsed to {dt:.3e} (|F|={norm_new:.3e}).",
                iterations=it,
                residual_norm=norm_new,
                last_state=x_new,
            )
        logger.debug("iter %d: |F|=%.3e dt=%.3e clipped=%s", it, norm_new, dt, clipped)

        x, F, norm = x_new, F_new, norm_new

    if _converged(F, x, opts):
        return _finish(x, params, grid, int(opts.max_iter), norm)
    raise NonConvergenceError(
        f"No convergence after {opts.max_iter} iterations (|F|={norm:.3e}).",
        iterations=int(opts.max_iter),
        residual_norm=norm,
        last_state=x,
    )


def _shrink(dt: float, opts: SolverOptions, it: int, norm: float, x: np.ndarray, *, reason: str) -> float:
    dt *= 0.25
    if dt < opts.dt_min:
        raise NumericalInstabilityError(
            f"Pseudo time step fell below dt_min after {reason}.",
            iterations=it,
            residual_norm=norm,
            last_state=x,
        )
    return dt


def _finish(x: np.ndarray, params: ParameterSet, grid: Grid1D, iterations: int, norm: float) -> SteadyState:
    result = derivative(None, x, params, grid)
    logger.info(
        "steady state reached: N=%d, iterations=%d, |F|=%.3e", grid.N, iterations, norm
    )
    return SteadyState(
        C=x.copy(),
        result=result,
        grid=grid,
        params=params,
        iterations=iterations,
        residual_norm=norm,
    )


def solve_profiles(
    params: ParameterSet,
    grid: Grid1D,
    C0: np.ndarray | None = None,
    options: SolverOptions | None = None,
) -> dict[str, np.ndarray]:
    """Solve and return ``{"x_m": ..., <species>: ...}``."""
    steady = solve_steady_state(params, grid, C0=C0, options=options)
    out = {"x_m": grid.x_m.copy()}
    out.update(steady.profiles())
    return out


__all__ = [
    "SolverOptions",
    "SteadyState",
    "fd_jacobian",
    "solve_profiles",
    "solve_steady_state",
]
