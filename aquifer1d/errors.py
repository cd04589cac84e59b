"""Shared error types for aquifer1d."""

from __future__ import annotations

import numpy as np


class InvalidGridError(ValueError):
    """Raised when a grid definition is invalid."""


class InvalidParameterError(ValueError):
    """Raised when a physical or rate constant is out of range."""


class DeckError(ValueError):
    """Raised when a deck is invalid or execution fails."""


class SolverError(RuntimeError):
    """Base class for steady-state solve failures.

    The last iterate is kept on ``last_state`` for inspection or as a
    retry seed; it is not a converged solution.
    """

    def __init__(
        self,
        message: str,
        *,
        iterations: int = 0,
        residual_norm: float = float("nan"),
        last_state: np.ndarray | None = None,
    ) -> None:
        super().__init__(message)
        self.iterations = int(iterations)
        self.residual_norm = float(residual_norm)
        self.last_state = None if last_state is None else np.array(last_state, dtype=float)


class NonConvergenceError(SolverError):
    """Iteration budget exhausted without meeting the tolerance."""


class NonPhysicalStateError(SolverError):
    """Iterates could not be kept non-negative without stalling."""


class NumericalInstabilityError(SolverError):
    """NaN/Inf encountered in the residual, Jacobian or update."""
