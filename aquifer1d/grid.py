"""Uniform 1D finite-volume grid along the flow path."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import InvalidGridError


@dataclass(frozen=True)
class Grid1D:
    """Cell-centred grid on ``[0, L_m]``.

    x=0 is the river (upstream) boundary, flow runs towards x=L_m.
    """

    L_m: float
    N: int
    dx_m: float
    x_m: np.ndarray
    xf_m: np.ndarray

    @classmethod
    def from_domain(cls, L_m: float, N: int) -> "Grid1D":
        """Construct a grid from domain length and number of cells."""
        try:
            L = float(L_m)
        except (TypeError, ValueError) as exc:
            raise InvalidGridError(f"L_m must be a number, got {L_m!r}.") from exc
        if not np.isfinite(L) or L <= 0.0:
            raise InvalidGridError(f"L_m must be > 0, got {L_m}.")
        if isinstance(N, bool):
            raise InvalidGridError(f"N must be an integer, got {N!r}.")
        try:
            n = int(N)
        except (TypeError, ValueError, OverflowError) as exc:
            raise InvalidGridError(f"N must be an integer, got {N!r}.") from exc
        if n != N:
            raise InvalidGridError(f"N must be an integer, got {N!r}.")
        if n < 1:
            raise InvalidGridError(f"N must be >= 1, got {N}.")

        dx = L / n
        xf = np.linspace(0.0, L, n + 1, dtype=float)
        x = 0.5 * (xf[:-1] + xf[1:])
        x.setflags(write=False)
        xf.setflags(write=False)
        return cls(L_m=L, N=n, dx_m=dx, x_m=x, xf_m=xf)

    @property
    def size(self) -> int:
        """Return number of cells."""
        return self.N

    def nearest_index(self, x_m: float) -> int:
        """Nearest cell index for a requested position in m."""
        return int(np.argmin(np.abs(self.x_m - float(x_m))))
