"""Biogeochemical rate laws, evaluated cell by cell.

All rates are in mmol/L/d of the reacting substrate:

- ``aeroMin``: aerobic mineralization of DON, Monod-limited by O2
- ``denitri``: denitrification, Monod-limited by NO3 and inhibited by O2
- ``nitri``: second-order nitrification of NH3 by O2
- ``aeration``: first-order relaxation of O2 towards ``O2_sol``
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .parameters import ParameterSet

REACTIONS = ("aeroMin", "denitri", "nitri", "aeration")


@dataclass(frozen=True)
class ReactionRates:
    """Per-cell reaction rates for the current state."""

    aeroMin: np.ndarray
    denitri: np.ndarray
    nitri: np.ndarray
    aeration: np.ndarray

    def as_dict(self) -> dict[str, np.ndarray]:
        return {name: getattr(self, name) for name in REACTIONS}


def reaction_rates(
    DON: np.ndarray,
    O2: np.ndarray,
    NO3: np.ndarray,
    NH3: np.ndarray,
    params: ParameterSet,
) -> ReactionRates:
    """Evaluate the four rate laws."""
    DON = np.asarray(DON, dtype=float)
    O2 = np.asarray(O2, dtype=float)
    NO3 = np.asarray(NO3, dtype=float)
    NH3 = np.asarray(NH3, dtype=float)

    o2_lim = O2 / (O2 + params.kO2)
    o2_inh = params.kO2 / (O2 + params.kO2)
    no3_lim = NO3 / (NO3 + params.kNO3)

    return ReactionRates(
        aeroMin=params.r_aeromin * o2_lim * DON,
        denitri=params.r_denitr * no3_lim * o2_inh * DON,
        nitri=params.r_nitri * O2 * NH3,
        aeration=params.r_aera * (params.O2_sol - O2),
    )


def reaction_partials(
    DON: np.ndarray,
    O2: np.ndarray,
    NO3: np.ndarray,
    NH3: np.ndarray,
    params: ParameterSet,
) -> dict[tuple[str, str], np.ndarray]:
    """Non-zero partial derivatives d(rate)/d(species), keyed by (rate, species)."""
    DON = np.asarray(DON, dtype=float)
    O2 = np.asarray(O2, dtype=float)
    NO3 = np.asarray(NO3, dtype=float)
    NH3 = np.asarray(NH3, dtype=float)

    kO2 = params.kO2
    kNO3 = params.kNO3
    o2_lim = O2 / (O2 + kO2)
    o2_inh = kO2 / (O2 + kO2)
    no3_lim = NO3 / (NO3 + kNO3)
    d_o2_lim = kO2 / (O2 + kO2) ** 2
    d_no3_lim = kNO3 / (NO3 + kNO3) ** 2

    return {
        ("aeroMin", "DON"): params.r_aeromin * o2_lim,
        ("aeroMin", "O2"): params.r_aeromin * d_o2_lim * DON,
        ("denitri", "DON"): params.r_denitr * no3_lim * o2_inh,
        ("denitri", "O2"): -params.r_denitr * no3_lim * d_o2_lim * DON,
        ("denitri", "NO3"): params.r_denitr * d_no3_lim * o2_inh * DON,
        ("nitri", "O2"): params.r_nitri * NH3,
        ("nitri", "NH3"): params.r_nitri * O2,
        ("aeration", "O2"): np.full_like(O2, -params.r_aera),
    }
