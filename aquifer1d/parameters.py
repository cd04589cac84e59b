"""Physical and rate constants for the aquifer nitrogen model.

Units are metres, days and mmol/L throughout:

- ``r_aeromin``, ``r_denitr``, ``r_aera``: 1/d
- ``r_nitri``: L/(mmol d)
- ``v_adv``: m/d, ``a`` (dispersivity): m
- ``kO2``, ``kNO3``, ``river*``, ``O2_sol``: mmol/L
- ``por``: volume fraction of mobile water
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace as dc_replace
from typing import Any, Mapping

import numpy as np

from .errors import InvalidParameterError

STRICTLY_POSITIVE = ("kO2", "kNO3", "v_adv")
NON_NEGATIVE = (
    "r_aeromin",
    "r_denitr",
    "r_nitri",
    "r_aera",
    "a",
    "riverDON",
    "riverO2",
    "riverNO3",
    "riverNH3",
    "O2_sol",
)


@dataclass(frozen=True)
class ParameterSet:
    """Immutable parameter set, validated on construction."""

    r_aeromin: float = 0.1
    r_denitr: float = 0.05
    r_nitri: float = 5.0
    r_aera: float = 0.01
    v_adv: float = 1.0
    a: float = 1.0
    kO2: float = 0.01
    kNO3: float = 0.01
    riverDON: float = 0.3
    riverO2: float = 0.25
    riverNO3: float = 0.15
    riverNH3: float = 0.01
    O2_sol: float = 0.35
    por: float = 0.3

    def __post_init__(self) -> None:
        for f in fields(self):
            raw = getattr(self, f.name)
            if isinstance(raw, bool):
                raise InvalidParameterError(f"{f.name} must be a number, got {raw!r}.")
            try:
                value = float(raw)
            except (TypeError, ValueError) as exc:
                raise InvalidParameterError(f"{f.name} must be a number, got {raw!r}.") from exc
            if not np.isfinite(value):
                raise InvalidParameterError(f"{f.name} must be finite, got {raw!r}.")
            object.__setattr__(self, f.name, value)

        for name in STRICTLY_POSITIVE:
            if getattr(self, name) <= 0.0:
                raise InvalidParameterError(f"{name} must be > 0, got {getattr(self, name)}.")
        for name in NON_NEGATIVE:
            if getattr(self, name) < 0.0:
                raise InvalidParameterError(f"{name} must be >= 0, got {getattr(self, name)}.")
        if not 0.0 < self.por <= 1.0:
            raise InvalidParameterError(f"por must be in (0, 1], got {self.por}.")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "ParameterSet":
        """Build a parameter set from a (partial) mapping; missing keys use defaults."""
        if mapping is None:
            return cls()
        if not isinstance(mapping, Mapping):
            raise InvalidParameterError("parameters must be a mapping.")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise InvalidParameterError(f"Unknown parameter(s): {', '.join(map(str, unknown))}.")
        return cls(**dict(mapping))

    def replace(self, **changes: Any) -> "ParameterSet":
        """Return a validated copy with some fields changed."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise InvalidParameterError(f"Unknown parameter(s): {', '.join(unknown)}.")
        return dc_replace(self, **changes)

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    @property
    def dispersion(self) -> float:
        """Dispersion coefficient D = a * v_adv in m2/d."""
        return self.a * self.v_adv

    def river_concentrations(self) -> tuple[float, float, float, float, float]:
        """Upstream boundary values in species order; N2 enters at zero."""
        return (self.riverDON, self.riverO2, self.riverNO3, self.riverNH3, 0.0)
