"""Deck value checks.

Every helper takes the dotted location of the value in the deck
(``deck.solver``, ``steps[2] (export)``...) so errors point at the
offending entry.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Sequence


def as_mapping(value: Any, context: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{context} must be a mapping.")
    return value


def opt_mapping(value: Any, context: str) -> dict[str, Any]:
    """Like :func:`as_mapping`, with an omitted (``None``) section read as empty."""
    return {} if value is None else as_mapping(value, context)


def required(mapping: Mapping[str, Any], key: str, context: str) -> Any:
    if not isinstance(mapping, Mapping):
        raise ValueError(f"{context} must be a mapping.")
    try:
        return mapping[key]
    except KeyError:
        raise ValueError(f"Missing required key '{key}' in {context}.") from None


def to_float(value: Any, key: str, context: str) -> float:
    """Finite float; booleans are rejected even though ``float(True)`` works."""
    where = f"{context}.{key}"
    if isinstance(value, bool):
        raise ValueError(f"{where} must be a number, got {value!r}.")
    try:
        out = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{where} must be a number, got {value!r}.") from exc
    if not math.isfinite(out):
        raise ValueError(f"{where} must be finite, got {value!r}.")
    return out


def to_int(value: Any, key: str, context: str) -> int:
    """Integer from an int, an integral float or a numeric string."""
    where = f"{context}.{key}"
    if isinstance(value, bool):
        raise ValueError(f"{where} must be an integer, got {value!r}.")
    try:
        out = int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValueError(f"{where} must be an integer, got {value!r}.") from exc
    # int(2.5) truncates silently
    if not isinstance(value, str) and out != value:
        raise ValueError(f"{where} must be an integer, got {value!r}.")
    return out


def ensure_choice(name: str, value: Any, allowed: Sequence[str]) -> str:
    """Case-insensitive membership check; returns the lower-cased value."""
    val = str(value).lower()
    if val in allowed:
        return val
    raise ValueError(f"{name} must be one of: {', '.join(allowed)}. Got '{val}'.")


def ensure_positive(name: str, value: float, *, allow_zero: bool = False) -> float:
    x = float(value)
    if x > 0.0 or (allow_zero and x == 0.0):
        return x
    bound = ">= 0" if allow_zero else "> 0"
    raise ValueError(f"{name} must be {bound}, got {value}.")
