"""Sequential execution of deck steps."""

from __future__ import annotations

import logging
import time
from typing import Any, Iterable, Mapping, TypeVar

from ..config.validators import ensure_choice, required
from ..errors import DeckError
from .registry import StepRegistry

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT")


def run(steps: Iterable[Mapping[str, Any]], state: StateT, registry: StepRegistry[StateT]) -> StateT:
    """Apply the handler of each step to ``state`` in deck order.

    Handler failures other than :class:`DeckError` are re-raised as
    ``DeckError`` naming the step, with the original error as cause.
    """
    for idx, step in enumerate(steps):
        where = f"steps[{idx}]"
        try:
            stype = ensure_choice(f"{where}.type", required(step, "type", where), registry.step_types)
        except ValueError as exc:
            raise DeckError(str(exc)) from exc

        started = time.perf_counter()
        try:
            registry[stype](state, dict(step), idx)
        except DeckError:
            raise
        except Exception as exc:
            raise DeckError(f"{where} ({stype}) failed: {type(exc).__name__}: {exc}") from exc
        logger.info("%s (%s) finished in %.3f s", where, stype, time.perf_counter() - started)

    return state
