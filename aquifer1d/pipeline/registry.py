"""Step handlers bound to the deck step types."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, Mapping, TypeVar

from ..config.parser import STEP_TYPES

StateT = TypeVar("StateT")
StepHandler = Callable[[StateT, dict[str, Any], int], None]


class StepRegistry(Generic[StateT]):
    """One handler per entry of ``STEP_TYPES``.

    The table is checked once at construction, so every step type that deck
    parsing accepts resolves to a handler.
    """

    def __init__(self, handlers: Mapping[str, StepHandler[StateT]]) -> None:
        unknown = sorted(set(handlers) - set(STEP_TYPES))
        if unknown:
            raise ValueError(f"Unknown step type(s): {', '.join(unknown)}. Use one of: {', '.join(STEP_TYPES)}.")
        missing = [stype for stype in STEP_TYPES if stype not in handlers]
        if missing:
            raise ValueError(f"No handler for step type(s): {', '.join(missing)}.")
        for stype, handler in handlers.items():
            if not callable(handler):
                raise TypeError(f"Handler for '{stype}' must be callable.")
        self._handlers = dict(handlers)

    @property
    def step_types(self) -> tuple[str, ...]:
        return STEP_TYPES

    def __getitem__(self, step_type: str) -> StepHandler[StateT]:
        return self._handlers[step_type]
