"""Step registry and engine tests."""

from __future__ import annotations

from typing import Any

import pytest

from aquifer1d.config.parser import STEP_TYPES
from aquifer1d.deck import build_step_registry
from aquifer1d.errors import DeckError
from aquifer1d.pipeline import StepRegistry, run


pytestmark = pytest.mark.unit


def _recording_registry() -> tuple[StepRegistry[list], list]:
    def handler(state: list, step: dict[str, Any], idx: int) -> None:
        state.append((idx, step["type"]))

    return StepRegistry({stype: handler for stype in STEP_TYPES}), []


def test_registry_covers_every_step_type() -> None:
    registry = build_step_registry()
    assert registry.step_types == STEP_TYPES
    for stype in STEP_TYPES:
        assert callable(registry[stype])


def test_registry_rejects_unknown_missing_and_non_callable_handlers() -> None:
    def noop(state: list, step: dict[str, Any], idx: int) -> None:
        return None

    with pytest.raises(ValueError, match="Unknown step type"):
        StepRegistry({**{stype: noop for stype in STEP_TYPES}, "anneal": noop})
    with pytest.raises(ValueError, match="No handler for step type"):
        StepRegistry({"solve": noop})
    with pytest.raises(TypeError, match="must be callable"):
        StepRegistry({stype: "solve" for stype in STEP_TYPES})  # type: ignore[misc]


def test_run_dispatches_in_order_and_normalizes_type() -> None:
    registry, state = _recording_registry()
    steps = [{"type": "Solve"}, {"type": "analyze"}, {"type": "EXPORT"}]
    assert run(steps, state, registry) is state
    assert state == [(0, "Solve"), (1, "analyze"), (2, "EXPORT")]


@pytest.mark.parametrize(
    ("steps", "match"),
    [
        ([{"type": "solve"}, {"type": "anneal"}], r"steps\[1\].type must be one of"),
        ([{"outdir": "x"}], r"Missing required key 'type' in steps\[0\]"),
        (["solve"], r"steps\[0\] must be a mapping"),
    ],
)
def test_run_rejects_bad_steps(steps: list, match: str) -> None:
    registry, state = _recording_registry()
    with pytest.raises(DeckError, match=match):
        run(steps, state, registry)


def test_handler_failure_is_wrapped() -> None:
    def boom(state: list, step: dict[str, Any], idx: int) -> None:
        raise KeyError("missing column")

    def deck_failure(state: list, step: dict[str, Any], idx: int) -> None:
        raise DeckError("already a deck error")

    registry = StepRegistry({"solve": boom, "analyze": deck_failure, "export": boom})
    with pytest.raises(DeckError, match=r"steps\[0\] \(solve\) failed: KeyError") as excinfo:
        run([{"type": "solve"}], [], registry)
    assert isinstance(excinfo.value.__cause__, KeyError)

    with pytest.raises(DeckError, match="^already a deck error$"):
        run([{"type": "analyze"}], [], registry)
