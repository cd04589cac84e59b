"""Integration tests for the deck pipeline."""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest

from aquifer1d.budget import BUDGET_KEYS
from aquifer1d.deck import load_deck, run_deck, run_deck_data
from aquifer1d.errors import DeckError


pytestmark = pytest.mark.integration

REFERENCE_DECK = Path(__file__).resolve().parents[2] / "examples" / "reference.yaml"


def _small_deck(**solver: object) -> dict:
    return {
        "domain": {"L_m": 60.0, "N": 30},
        "parameters": {"r_nitri": 2.0},
        "solver": dict(solver),
        "steps": [
            {"type": "solve"},
            {"type": "analyze", "front_fraction": 0.1},
            {"type": "export", "outdir": "outputs/it_deck", "formats": ["npy", "csv", "png"]},
        ],
    }


def test_run_payload_writes_all_artifacts(tmp_path: Path) -> None:
    state = run_deck_data(_small_deck(), deck_path=tmp_path / "inmem.yaml", out_override=tmp_path / "out")

    assert state.grid.N == 30
    assert state.steady is not None
    assert state.report is not None
    out = tmp_path / "out"
    for name in ("state.npy", "profiles.csv", "profiles.png", "report.json", "report.csv"):
        assert (out / name).exists(), name

    saved = np.load(out / "state.npy")
    np.testing.assert_array_equal(saved, state.steady.C)

    report = json.loads((out / "report.json").read_text(encoding="utf-8"))
    assert set(report["budget"]) == set(BUDGET_KEYS)
    assert report["N"] == 30


def test_outdir_resolved_relative_to_deck(tmp_path: Path) -> None:
    state = run_deck_data(_small_deck(initial="river", jacobian="fd"), deck_path=tmp_path / "deck.yaml")
    assert state.exports
    expected = (tmp_path / "outputs" / "it_deck").resolve()
    assert all(path.parent == expected for path in state.exports)


def test_analyze_before_solve_is_rejected(tmp_path: Path) -> None:
    deck = {"domain": {"L_m": 10.0, "N": 5}, "steps": [{"type": "analyze"}]}
    with pytest.raises(DeckError, match="requires a preceding 'solve' step"):
        run_deck_data(deck, deck_path=tmp_path / "d.yaml")


@pytest.mark.parametrize(
    ("deck", "match"),
    [
        ({"domain": {"L_m": 0.0, "N": 5}, "steps": [{"type": "solve"}]}, "L_m must be > 0"),
        ({"domain": {"L_m": 10.0, "N": 5}, "parameters": {"por": 2.0}, "steps": [{"type": "solve"}]}, "por"),
        ({"domain": {"L_m": 10.0, "N": 5}, "steps": "solve"}, "non-empty list"),
    ],
)
def test_invalid_decks_raise_deck_error(tmp_path: Path, deck: dict, match: str) -> None:
    with pytest.raises(DeckError, match=match):
        run_deck_data(deck, deck_path=tmp_path / "d.yaml")


def test_solver_failure_is_chained(tmp_path: Path) -> None:
    deck = _small_deck(max_iter=1)
    with pytest.raises(DeckError) as excinfo:
        run_deck_data(deck, deck_path=tmp_path / "d.yaml")
    assert "NonConvergenceError" in str(excinfo.value)
    assert excinfo.value.__cause__ is not None


def test_load_deck_errors(tmp_path: Path) -> None:
    with pytest.raises(DeckError, match="not found"):
        load_deck(tmp_path / "missing.yaml")

    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    with pytest.raises(DeckError, match="empty"):
        load_deck(empty)

    broken = tmp_path / "broken.yaml"
    broken.write_text("domain: [1, 2\n", encoding="utf-8")
    with pytest.raises(DeckError, match="Failed to parse"):
        load_deck(broken)


def test_reference_deck(tmp_path: Path) -> None:
    state = run_deck(REFERENCE_DECK, out_override=tmp_path / "ref")
    assert state.grid.N == 500
    assert state.report is not None
    assert set(state.report["fronts_m"]) == {"O2", "NO3"}
    assert (tmp_path / "ref" / "profiles.png").exists()
