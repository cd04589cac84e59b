"""Adapter tests for CLI entrypoint."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from aquifer1d.cli import main


pytestmark = pytest.mark.adapter


def _write_deck(path: Path, deck: dict) -> Path:
    path.write_text(yaml.safe_dump(deck, sort_keys=False), encoding="utf-8")
    return path


def test_cli_run_command_smoke(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    deck = {
        "domain": {"L_m": 40.0, "N": 20},
        "steps": [
            {"type": "solve"},
            {"type": "export", "outdir": "outputs/adapter_cli", "formats": ["npy", "csv"]},
        ],
    }
    deck_path = _write_deck(tmp_path / "deck_cli.yaml", deck)

    rc = main(["run", str(deck_path), "--out", str(tmp_path / "out")])
    captured = capsys.readouterr()

    assert rc == 0
    assert "Done. N=20" in captured.out
    assert "Output:" in captured.out
    assert (tmp_path / "out" / "state.npy").exists()
    assert (tmp_path / "out" / "profiles.csv").exists()


def test_cli_reports_solver_failure(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    deck = {
        "domain": {"L_m": 40.0, "N": 20},
        "solver": {"max_iter": 1},
        "steps": [{"type": "solve"}],
    }
    deck_path = _write_deck(tmp_path / "deck_fail.yaml", deck)

    with pytest.raises(SystemExit) as excinfo:
        main(["run", str(deck_path)])
    captured = capsys.readouterr()

    assert excinfo.value.code == 2
    assert "NonConvergenceError" in captured.err


def test_cli_missing_deck(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["run", str(tmp_path / "nope.yaml")])
    assert excinfo.value.code == 2
    assert "Deck file not found" in capsys.readouterr().err


def test_cli_selfcheck_without_smoke(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["selfcheck", "--no-smoke"])
    captured = capsys.readouterr()
    assert rc == 0
    assert "overall: OK" in captured.out
