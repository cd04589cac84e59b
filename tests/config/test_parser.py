"""Deck section parsing tests."""

from __future__ import annotations

import pytest

from aquifer1d.config import (
    AnalyzeStepConfig,
    ExportStepConfig,
    SolveStepConfig,
    parse_domain_config,
    parse_parameters,
    parse_solver_config,
    parse_step_configs,
)
from aquifer1d.parameters import ParameterSet


pytestmark = pytest.mark.unit


def test_domain_config() -> None:
    cfg = parse_domain_config({"domain": {"L_m": "250", "N": 100}})
    assert cfg.L_m == 250.0
    assert cfg.N == 100
    with pytest.raises(ValueError, match="Missing required key 'N'"):
        parse_domain_config({"domain": {"L_m": 1.0}})


def test_parameters_default_and_override() -> None:
    assert parse_parameters({}) == ParameterSet()
    p = parse_parameters({"parameters": {"v_adv": 0.5, "riverNO3": "0.2"}})
    assert p.v_adv == 0.5
    assert p.riverNO3 == 0.2
    with pytest.raises(ValueError, match="deck.parameters"):
        parse_parameters({"parameters": {"kO2": 0.0}})
    with pytest.raises(ValueError, match="Unknown parameter"):
        parse_parameters({"parameters": {"k_anammox": 1.0}})


def test_solver_config() -> None:
    cfg = parse_solver_config({"solver": {"atol": 1.0e-9, "jacobian": "FD", "workers": 2, "initial": "river"}})
    assert cfg.atol == 1.0e-9
    assert cfg.rtol == 1.0e-10
    assert cfg.jacobian == "fd"
    assert cfg.workers == 2
    assert cfg.initial == "river"

    with pytest.raises(ValueError, match="Unknown key"):
        parse_solver_config({"solver": {"tolerance": 1.0}})
    with pytest.raises(ValueError, match="max_iter must be > 0"):
        parse_solver_config({"solver": {"max_iter": 0}})
    with pytest.raises(ValueError, match="jacobian must be one of"):
        parse_solver_config({"solver": {"jacobian": "broyden"}})


def test_step_configs() -> None:
    deck = {
        "steps": [
            {"type": "solve"},
            {"type": "Analyze", "front_fraction": 0.2, "save": {"csv": False}},
            {"type": "export", "formats": ["npy", "PNG"]},
        ]
    }
    solve, analyze, export = parse_step_configs(deck)
    assert isinstance(solve, SolveStepConfig)
    assert isinstance(analyze, AnalyzeStepConfig)
    assert analyze.front_fraction == 0.2
    assert analyze.save_json is True
    assert analyze.save_csv is False
    assert isinstance(export, ExportStepConfig)
    assert export.formats == ["npy", "png"]


@pytest.mark.parametrize(
    ("steps", "match"),
    [
        ([], "non-empty list"),
        ([{"type": "anneal"}], "type must be one of"),
        ([{"type": "analyze", "front_fraction": 1.5}], "front_fraction"),
        ([{"type": "export", "formats": ["vtk"]}], "formats must be one of"),
        ([{"type": "export", "formats": []}], "non-empty list"),
    ],
)
def test_invalid_steps(steps: list, match: str) -> None:
    with pytest.raises(ValueError, match=match):
        parse_step_configs({"steps": steps})
