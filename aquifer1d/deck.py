"""YAML deck loader and execution engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import numpy as np
import yaml

from .config import (
    AnalyzeStepConfig,
    ExportStepConfig,
    SolverConfig,
    parse_domain_config,
    parse_parameters,
    parse_solver_config,
    parse_step_config,
    parse_steps,
)
from .errors import DeckError, SolverError
from .grid import Grid1D
from .io import export_results, save_report_csv, save_report_json
from .metrics import summary
from .model import N_SPECIES
from .parameters import ParameterSet
from .pipeline import StepRegistry, run
from .solver import SolverOptions, SteadyState, solve_steady_state

logger = logging.getLogger(__name__)


@dataclass
class SimulationState:
    """In-memory state while running a deck."""

    deck_path: Path
    grid: Grid1D
    params: ParameterSet
    solver: SolverConfig
    out_override: str | Path | None = None
    default_export_outdir_step: str | None = None
    steady: SteadyState | None = None
    report: dict[str, Any] | None = None
    exports: list[Path] = field(default_factory=list)

    def resolve_outdir(self, outdir_step: str | None = None) -> Path:
        """Resolve outdir from override, step value or the first export step."""
        if self.out_override is not None:
            return Path(self.out_override).resolve()
        target = outdir_step if outdir_step is not None else self.default_export_outdir_step
        path = Path("outputs/run") if target is None else Path(target)
        if not path.is_absolute():
            path = (self.deck_path.parent / path).resolve()
        return path

    def require_steady(self, context: str) -> SteadyState:
        if self.steady is None:
            raise DeckError(f"{context} requires a preceding 'solve' step.")
        return self.steady


def load_deck(deck_path: str | Path) -> dict[str, Any]:
    """Load YAML deck from file."""
    path = Path(deck_path)
    if not path.exists():
        raise DeckError(f"Deck file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            payload = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise DeckError(f"Failed to parse YAML deck: {path}") from exc

    if payload is None:
        raise DeckError(f"Deck is empty: {path}")
    if not isinstance(payload, dict):
        raise DeckError("deck must be a mapping.")
    return payload


def _default_export_outdir_step(steps: list[dict[str, Any]]) -> str | None:
    for step in steps:
        if str(step.get("type", "")).lower() == "export":
            if "outdir" in step:
                return str(step["outdir"])
            return None
    return None


def _initial_guess(state: SimulationState) -> np.ndarray | None:
    if state.solver.initial == "zeros":
        return None
    river = state.params.river_concentrations()
    return np.repeat(np.asarray(river, dtype=float), state.grid.N)


def _run_solve_step(state: SimulationState, step: dict[str, Any], idx: int) -> None:
    context = f"steps[{idx}] (solve)"
    parse_step_config(step, idx)
    cfg = state.solver
    options = SolverOptions(
        atol=cfg.atol,
        rtol=cfg.rtol,
        max_iter=cfg.max_iter,
        dt0=cfg.dt0,
        floor=cfg.floor,
        jacobian=cfg.jacobian,
        workers=cfg.workers,
    )
    try:
        state.steady = solve_steady_state(state.params, state.grid, C0=_initial_guess(state), options=options)
    except SolverError as exc:
        raise DeckError(f"{context} failed: {type(exc).__name__}: {exc}") from exc


def _run_analyze_step(state: SimulationState, step: dict[str, Any], idx: int) -> None:
    context = f"steps[{idx}] (analyze)"
    cfg = cast(AnalyzeStepConfig, parse_step_config(step, idx))
    steady = state.require_steady(context)

    report = summary(steady, front_fraction=cfg.front_fraction)
    outdir = state.resolve_outdir(step.get("outdir"))
    if cfg.save_json:
        state.exports.append(save_report_json(report, outdir))
    if cfg.save_csv:
        state.exports.append(save_report_csv(report, outdir))
    state.report = report


def _run_export_step(state: SimulationState, step: dict[str, Any], idx: int) -> None:
    context = f"steps[{idx}] (export)"
    cfg = cast(ExportStepConfig, parse_step_config(step, idx))
    steady = state.require_steady(context)

    plot_cfg = step.get("plot", {})
    if plot_cfg is None:
        plot_cfg = {}
    if not isinstance(plot_cfg, dict):
        raise DeckError(f"{context}.plot must be a mapping.")

    outdir = state.resolve_outdir(step.get("outdir"))
    try:
        written = export_results(steady.C, state.grid, outdir, cfg.formats, plot_cfg=plot_cfg)
    except ValueError as exc:
        raise DeckError(f"{context} failed: {exc}") from exc
    state.exports.extend(written)


def build_step_registry() -> StepRegistry[SimulationState]:
    return StepRegistry(
        {
            "solve": _run_solve_step,
            "analyze": _run_analyze_step,
            "export": _run_export_step,
        }
    )


def _build_initial_state(
    deck: dict[str, Any],
    deck_path: Path,
    steps: list[dict[str, Any]],
    out_override: str | Path | None,
) -> SimulationState:
    try:
        domain = parse_domain_config(deck)
        params = parse_parameters(deck)
        solver = parse_solver_config(deck)
        grid = Grid1D.from_domain(domain.L_m, domain.N)
    except (TypeError, ValueError) as exc:
        raise DeckError(str(exc)) from exc

    logger.info("deck %s: L=%g m, N=%d, %d unknowns", deck_path.name, grid.L_m, grid.N, N_SPECIES * grid.N)
    return SimulationState(
        deck_path=deck_path,
        grid=grid,
        params=params,
        solver=solver,
        out_override=out_override,
        default_export_outdir_step=_default_export_outdir_step(steps),
    )


def run_deck_data(
    deck: dict[str, Any],
    *,
    deck_path: str | Path | None = None,
    out_override: str | Path | None = None,
) -> SimulationState:
    """Run a deck from an in-memory payload."""
    path = Path("__in_memory_deck__.yaml") if deck_path is None else Path(deck_path)
    if not path.is_absolute():
        path = (Path.cwd() / path).resolve()

    if not isinstance(deck, dict):
        raise DeckError("deck must be a mapping.")

    try:
        steps = parse_steps(deck)
    except (TypeError, ValueError) as exc:
        raise DeckError(str(exc)) from exc

    state = _build_initial_state(deck, path, steps=steps, out_override=out_override)
    return run(steps, state, build_step_registry())


def run_deck(deck_path: str | Path, out_override: str | Path | None = None) -> SimulationState:
    """Run all steps from a YAML deck."""
    deck_path = Path(deck_path).resolve()
    deck = load_deck(deck_path)
    return run_deck_data(deck, deck_path=deck_path, out_override=out_override)


__all__ = [
    "DeckError",
    "SimulationState",
    "build_step_registry",
    "load_deck",
    "run_deck",
    "run_deck_data",
]
