"""Typed models for deck-level configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True)
class DomainConfig:
    """Flow-path domain configuration."""

    L_m: float
    N: int


@dataclass(frozen=True)
class SolverConfig:
    """Steady-state solver settings."""

    atol: float = 1.0e-10
    rtol: float = 1.0e-10
    max_iter: int = 200
    dt0: float = 1.0
    floor: float = 0.0
    jacobian: Literal["analytic", "fd"] = "analytic"
    workers: int = 1
    initial: Literal["zeros", "river"] = "zeros"


@dataclass(frozen=True)
class SolveStepConfig:
    """Typed solve step config."""

    type: Literal["solve"] = "solve"


@dataclass(frozen=True)
class AnalyzeStepConfig:
    """Typed analyze step config."""

    type: Literal["analyze"] = "analyze"
    front_fraction: float = 0.1
    save_json: bool = True
    save_csv: bool = True


@dataclass(frozen=True)
class ExportStepConfig:
    """Typed export step config."""

    type: Literal["export"] = "export"
    outdir: str = "outputs/run"
    formats: list[str] = field(default_factory=lambda: ["csv"])
