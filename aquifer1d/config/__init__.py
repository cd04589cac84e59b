"""Typed config models and parsers."""

from .deck_models import AnalyzeStepConfig, DomainConfig, ExportStepConfig, SolverConfig, SolveStepConfig
from .parser import (
    parse_domain_config,
    parse_parameters,
    parse_solver_config,
    parse_step_config,
    parse_step_configs,
    parse_steps,
)
from .validators import as_mapping, ensure_choice, ensure_positive, opt_mapping, required, to_float, to_int

__all__ = [
    "AnalyzeStepConfig",
    "DomainConfig",
    "ExportStepConfig",
    "SolveStepConfig",
    "SolverConfig",
    "as_mapping",
    "ensure_choice",
    "ensure_positive",
    "opt_mapping",
    "parse_domain_config",
    "parse_parameters",
    "parse_solver_config",
    "parse_step_config",
    "parse_step_configs",
    "parse_steps",
    "required",
    "to_float",
    "to_int",
]
