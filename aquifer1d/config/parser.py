"""Config parsing and translation utilities."""

from __future__ import annotations

from typing import Any, Mapping

from ..errors import InvalidParameterError
from ..parameters import ParameterSet
from .deck_models import AnalyzeStepConfig, DomainConfig, ExportStepConfig, SolverConfig, SolveStepConfig
from .validators import (
    as_mapping,
    ensure_choice,
    ensure_positive,
    opt_mapping,
    required,
    to_float,
    to_int,
)

STEP_TYPES = ("solve", "analyze", "export")
EXPORT_FORMATS = ("npy", "csv", "png")

StepConfig = SolveStepConfig | AnalyzeStepConfig | ExportStepConfig


def parse_steps(deck: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Parse and normalize deck steps."""
    raw_steps = required(deck, "steps", "deck")
    if not isinstance(raw_steps, list) or not raw_steps:
        raise ValueError("deck.steps must be a non-empty list.")

    steps: list[dict[str, Any]] = []
    for idx, raw in enumerate(raw_steps):
        steps.append(as_mapping(raw, f"steps[{idx}]"))
    return steps


def parse_domain_config(deck: Mapping[str, Any]) -> DomainConfig:
    """Extract strongly typed domain config from deck payload."""
    domain = as_mapping(required(deck, "domain", "deck"), "deck.domain")
    L_m = to_float(required(domain, "L_m", "deck.domain"), "L_m", "deck.domain")
    N = to_int(required(domain, "N", "deck.domain"), "N", "deck.domain")
    return DomainConfig(L_m=L_m, N=N)


def parse_parameters(deck: Mapping[str, Any]) -> ParameterSet:
    """Build the parameter set from ``deck.parameters`` overrides."""
    raw = opt_mapping(deck.get("parameters"), "deck.parameters")
    values = {str(key): to_float(value, str(key), "deck.parameters") for key, value in raw.items()}
    try:
        return ParameterSet.from_mapping(values)
    except InvalidParameterError as exc:
        raise ValueError(f"deck.parameters: {exc}") from exc


def parse_solver_config(deck: Mapping[str, Any]) -> SolverConfig:
    """Extract solver settings, defaults for anything omitted."""
    raw = opt_mapping(deck.get("solver"), "deck.solver")
    ctx = "deck.solver"
    defaults = SolverConfig()
    known = set(defaults.__dataclass_fields__)
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown key(s) in {ctx}: {', '.join(map(str, unknown))}.")

    atol = ensure_positive(f"{ctx}.atol", to_float(raw.get("atol", defaults.atol), "atol", ctx), allow_zero=True)
    rtol = ensure_positive(f"{ctx}.rtol", to_float(raw.get("rtol", defaults.rtol), "rtol", ctx), allow_zero=True)
    max_iter = to_int(raw.get("max_iter", defaults.max_iter), "max_iter", ctx)
    ensure_positive(f"{ctx}.max_iter", max_iter)
    dt0 = ensure_positive(f"{ctx}.dt0", to_float(raw.get("dt0", defaults.dt0), "dt0", ctx))
    floor = ensure_positive(f"{ctx}.floor", to_float(raw.get("floor", defaults.floor), "floor", ctx), allow_zero=True)
    workers = to_int(raw.get("workers", defaults.workers), "workers", ctx)
    ensure_positive(f"{ctx}.workers", workers)
    jacobian = ensure_choice(f"{ctx}.jacobian", raw.get("jacobian", defaults.jacobian), ("analytic", "fd"))
    initial = ensure_choice(f"{ctx}.initial", raw.get("initial", defaults.initial), ("zeros", "river"))

    return SolverConfig(
        atol=atol,
        rtol=rtol,
        max_iter=max_iter,
        dt0=dt0,
        floor=floor,
        jacobian=jacobian,  # type: ignore[arg-type]
        workers=workers,
        initial=initial,  # type: ignore[arg-type]
    )


def parse_step_config(step: Mapping[str, Any], idx: int) -> StepConfig:
    """Validate one step payload into its typed config."""
    context = f"steps[{idx}]"
    stype = ensure_choice(f"{context}.type", required(step, "type", context), STEP_TYPES)

    if stype == "solve":
        return SolveStepConfig()

    if stype == "analyze":
        ctx = f"{context} (analyze)"
        front_fraction = to_float(step.get("front_fraction", 0.1), "front_fraction", ctx)
        if not 0.0 < front_fraction < 1.0:
            raise ValueError(f"{ctx}.front_fraction must be in (0, 1), got {front_fraction}.")
        save = opt_mapping(step.get("save"), f"{ctx}.save")
        return AnalyzeStepConfig(
            front_fraction=front_fraction,
            save_json=bool(save.get("json", True)),
            save_csv=bool(save.get("csv", True)),
        )

    ctx = f"{context} (export)"
    formats = step.get("formats", ["csv"])
    if not isinstance(formats, list) or not formats:
        raise ValueError(f"{ctx}.formats must be a non-empty list.")
    normalized = [ensure_choice(f"{ctx}.formats", fmt, EXPORT_FORMATS) for fmt in formats]
    return ExportStepConfig(outdir=str(step.get("outdir", "outputs/run")), formats=normalized)


def parse_step_configs(deck: Mapping[str, Any]) -> list[StepConfig]:
    """Parse all steps into typed configs."""
    return [parse_step_config(step, idx) for idx, step in enumerate(parse_steps(deck))]
