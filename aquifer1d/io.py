"""Output helpers for steady-state results."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Mapping

import matplotlib

matplotlib.use("Agg", force=True)
import matplotlib.pyplot as plt
import numpy as np

from .grid import Grid1D
from .model import SPECIES, split_state


def ensure_outdir(outdir: str | Path) -> Path:
    """Create output directory if needed and return resolved path."""
    path = Path(outdir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_state_npy(C: np.ndarray, outdir: str | Path, filename: str = "state.npy") -> Path:
    """Save the concatenated state vector as .npy."""
    path = ensure_outdir(outdir) / filename
    np.save(path, np.asarray(C, dtype=float))
    return path


def save_profiles_csv(
    C: np.ndarray,
    grid: Grid1D,
    outdir: str | Path,
    filename: str = "profiles.csv",
) -> Path:
    """Save per-species profiles versus cell-centre position."""
    parts = split_state(C, grid.N)
    path = ensure_outdir(outdir) / filename
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["x_m", *(f"{name}_mmol_L" for name in SPECIES)])
        for i, x in enumerate(grid.x_m):
            writer.writerow([f"{float(x):.12g}", *(f"{float(parts[name][i]):.12g}" for name in SPECIES)])
    return path


def _flatten(prefix: str, value: object, rows: list[tuple[str, str]]) -> None:
    if isinstance(value, Mapping):
        for key, sub in value.items():
            name = f"{prefix}.{key}" if prefix else str(key)
            _flatten(name, sub, rows)
        return
    rows.append((prefix, "" if value is None else f"{value}"))


def save_report_json(report: Mapping[str, Any], outdir: str | Path, filename: str = "report.json") -> Path:
    """Save a (nested) report mapping as JSON."""
    path = ensure_outdir(outdir) / filename
    with path.open("w", encoding="utf-8") as f:
        json.dump(report, f, ensure_ascii=False, indent=2)
    return path


def save_report_csv(report: Mapping[str, Any], outdir: str | Path, filename: str = "report.csv") -> Path:
    """Save a report mapping as flattened key-value CSV."""
    path = ensure_outdir(outdir) / filename
    rows: list[tuple[str, str]] = []
    _flatten("", report, rows)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["key", "value"])
        for key, value in rows:
            writer.writerow([key, value])
    return path


def save_profiles_png(
    C: np.ndarray,
    grid: Grid1D,
    outdir: str | Path,
    filename: str = "profiles.png",
    plot_cfg: dict | None = None,
) -> Path:
    """Plot the five steady profiles along the flow path."""
    parts = split_state(C, grid.N)
    path = ensure_outdir(outdir) / filename

    cfg = dict(plot_cfg or {})
    species = [str(s) for s in cfg.get("species", SPECIES)]
    unknown = sorted(set(species) - set(SPECIES))
    if unknown:
        raise ValueError(f"Unknown species in plot config: {unknown}")
    use_log10 = bool(cfg.get("log10", False))

    fig, ax = plt.subplots(figsize=(7.2, 3.6), dpi=150)
    for name in species:
        values = parts[name]
        if use_log10:
            values = np.log10(np.clip(values, 1.0e-12, None))
        ax.plot(grid.x_m, values, lw=1.8, label=name)
    ax.set_xlabel("x [m]")
    ax.set_ylabel("log10(C [mmol/L])" if use_log10 else "C [mmol/L]")
    ax.set_title("Steady-state profiles")
    ax.grid(alpha=0.3)
    ax.legend(loc="best", fontsize=8)
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path


def export_results(
    C: np.ndarray,
    grid: Grid1D,
    outdir: str | Path,
    formats: list[str] | tuple[str, ...],
    plot_cfg: dict | None = None,
) -> list[Path]:
    """Export a state in the requested formats."""
    requested = {str(fmt).lower() for fmt in formats}
    unknown = requested - {"npy", "csv", "png"}
    if unknown:
        raise ValueError(f"Unsupported export format(s): {sorted(unknown)}")

    out = ensure_outdir(outdir)
    written: list[Path] = []
    if "npy" in requested:
        written.append(save_state_npy(C, out))
    if "csv" in requested:
        written.append(save_profiles_csv(C, grid, out))
    if "png" in requested:
        written.append(save_profiles_png(C, grid, out, plot_cfg=plot_cfg))
    return written
