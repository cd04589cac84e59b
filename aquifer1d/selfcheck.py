from __future__ import annotations

import importlib
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .deck import run_deck_data


@dataclass
class CheckRow:
    name: str
    ok: bool
    detail: str


@dataclass
class SelfCheckReport:
    rows: list[CheckRow]

    @property
    def ok(self) -> bool:
        return all(row.ok for row in self.rows)

    def to_text(self) -> str:
        lines: list[str] = []
        for row in self.rows:
            status = "OK" if row.ok else "FAIL"
            lines.append(f"[{status}] {row.name}: {row.detail}")
        lines.append(f"overall: {'OK' if self.ok else 'FAIL'}")
        return "\n".join(lines)


def run_selfcheck(*, smoke: bool = True) -> SelfCheckReport:
    rows: list[CheckRow] = []

    for module_name in ("numpy", "scipy", "yaml", "matplotlib"):
        try:
            mod = importlib.import_module(module_name)
            version = getattr(mod, "__version__", "unknown")
            rows.append(CheckRow(module_name, True, f"version={version}"))
        except ImportError as exc:
            rows.append(CheckRow(module_name, False, str(exc)))

    if smoke and all(row.ok for row in rows):
        deck = {
            "domain": {"L_m": 50.0, "N": 25},
            "steps": [
                {"type": "solve"},
                {"type": "analyze", "save": {"json": True, "csv": True}},
                {"type": "export", "outdir": "outputs/selfcheck", "formats": ["npy", "csv", "png"]},
            ],
        }

        try:
            with tempfile.TemporaryDirectory(prefix="aquifer1d-selfcheck-") as tmp:
                outdir = Path(tmp) / "out"
                state = run_deck_data(deck, deck_path=Path(tmp) / "selfcheck.yaml", out_override=outdir)
                expected = [
                    outdir / "state.npy",
                    outdir / "profiles.csv",
                    outdir / "profiles.png",
                    outdir / "report.json",
                    outdir / "report.csv",
                ]
                missing = [path.name for path in expected if not path.exists()]
                if missing:
                    rows.append(CheckRow("smoke", False, f"missing artifacts: {', '.join(missing)}"))
                else:
                    steady = state.steady
                    iterations = steady.iterations if steady is not None else -1
                    rows.append(
                        CheckRow("smoke", True, f"N={state.grid.N}, iterations={iterations}, exports={len(state.exports)}")
                    )
        except Exception as exc:
            rows.append(CheckRow("smoke", False, str(exc)))

    return SelfCheckReport(rows=rows)
