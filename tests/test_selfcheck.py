from __future__ import annotations

from aquifer1d.selfcheck import run_selfcheck


def test_selfcheck_imports_pass() -> None:
    report = run_selfcheck(smoke=False)
    assert report.ok
    assert report.rows


def test_selfcheck_smoke() -> None:
    report = run_selfcheck(smoke=True)
    assert report.ok, report.to_text()
    assert any(row.name == "smoke" for row in report.rows)
