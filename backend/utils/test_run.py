#!/usr/bin/env python3
"""
utils/test_run.py — Anything Minutes test runner with a rich summary.

Usage (run from anywhere; the script changes to the project root):
  python backend/utils/test_run.py                 # full suite
  python backend/utils/test_run.py --unit          # unit tests only
  python backend/utils/test_run.py --integration   # integration tests only
  python backend/utils/test_run.py -x              # stop on first failure
  python backend/utils/test_run.py -k "invite"     # filter by keyword

Any other arguments are passed straight to pytest.
"""

from __future__ import annotations

import argparse
import os
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.theme import Theme

PROJECT_ROOT = Path(__file__).resolve().parents[2]
TEST_ROOT = Path("backend") / "tests"

THEME = Theme({
    "good":  "bright_green",
    "bad":   "bright_red",
    "warn":  "bright_yellow",
    "muted": "bright_black",
    "unit":  "cyan",
    "intg":  "magenta",
})

con = Console(theme=THEME, highlight=False)


@dataclass
class TResult:
    nodeid:   str
    outcome:  str      # passed | failed | skipped
    duration: float    # seconds
    summary:  str = ""

    @property
    def tier(self) -> str:
        if "/unit/" in self.nodeid:
            return "unit"
        if "/integration/" in self.nodeid:
            return "integration"
        return "other"

    @property
    def module(self) -> str:
        return Path(self.nodeid.split("::")[0]).stem


@dataclass
class Stats:
    results: list[TResult] = field(default_factory=list)
    elapsed: float = 0.0

    def count(self, outcome: str, tier: str | None = None) -> int:
        return sum(
            1 for r in self.results
            if r.outcome == outcome and (tier is None or r.tier == tier)
        )

    @property
    def ok(self) -> bool:
        return bool(self.results) and self.count("failed") == 0


class Collector:
    """pytest plugin that records each test's outcome and advances the progress bar."""

    def __init__(self, progress: Progress, task_id):
        self.results: list[TResult] = []
        self._progress = progress
        self._task = task_id

    def pytest_collection_finish(self, session):
        self._progress.update(self._task, total=len(session.items))

    def pytest_runtest_logreport(self, report):
        if report.when != "call" and not (report.when == "setup" and report.outcome != "passed"):
            return

        summary = ""
        if report.failed and report.longrepr:
            lines = [line.strip() for line in str(report.longrepr).splitlines() if line.strip()]
            summary = lines[-1][:160] if lines else ""

        self.results.append(TResult(report.nodeid, report.outcome, report.duration, summary))
        self._progress.advance(self._task)


# ─── Rendering ─────────────────────────────────────────────────────────────

def _tier_table(st: Stats) -> Table:
    tbl = Table(title="Tiers", title_justify="left", box=box.ROUNDED, border_style="muted")
    for col in ("Tier", "Passed", "Failed", "Skipped"):
        tbl.add_column(col, justify="left" if col == "Tier" else "center")
    for tier, style in (("unit", "unit"), ("integration", "intg")):
        failed = st.count("failed", tier)
        tbl.add_row(
            f"[{style}]{tier}[/]",
            f"[good]{st.count('passed', tier)}[/]",
            f"[{'bad' if failed else 'muted'}]{failed}[/]",
            str(st.count("skipped", tier)),
        )
    return tbl


def _module_table(st: Stats) -> Table:
    modules: dict[str, list[TResult]] = {}
    for r in st.results:
        modules.setdefault(r.module, []).append(r)

    tbl = Table(title="Modules", title_justify="left", box=box.ROUNDED, border_style="muted")
    tbl.add_column("Module")
    tbl.add_column("n", justify="right")
    tbl.add_column("ms", justify="right")
    tbl.add_column("Status", justify="center")
    for name, results in sorted(modules.items()):
        failed = any(r.outcome == "failed" for r in results)
        tbl.add_row(
            name,
            str(len(results)),
            f"{sum(r.duration for r in results) * 1000:.0f}",
            "[bad]FAIL[/]" if failed else "[good]PASS[/]",
        )
    return tbl


def _render_failures(st: Stats) -> None:
    failures = [r for r in st.results if r.outcome == "failed"]
    if not failures:
        return
    tbl = Table(title="Failures", title_justify="left", box=box.ROUNDED, border_style="bad")
    tbl.add_column("Test", overflow="fold")
    tbl.add_column("Reason", overflow="fold")
    for r in failures:
        tbl.add_row(escape(r.nodeid), f"[muted]{escape(r.summary)}[/]")
    con.print(tbl)


def _render_verdict(st: Stats, ok: bool) -> None:
    total = len(st.results)
    if ok:
        con.print(Panel(f"[good]ALL {total} TESTS PASSED[/]  [muted]{st.elapsed:.2f}s[/]", border_style="good"))
    else:
        con.print(Panel(
            f"[bad]{st.count('failed')} of {total} FAILED[/]  [muted]{st.elapsed:.2f}s[/]",
            border_style="bad",
        ))


# ─── Runner ────────────────────────────────────────────────────────────────

def run(tier: str | None, fail_fast: bool, keyword: str, extra: list[str]) -> int:
    paths = [str(TEST_ROOT / tier)] if tier else [str(TEST_ROOT)]
    pytest_args = [*paths, "-q", "--tb=short", "-p", "no:cacheprovider"]
    if fail_fast:
        pytest_args.append("-x")
    if keyword:
        pytest_args += ["-k", keyword]
    pytest_args += extra

    con.rule(f"Anything Minutes · {tier or 'full suite'}", style="muted")

    progress = Progress(
        SpinnerColumn("line"),
        TextColumn("[muted]{task.description}[/]"),
        BarColumn(bar_width=32),
        MofNCompleteColumn(),
        console=con,
        transient=True,
    )
    task_id = progress.add_task("running tests", total=None)
    collector = Collector(progress, task_id)

    started = time.perf_counter()
    with progress:
        exit_code = pytest.main(pytest_args, plugins=[collector])
    st = Stats(results=collector.results, elapsed=time.perf_counter() - started)

    con.print(_tier_table(st))
    con.print(_module_table(st))
    _render_failures(st)

    ok = st.ok and exit_code == 0
    _render_verdict(st, ok)
    return 0 if ok else 1


def _cli() -> None:
    parser = argparse.ArgumentParser(
        prog="python backend/utils/test_run.py",
        description="Anything Minutes test runner",
    )
    tiers = parser.add_mutually_exclusive_group()
    tiers.add_argument("--unit", action="store_true", help="tests/unit only")
    tiers.add_argument("--integration", action="store_true", help="tests/integration only")
    parser.add_argument("-x", "--fail-fast", action="store_true", help="stop after the first failure")
    parser.add_argument("-k", metavar="EXPR", default="", help="pytest -k expression")
    args, remainder = parser.parse_known_args()

    # pyproject.toml (pytest config, pythonpath) lives at the project root.
    os.chdir(PROJECT_ROOT)

    tier = "unit" if args.unit else "integration" if args.integration else None
    sys.exit(run(tier, args.fail_fast, args.k, remainder))


if __name__ == "__main__":
    _cli()
