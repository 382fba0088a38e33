"""
Rich rendering of a run report.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from .models import RunReport, RunStatus, Task

_OUTCOME_STYLE = {
    "success": "bold green",
    "failure": "bold red",
    "skipped": "dim",
}


def _ensure_rich() -> None:
    """Assert that 'rich' is importable; do not attempt auto-install."""
    try:
        import rich  # noqa: F401
    except Exception as e:
        raise RuntimeError("'rich' is required for the packflow report. Please install it in your environment.") from e


def _fmt_elapsed(sec: float) -> str:
    if sec < 60:
        return f"{sec:.2f}s"
    m, s = divmod(int(sec), 60)
    return f"{m:02d}:{s:02d}"


def build_report_table(report: RunReport, tasks: Sequence[Task]) -> Any:
    """Return a rich Table with one row per declared task."""
    _ensure_rich()
    from rich.table import Table
    from rich.text import Text

    status = report.status.value
    title_style = "bold green" if report.status is RunStatus.COMPLETED else "bold red"
    table = Table(title=Text(f"packflow run: {status}", style=title_style), expand=False)
    table.add_column("#", justify="right")
    table.add_column("kind")
    table.add_column("task")
    table.add_column("outcome")
    table.add_column("elapsed", justify="right")
    table.add_column("detail")

    by_index = {r.index: r for r in report.results}
    for i, task in enumerate(tasks):
        r = by_index.get(i)
        if r is None:
            outcome, elapsed, detail = "skipped", "-", ""
        else:
            outcome = r.outcome.value
            elapsed = _fmt_elapsed(r.duration)
            detail = r.message if r.ok else f"{r.error_kind.value}: {r.message}"
        table.add_row(
            str(i),
            task.kind,
            task.describe(),
            Text(outcome, style=_OUTCOME_STYLE.get(outcome, "white")),
            elapsed,
            detail,
        )
    return table


def print_report(report: RunReport, tasks: Sequence[Task], console: Optional[Any] = None) -> None:
    _ensure_rich()
    from rich.console import Console

    console = console or Console()
    console.print(build_report_table(report, tasks))
