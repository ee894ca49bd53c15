"""Final per-package report of a release run."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from monoship.pipeline import Outcome, PipelineRun, RunStatus

OUTCOME_STYLES = {
    Outcome.SUCCESS: "green",
    Outcome.FAILED: "red",
    Outcome.SKIPPED: "yellow",
    Outcome.INTERRUPTED: "red",
    Outcome.PENDING: "magenta",
    Outcome.NOT_SELECTED: "dim",
}


def build_run_table(run: PipelineRun, *, show_unselected: bool = False) -> Table:
    """Table with one row per package: version, stage reached, outcome, detail."""
    table = Table(title="Release report")
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="dim")
    table.add_column("Stage")
    table.add_column("Outcome")
    table.add_column("Detail", overflow="fold")

    for report in run.reports.values():
        if report.outcome == Outcome.NOT_SELECTED and not show_unselected:
            continue
        style = OUTCOME_STYLES[report.outcome]
        table.add_row(
            report.name,
            report.version,
            report.stage.value if report.stage else "-",
            f"[{style}]{report.outcome.value}[/{style}]",
            report.message,
        )
    return table


def summary_line(run: PipelineRun) -> str:
    """Counts of published, skipped, failed, interrupted and unattempted packages."""
    counts = run.counts()
    if run.dry_run:
        parts = [f"{counts[Outcome.SUCCESS]} would publish"]
    else:
        parts = [f"{len(run.published)} published"]
    parts.append(f"{counts[Outcome.SKIPPED]} skipped")
    parts.append(f"{counts[Outcome.FAILED]} failed")
    if counts[Outcome.INTERRUPTED]:
        parts.append(f"{counts[Outcome.INTERRUPTED]} interrupted")
    if counts[Outcome.PENDING]:
        parts.append(f"{counts[Outcome.PENDING]} not attempted")
    return ", ".join(parts)


def print_run_report(
    run: PipelineRun,
    console: Console,
    *,
    show_unselected: bool = False,
) -> None:
    """Print the report table followed by a verdict line."""
    console.print(build_run_table(run, show_unselected=show_unselected))

    line = summary_line(run)
    if run.status == RunStatus.ABORTED:
        console.print(f"[red]Release aborted:[/red] {line}")
    elif run.success:
        console.print(f"[green]Release finished:[/green] {line}")
    else:
        console.print(f"[red]Release failed:[/red] {line}")
