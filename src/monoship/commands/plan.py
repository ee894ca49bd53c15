"""Release planning: selection followed by dependency ordering."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from monoship.errors import EmptySelectionError, MonoshipError
from monoship.filters import SelectionCriteria, select_packages
from monoship.filters.chain import ChangeDetector
from monoship.workspace.package import Package
from monoship.workspace.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleasePlan:
    """Packages to release, dependencies first.

    Attributes:
        packages: Selected packages in publish order.
        include_dev: Whether dev edges were used for ordering.
    """

    packages: tuple[Package, ...]
    include_dev: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.packages

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.packages]

    def __iter__(self) -> Iterator[Package]:
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)


def plan_release(
    workspace: Workspace,
    criteria: SelectionCriteria,
    *,
    detector: ChangeDetector | None = None,
) -> ReleasePlan:
    """Select packages and put them in a safe publish order.

    Raises:
        PackageNotFoundError: If an explicit name is unknown.
        GitError: If change detection fails.
        CyclicDependencyError: If the selected packages form a cycle.
    """
    selected = select_packages(workspace, criteria, detector=detector)
    include_dev = criteria.include_dev_deps or workspace.config.release.include_dev_deps
    ordered = workspace.graph.topological_order(
        (p.name for p in selected), include_dev=include_dev
    )
    logger.debug("Release order: %s", ", ".join(p.name for p in ordered))
    return ReleasePlan(packages=tuple(ordered), include_dev=include_dev)


def ensure_not_empty(packages: list[Package] | ReleasePlan, empty_is_failure: bool) -> None:
    """Apply the empty-selection policy.

    Raises:
        EmptySelectionError: If nothing was selected and that is a failure.
    """
    if len(packages) == 0 and empty_is_failure:
        raise EmptySelectionError()


def write_dot_graph(workspace: Workspace, plan: ReleasePlan, path: Path) -> None:
    """Write the planned subgraph as a Graphviz dot file."""
    dot = workspace.graph.to_dot(plan.names, include_dev=plan.include_dev)
    path.write_text(dot, encoding="utf-8")
    logger.info("Wrote dependency graph to %s", path)


def handle_plan_command(
    workspace: Workspace,
    criteria: SelectionCriteria,
    *,
    console: Console,
    error_console: Console,
    empty_package_is_failure: bool = False,
    dot_graph: Path | None = None,
) -> None:
    """Print the release order."""
    try:
        plan = plan_release(workspace, criteria)
        ensure_not_empty(plan, empty_package_is_failure)
        if dot_graph is not None:
            write_dot_graph(workspace, plan, dot_graph)
    except MonoshipError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    if plan.is_empty:
        console.print("[yellow]No packages to release[/yellow]")
        return

    table = Table(title="Release order")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Depends on", style="dim")

    for position, pkg in enumerate(plan, start=1):
        deps = workspace.graph.get_dependencies(pkg.name, include_dev=plan.include_dev)
        table.add_row(str(position), pkg.name, pkg.version, ", ".join(d.name for d in deps))

    console.print(table)
