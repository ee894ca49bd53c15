"""Changed command implementation."""

from __future__ import annotations

import json
from dataclasses import dataclass

import typer
from rich.console import Console

from monoship.commands.base import CommandContext, SyncCommand
from monoship.errors import MonoshipError
from monoship.filters.since import detect_changed_packages
from monoship.workspace.workspace import Workspace


@dataclass
class ChangedPackage:
    """Information about a changed package."""

    name: str
    path: str
    files_changed: int
    is_dependent: bool  # True if changed due to dependency


@dataclass
class ChangedResult:
    """Result of changed command."""

    since: str
    changed: list[ChangedPackage]
    total_files_changed: int


@dataclass
class ChangedOptions:
    """Options for changed command."""

    since: str
    include_dependents: bool = True
    include_dev: bool = False


class ChangedCommand(SyncCommand[ChangedResult]):
    """List packages that have changed since a git reference."""

    def __init__(self, context: CommandContext, options: ChangedOptions) -> None:
        super().__init__(context)
        self.options = options

    def execute(self) -> ChangedResult:
        """Execute the changed command.

        Raises:
            GitError: If the repository or the reference is unavailable.
        """
        changes = detect_changed_packages(
            self.workspace, self.options.since, include_dev=self.options.include_dev
        )
        names = changes.cascaded if self.options.include_dependents else changes.direct

        changed = [
            ChangedPackage(
                name=name,
                path=self.workspace.packages[name].path.relative_to(self.workspace.root).as_posix(),
                files_changed=changes.file_counts.get(name, 0),
                is_dependent=name not in changes.direct,
            )
            for name in sorted(names)
        ]
        return ChangedResult(
            since=self.options.since,
            changed=changed,
            total_files_changed=changes.files_changed,
        )


def get_changed_packages(
    workspace: Workspace,
    since: str,
    *,
    include_dependents: bool = True,
    include_dev: bool = False,
) -> ChangedResult:
    """Convenience function to get changed packages.

    Args:
        workspace: Workspace to check.
        since: Git reference.
        include_dependents: Include transitive dependents.
        include_dev: Follow dev-dependency edges when including dependents.

    Returns:
        Changed result.
    """
    context = CommandContext(workspace=workspace)
    options = ChangedOptions(
        since=since,
        include_dependents=include_dependents,
        include_dev=include_dev,
    )
    cmd = ChangedCommand(context, options)
    return cmd.execute()


def handle_changed_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    since: str,
    include_dependents: bool = True,
    include_dev: bool = False,
    json_output: bool = False,
) -> None:
    """Handle changed command."""
    try:
        result = get_changed_packages(
            workspace,
            since,
            include_dependents=include_dependents,
            include_dev=include_dev,
        )
    except MonoshipError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if json_output:
        data = [
            {
                "name": p.name,
                "path": p.path,
                "files_changed": p.files_changed,
                "is_dependent": p.is_dependent,
            }
            for p in result.changed
        ]
        console.print(json.dumps(data, indent=2))
        return

    console.print(f"Packages changed since [bold]{since}[/bold]:")
    for pkg in result.changed:
        suffix = " [dim](dependent)[/dim]" if pkg.is_dependent else ""
        console.print(f"  - {pkg.name} ({pkg.files_changed} files){suffix}")

    if not result.changed:
        console.print("  [dim]No packages changed[/dim]")
