"""de-dev-deps command: permanently remove dev dependency tables."""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from monoship.commands.base import CommandContext, SyncCommand
from monoship.errors import ManifestError
from monoship.workspace.manifest import strip_dev_dependencies
from monoship.workspace.package import Package
from monoship.workspace.workspace import Workspace

logger = logging.getLogger(__name__)


class DeDevDepsCommand(SyncCommand[dict[str, bool]]):
    """Strip [dependency-groups] and uv dev-dependencies from each package."""

    def __init__(self, context: CommandContext, packages: list[Package]) -> None:
        super().__init__(context)
        self.packages = packages

    def execute(self) -> dict[str, bool]:
        """Returns whether each package's manifest was modified.

        Raises:
            ManifestError: If a manifest cannot be read or written.
        """
        changed: dict[str, bool] = {}
        for pkg in self.packages:
            changed[pkg.name] = strip_dev_dependencies(pkg.manifest_path)
            if changed[pkg.name]:
                logger.info("%s: dev dependencies removed", pkg.name)
        return changed


def handle_dedev_command(
    workspace: Workspace,
    packages: list[Package],
    *,
    console: Console,
    error_console: Console,
) -> None:
    """Handle de-dev-deps command."""
    try:
        changed = DeDevDepsCommand(CommandContext(workspace=workspace), packages).execute()
    except ManifestError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    count = sum(changed.values())
    console.print(f"Removed dev dependencies from [bold]{count}[/bold] package(s)")
