"""gen-readme command: write READMEs generated from module docstrings."""

from __future__ import annotations

import typer
from rich.console import Console

from monoship.commands.base import CommandContext, SyncCommand
from monoship.errors import MonoshipError
from monoship.readme import DocstringReadmeGenerator, ReadmeGenerator, ReadmeMode, write_readme
from monoship.workspace.package import Package
from monoship.workspace.workspace import Workspace


class GenReadmeCommand(SyncCommand[list[str]]):
    """Generate README files; returns the names of packages written."""

    def __init__(
        self,
        context: CommandContext,
        packages: list[Package],
        mode: ReadmeMode,
        generator: ReadmeGenerator | None = None,
    ) -> None:
        super().__init__(context)
        self.packages = packages
        self.mode = mode
        self.generator = generator or DocstringReadmeGenerator()

    def execute(self) -> list[str]:
        return [
            pkg.name
            for pkg in self.packages
            if write_readme(pkg, self.generator, self.mode)
        ]


def handle_gen_readme_command(
    workspace: Workspace,
    packages: list[Package],
    mode: ReadmeMode,
    *,
    console: Console,
    error_console: Console,
) -> None:
    """Handle gen-readme command."""
    try:
        written = GenReadmeCommand(CommandContext(workspace=workspace), packages, mode).execute()
    except MonoshipError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    for name in written:
        console.print(f"Wrote README for [cyan]{name}[/cyan]")
    if not written:
        console.print("[dim]No README files written[/dim]")
