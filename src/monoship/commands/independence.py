"""independence-check command: build each package without workspace sources.

Inside the workspace, uv resolves sibling packages from their directories.
A package that only builds that way will break for anyone installing it
from the registry, so every selected package is built on its own with
`tool.uv.sources` ignored.
"""

from __future__ import annotations

import logging
import shlex
import tempfile
from dataclasses import dataclass, field

import typer
from rich.console import Console

from monoship.commands.base import Command, CommandContext
from monoship.execution.results import ExecutionResult
from monoship.execution.runner import run_in_package
from monoship.workspace.package import Package
from monoship.workspace.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass
class IndependenceResult:
    """Result of independence-check."""

    results: list[ExecutionResult] = field(default_factory=list)
    not_checked: list[str] = field(default_factory=list)

    @property
    def failed(self) -> list[ExecutionResult]:
        return [r for r in self.results if r.failed]

    @property
    def success(self) -> bool:
        return not self.failed


class IndependenceCheckCommand(Command[IndependenceResult]):
    """Build the selected packages one by one, ignoring workspace sources."""

    def __init__(
        self,
        context: CommandContext,
        packages: list[Package],
        *,
        failfast: bool = False,
    ) -> None:
        super().__init__(context)
        self.packages = packages
        self.failfast = failfast

    async def execute(self) -> IndependenceResult:
        config = self.workspace.config
        env = {**config.env, **self.context.env}
        result = IndependenceResult()

        for i, pkg in enumerate(self.packages):
            with tempfile.TemporaryDirectory(prefix="monoship-") as out_dir:
                command = config.release.independence_command.format(
                    out_dir=shlex.quote(out_dir)
                )
                logger.info("%s: building without workspace sources", pkg.name)
                outcome = await run_in_package(
                    pkg, command, env=env, timeout=config.release.timeout
                )
            result.results.append(outcome)

            if outcome.failed:
                logger.error("%s: not buildable on its own", pkg.name)
                if self.failfast:
                    result.not_checked = [p.name for p in self.packages[i + 1 :]]
                    break
        return result


async def check_independence(
    workspace: Workspace,
    packages: list[Package],
    *,
    failfast: bool = False,
) -> IndependenceResult:
    """Convenience function to run independence-check."""
    context = CommandContext(workspace=workspace)
    return await IndependenceCheckCommand(context, packages, failfast=failfast).execute()


async def handle_independence_command(
    workspace: Workspace,
    packages: list[Package],
    *,
    console: Console,
    error_console: Console,
    failfast: bool = False,
) -> None:
    """Handle independence-check command."""
    result = await check_independence(workspace, packages, failfast=failfast)

    for outcome in result.results:
        if outcome.success:
            console.print(f"Built [cyan]{outcome.package_name}[/cyan] on its own")
        else:
            detail = outcome.tail() or f"exit code {outcome.exit_code}"
            error_console.print(f"[red]{outcome.package_name}:[/red] {detail}")
    for name in result.not_checked:
        console.print(f"[dim]{name} not checked[/dim]")

    if not result.success:
        error_console.print(
            f"[red]Error:[/red] {len(result.failed)} package(s) only build inside the workspace"
        )
        raise typer.Exit(1)
    console.print(f"[green]All {len(result.results)} package(s) build on their own[/green]")
