"""Add-owner command: grant an owner on every selected package."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import typer
from rich.console import Console

from monoship.commands.base import CommandContext, SyncCommand
from monoship.errors import MonoshipError, RegistryError
from monoship.uv.publish import OwnerOutcome, RegistryPublisher, UvPublisher
from monoship.workspace.package import Package
from monoship.workspace.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass
class AddOwnerResult:
    """Result of add-owner command."""

    added: list[str] = field(default_factory=list)
    already: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors


class AddOwnerCommand(SyncCommand[AddOwnerResult]):
    """Add an owner to packages; existing ownership counts as success."""

    def __init__(
        self,
        context: CommandContext,
        packages: list[Package],
        owner: str,
        *,
        token: str | None = None,
        publisher: RegistryPublisher | None = None,
    ) -> None:
        super().__init__(context)
        self.packages = packages
        self.owner = owner
        self.token = token
        self.publisher = publisher or UvPublisher(self.workspace.config.publish)

    def execute(self) -> AddOwnerResult:
        result = AddOwnerResult()
        for pkg in self.packages:
            if self.context.dry_run:
                logger.info("would add owner %s to %s", self.owner, pkg.name)
                continue
            try:
                outcome = self.publisher.add_owner(pkg, self.owner, self.token)
            except RegistryError as e:
                logger.error("%s", e.message)
                result.errors[pkg.name] = e.message
                continue
            if outcome == OwnerOutcome.ALREADY_OWNER:
                result.already.append(pkg.name)
            else:
                result.added.append(pkg.name)
        return result


def handle_add_owner_command(
    workspace: Workspace,
    packages: list[Package],
    owner: str,
    *,
    console: Console,
    error_console: Console,
    token: str | None = None,
    dry_run: bool = False,
) -> None:
    """Handle add-owner command."""
    from monoship.config import resolve_token

    try:
        token = resolve_token(workspace.root, workspace.config, token)
        context = CommandContext(workspace=workspace, dry_run=dry_run)
        result = AddOwnerCommand(context, packages, owner, token=token).execute()
    except MonoshipError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    for name in result.added:
        console.print(f"Added [bold]{owner}[/bold] to [cyan]{name}[/cyan]")
    for name in result.already:
        console.print(f"[dim]{owner} already owns {name}[/dim]")
    if not result.success:
        error_console.print(f"[red]Failed for {len(result.errors)} package(s)[/red]")
        raise typer.Exit(1)
