"""rename command: change a package's name and every reference to it."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

import typer
from packaging.requirements import Requirement
from packaging.utils import canonicalize_name
from rich.console import Console

from monoship.commands.base import CommandContext, SyncCommand
from monoship.errors import ConfigurationError, MonoshipError
from monoship.workspace.manifest import rename_source, rewrite_requirements, write_field
from monoship.workspace.package import DependencyKind
from monoship.workspace.workspace import Workspace

logger = logging.getLogger(__name__)

_VALID_NAME = re.compile(r"^([A-Z0-9]|[A-Z0-9][A-Z0-9._-]*[A-Z0-9])$", re.IGNORECASE)


@dataclass
class RenameResult:
    """Result of rename command.

    Attributes:
        old_name: Canonical name before the rename.
        new_name: Name written to project.name.
        references: Requirement and source entries rewritten, per member.
    """

    old_name: str
    new_name: str
    references: dict[str, int] = field(default_factory=dict)


class RenameCommand(SyncCommand[RenameResult]):
    """Rename a member and update requirements and uv sources across the workspace."""

    def __init__(self, context: CommandContext, old_name: str, new_name: str) -> None:
        super().__init__(context)
        self.old_name = old_name
        self.new_name = new_name

    def validate(self) -> list[str]:
        errors = []
        if not _VALID_NAME.match(self.new_name):
            errors.append(f"'{self.new_name}' is not a valid package name")
        new = canonicalize_name(self.new_name)
        if new == canonicalize_name(self.old_name):
            errors.append(f"{self.old_name} is already named {self.new_name}")
        elif new in self.workspace.packages:
            errors.append(f"{new} is already a workspace member")
        return errors

    def execute(self) -> RenameResult:
        """Execute the rename command.

        Raises:
            PackageNotFoundError: If old_name is not a member.
            ConfigurationError: If new_name is invalid or taken.
            ManifestError: If a manifest cannot be read or written.
        """
        package = self.workspace.get_package(self.old_name)
        errors = self.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))

        old = package.name
        result = RenameResult(old_name=old, new_name=self.new_name)
        if self.context.dry_run:
            logger.info("would rename %s to %s", old, self.new_name)
            return result

        def rewrite(req: Requirement, kind: DependencyKind) -> str | None:
            if canonicalize_name(req.name) != old:
                return None
            req.name = self.new_name
            return str(req)

        write_field(package.manifest_path, "name", self.new_name)
        logger.info("Renamed %s to %s", old, self.new_name)

        for member in self.workspace.packages.values():
            count = rewrite_requirements(member.manifest_path, rewrite)
            if rename_source(member.manifest_path, old, self.new_name):
                count += 1
            if count:
                result.references[member.name] = count
                logger.debug("%s: %d reference(s) to %s updated", member.name, count, old)
        return result


def rename(
    workspace: Workspace, old_name: str, new_name: str, *, dry_run: bool = False
) -> RenameResult:
    """Convenience function to rename a package."""
    context = CommandContext(workspace=workspace, dry_run=dry_run)
    return RenameCommand(context, old_name, new_name).execute()


def handle_rename_command(
    workspace: Workspace,
    old_name: str,
    new_name: str,
    *,
    console: Console,
    error_console: Console,
    dry_run: bool = False,
) -> None:
    """Handle rename command."""
    try:
        result = rename(workspace, old_name, new_name, dry_run=dry_run)
    except MonoshipError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    if dry_run:
        console.print(f"[yellow]Would rename {result.old_name} to {result.new_name}[/yellow]")
        return

    console.print(f"Renamed [cyan]{result.old_name}[/cyan] to [cyan]{result.new_name}[/cyan]")
    for name, count in result.references.items():
        console.print(f"Updated {count} reference(s) in [cyan]{name}[/cyan]")
