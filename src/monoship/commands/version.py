"""Version command implementation: bulk version and manifest field edits."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import typer
from packaging.requirements import Requirement
from packaging.utils import canonicalize_name

from monoship.commands.base import CommandContext, SyncCommand
from monoship.config.schema import VersioningConfig
from monoship.errors import ConfigurationError, ManifestError, MonoshipError
from monoship.versioning import BumpType, Version, satisfies
from monoship.workspace.manifest import rewrite_requirements, set_version, write_field
from monoship.workspace.package import DependencyKind, Package

if TYPE_CHECKING:
    from rich.console import Console

    from monoship.filters import SelectionCriteria
    from monoship.workspace.workspace import Workspace

logger = logging.getLogger(__name__)


class VersionAction(Enum):
    """Version mutations applied uniformly to the selected packages."""

    SET = "set"
    SET_PRE = "set-pre"
    SET_BUILD = "set-build"
    BUMP_PRE = "bump-pre"
    BUMP_PATCH = "bump-patch"
    BUMP_MINOR = "bump-minor"
    BUMP_MAJOR = "bump-major"
    BUMP_BREAKING = "bump-breaking"
    BUMP_TO_DEV = "bump-to-dev"
    RELEASE = "release"


NEEDS_VALUE = frozenset({VersionAction.SET, VersionAction.SET_PRE, VersionAction.SET_BUILD})

_BUMPS = {
    VersionAction.BUMP_PATCH: BumpType.PATCH,
    VersionAction.BUMP_MINOR: BumpType.MINOR,
    VersionAction.BUMP_MAJOR: BumpType.MAJOR,
    VersionAction.BUMP_BREAKING: BumpType.BREAKING,
}


def compute_version(
    current: Version,
    action: VersionAction,
    value: str | None = None,
    config: VersioningConfig | None = None,
) -> Version:
    """Apply a version action to one version.

    The result must also read as a PEP 440 version, since that is what
    the registry stores.

    Raises:
        ValueError: If value is missing, not a valid version/identifier, or
            the result has no PEP 440 reading.
    """
    config = config or VersioningConfig()
    if action in NEEDS_VALUE and not value:
        raise ValueError(f"{action.value} needs a value")

    new = _apply(current, action, value, config)
    new.to_pep440()
    return new


def _apply(
    current: Version, action: VersionAction, value: str | None, config: VersioningConfig
) -> Version:
    if action == VersionAction.SET:
        return Version.parse(value or "")
    if action == VersionAction.SET_PRE:
        return Version.parse(str(current.with_pre(value)))
    if action == VersionAction.SET_BUILD:
        return Version.parse(str(current.with_build(value)))
    if action == VersionAction.BUMP_PRE:
        return current.bump_pre(config.initial_pre)
    if action == VersionAction.BUMP_TO_DEV:
        return current.bump(BumpType.BREAKING).with_pre(value or config.dev_pre_tag)
    if action == VersionAction.RELEASE:
        return current.release()
    return current.bump(_BUMPS[action])


@dataclass
class VersionChange:
    """A version edit on one package."""

    name: str
    old_version: str
    new_version: str | None = None
    error: str | None = None

    @property
    def changed(self) -> bool:
        return self.new_version is not None and self.new_version != self.old_version


@dataclass
class VersionResult:
    """Result of version command."""

    changes: list[VersionChange] = field(default_factory=list)
    dependents_updated: dict[str, int] = field(default_factory=dict)

    @property
    def errors(self) -> list[VersionChange]:
        return [c for c in self.changes if c.error]

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass
class VersionOptions:
    """Options for version command.

    Attributes:
        action: The mutation to apply.
        value: Argument for set, set-pre, set-build (and bump-to-dev's tag).
        force_update: Rewrite dependents' requirements even if they still match.
        dry_run: Compute new versions without writing.
    """

    action: VersionAction
    value: str | None = None
    force_update: bool = False
    dry_run: bool = False


def _updated_requirement(req: Requirement, version: Version, operator: str) -> str:
    # local version labels are not allowed in specifiers
    pinned = version.with_build(None).to_pep440()
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    text = f"{req.name}{extras}{operator}{pinned}"
    if req.marker is not None:
        text += f"; {req.marker}"
    return text


class VersionCommand(SyncCommand[VersionResult]):
    """Change the version of every selected package.

    Each package is written independently; a failure on one is recorded and
    the others are still written. Afterwards, requirements on the changed
    packages held by any workspace member are updated when they no longer
    admit the new version.
    """

    def __init__(
        self,
        context: CommandContext,
        packages: list[Package],
        options: VersionOptions,
    ) -> None:
        super().__init__(context)
        self.packages = packages
        self.options = options

    @property
    def is_dry_run(self) -> bool:
        return self.options.dry_run or self.context.dry_run

    def execute(self) -> VersionResult:
        result = VersionResult()
        config = self.workspace.config.versioning
        updates: dict[str, Version] = {}

        for pkg in self.packages:
            change = VersionChange(name=pkg.name, old_version=pkg.version)
            result.changes.append(change)
            try:
                new = compute_version(
                    pkg.parsed_version, self.options.action, self.options.value, config
                )
                change.new_version = str(new)
                if not self.is_dry_run:
                    set_version(pkg.manifest_path, str(new))
            except (ValueError, ManifestError) as e:
                change.error = getattr(e, "message", str(e))
                logger.error("%s: %s", pkg.name, change.error)
                continue
            updates[pkg.name] = new
            logger.info("%s: %s -> %s", pkg.name, pkg.version, new)

        if updates and not self.is_dry_run:
            result.dependents_updated = self._update_dependents(
                updates, config.dependency_operator
            )
        return result

    def _update_dependents(self, updates: dict[str, Version], operator: str) -> dict[str, int]:
        force = self.options.force_update

        def rewrite(req: Requirement, kind: DependencyKind) -> str | None:
            new = updates.get(canonicalize_name(req.name))
            if new is None:
                return None
            spec = str(req.specifier)
            if not spec and kind == DependencyKind.DEV:
                return None
            if spec and not force and satisfies(new, spec):
                return None
            try:
                return _updated_requirement(req, new, operator)
            except ValueError:
                logger.warning("Cannot express %s as a requirement on %s", new, req.name)
                return None

        touched: dict[str, int] = {}
        for member in self.workspace.packages.values():
            try:
                count = rewrite_requirements(member.manifest_path, rewrite)
            except ManifestError as e:
                logger.error("%s: could not update requirements: %s", member.name, e.message)
                continue
            if count:
                touched[member.name] = count
                logger.info("%s: updated %d requirement(s)", member.name, count)
        return touched


@dataclass
class SetFieldResult:
    """Result of set command."""

    written: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors


class SetFieldCommand(SyncCommand[SetFieldResult]):
    """Set one manifest field on every selected package."""

    def __init__(
        self,
        context: CommandContext,
        packages: list[Package],
        key: str,
        value: Any,
        *,
        root_key: str = "project",
    ) -> None:
        super().__init__(context)
        self.packages = packages
        self.key = key
        self.value = value
        self.root_key = root_key

    def validate(self) -> list[str]:
        if self.root_key == "project" and self.key == "name":
            return ["Changing project.name is not supported"]
        if not self.key:
            return ["A field name is required"]
        return []

    def execute(self) -> SetFieldResult:
        errors = self.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))

        result = SetFieldResult()
        for pkg in self.packages:
            if self.context.dry_run:
                logger.info("would set %s.%s in %s", self.root_key, self.key, pkg.name)
                continue
            try:
                write_field(pkg.manifest_path, self.key, self.value, root_key=self.root_key)
            except ManifestError as e:
                result.errors[pkg.name] = e.message
                logger.error("%s: %s", pkg.name, e.message)
                continue
            result.written.append(pkg.name)
        return result


def version(
    workspace: Workspace,
    packages: list[Package],
    action: VersionAction,
    *,
    value: str | None = None,
    force_update: bool = False,
    dry_run: bool = False,
) -> VersionResult:
    """Convenience function to change package versions."""
    context = CommandContext(workspace=workspace, dry_run=dry_run)
    options = VersionOptions(
        action=action, value=value, force_update=force_update, dry_run=dry_run
    )
    return VersionCommand(context, packages, options).execute()


def handle_version_command(
    workspace: Workspace,
    criteria: SelectionCriteria,
    action: VersionAction,
    *,
    console: Console,
    error_console: Console,
    value: str | None = None,
    force_update: bool = False,
    dry_run: bool = False,
    empty_package_is_failure: bool = False,
) -> None:
    """Handle the version subcommands from the CLI."""
    from rich.table import Table

    from monoship.commands.plan import ensure_not_empty
    from monoship.filters import select_packages

    try:
        packages = select_packages(workspace, criteria)
        ensure_not_empty(packages, empty_package_is_failure)
    except MonoshipError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    if not packages:
        console.print("[yellow]No packages selected[/yellow]")
        return

    result = version(
        workspace,
        packages,
        action,
        value=value,
        force_update=force_update,
        dry_run=dry_run,
    )

    table = Table()
    table.add_column("Package", style="cyan")
    table.add_column("Current", style="dim")
    table.add_column("Next", style="green")
    for change in result.changes:
        table.add_row(
            change.name,
            change.old_version,
            change.new_version or f"[red]{change.error}[/red]",
        )
    console.print(table)

    for name, count in result.dependents_updated.items():
        console.print(f"Updated {count} requirement(s) in [cyan]{name}[/cyan]")

    if not result.success:
        error_console.print(f"[red]{len(result.errors)} package(s) failed[/red]")
        raise typer.Exit(1)


def handle_set_command(
    workspace: Workspace,
    criteria: SelectionCriteria,
    key: str,
    value: str,
    *,
    console: Console,
    error_console: Console,
    root_key: str = "project",
    dry_run: bool = False,
    empty_package_is_failure: bool = False,
) -> None:
    """Handle the set command from the CLI."""
    from monoship.commands.plan import ensure_not_empty
    from monoship.filters import select_packages
    from monoship.workspace.manifest import coerce_value

    try:
        packages = select_packages(workspace, criteria)
        ensure_not_empty(packages, empty_package_is_failure)
        context = CommandContext(workspace=workspace, dry_run=dry_run)
        result = SetFieldCommand(
            context, packages, key, coerce_value(value), root_key=root_key
        ).execute()
    except MonoshipError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    for name in result.written:
        console.print(f"Set {root_key}.{key} in [cyan]{name}[/cyan]")
    for name, message in result.errors.items():
        error_console.print(f"[red]{name}:[/red] {message}")
    if not result.success:
        raise typer.Exit(1)
