"""Release command implementation.

Packages go through the pipeline one at a time, in plan order:

1. pre-flight: strip dev dependency tables (restored when the run ends)
2. verify: metadata check, optional README check, check or build command
3. publish: upload with uv, or only log it in a dry run
4. post-actions: add an owner

A package that fails before it is published blocks every package in the
plan that depends on it. Independent packages keep going.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path

import typer
from rich.console import Console

from monoship.commands.base import Command, CommandContext
from monoship.commands.plan import ReleasePlan, ensure_not_empty, plan_release, write_dot_graph
from monoship.config import resolve_token
from monoship.errors import BuildError, ConfigurationError, ManifestError, MonoshipError
from monoship.filters import SelectionCriteria
from monoship.pipeline import Outcome, PipelineRun, RunStatus, Stage
from monoship.readme import DocstringReadmeGenerator, ReadmeGenerator, check_readme
from monoship.uv.build import BuildMode, BuildRunner, CommandBuildRunner
from monoship.uv.publish import (
    OwnerOutcome,
    PublishOutcome,
    RegistryPublisher,
    UvPublisher,
    check_publishable,
)
from monoship.workspace.manifest import strip_dev_dependencies
from monoship.workspace.package import Package
from monoship.workspace.workspace import Workspace

logger = logging.getLogger(__name__)

# Failing any of these means the package never reached the registry.
BLOCKING_STAGES = frozenset({Stage.PREFLIGHT, Stage.VERIFY, Stage.PUBLISH})


@dataclass
class ReleaseOptions:
    """Options for release command.

    Attributes:
        dry_run: Run pre-flight and verify, only log publish and owner actions.
        no_check: Skip the verify stage.
        build: Verify with a full build instead of a compile check.
        check_readme: Fail verify when the README differs from the generated one.
        include_dev_deps: Keep dev dependency tables during the run.
        read_only: Never modify manifests (skips pre-flight).
        publish: Run the publish and post-action stages (False for `check`).
        token: Registry token.
        owner: Owner to add after publishing.
    """

    dry_run: bool = False
    no_check: bool = False
    build: bool = False
    check_readme: bool = False
    include_dev_deps: bool = False
    read_only: bool = False
    publish: bool = True
    token: str | None = None
    owner: str | None = None


@dataclass
class ReleaseServices:
    """Collaborators the orchestrator talks to."""

    builder: BuildRunner
    publisher: RegistryPublisher
    readme: ReadmeGenerator = field(default_factory=DocstringReadmeGenerator)
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    @classmethod
    def for_workspace(
        cls, workspace: Workspace, env: dict[str, str] | None = None
    ) -> ReleaseServices:
        config = workspace.config
        return cls(
            builder=CommandBuildRunner(config.release, {**config.env, **(env or {})}),
            publisher=UvPublisher(config.publish),
        )


class ReleaseCommand(Command[PipelineRun]):
    """Drive the planned packages through the release pipeline."""

    def __init__(
        self,
        context: CommandContext,
        plan: ReleasePlan,
        options: ReleaseOptions | None = None,
        services: ReleaseServices | None = None,
    ) -> None:
        super().__init__(context)
        self.plan = plan
        self.options = options or ReleaseOptions()
        self.services = services or ReleaseServices.for_workspace(self.workspace, context.env)
        self._originals: dict[Path, str] = {}
        self._uploads = 0

    @property
    def is_dry_run(self) -> bool:
        return self.options.dry_run or self.context.dry_run

    @property
    def _rate_limited(self) -> bool:
        return len(self.plan) > self.workspace.config.publish.rate_limit_threshold

    async def execute(self) -> PipelineRun:
        """Execute the release command."""
        run = PipelineRun.create(
            list(self.plan),
            list(self.workspace.packages.values()),
            dry_run=self.is_dry_run,
        )
        if self.plan.is_empty:
            run.status = RunStatus.COMPLETED
            return run

        logger.info("Releasing %s", ", ".join(str(p) for p in self.plan))
        blocked: dict[str, str] = {}
        current: str | None = None
        run.status = RunStatus.IN_PROGRESS

        try:
            for pkg in self.plan:
                if pkg.name in blocked:
                    reason = f"blocked by {blocked[pkg.name]}"
                    logger.warning("%s: skipped, %s", pkg.name, reason)
                    run.skip(pkg.name, reason)
                    continue

                current = pkg.name
                failed_stage = await self._process(pkg, run)
                current = None
                if failed_stage in BLOCKING_STAGES:
                    for dependent in self.workspace.graph.get_transitive_dependents(
                        pkg.name, include_dev=self.plan.include_dev
                    ):
                        blocked.setdefault(dependent.name, pkg.name)
            run.status = RunStatus.COMPLETED
        except (KeyboardInterrupt, asyncio.CancelledError):
            run.status = RunStatus.ABORTED
            if current is not None:
                run.interrupt(current)
            logger.error("Release interrupted, remaining packages were not attempted")
        finally:
            self._restore_manifests()

        return run

    async def _process(self, pkg: Package, run: PipelineRun) -> Stage | None:
        """Run every stage for one package, stopping at the first failure.

        Returns:
            The stage that failed, or None.
        """
        stages = [
            (Stage.PREFLIGHT, self._preflight),
            (Stage.VERIFY, self._verify),
        ]
        if self.options.publish:
            stages.extend([(Stage.PUBLISH, self._publish), (Stage.POST, self._post_actions)])

        for stage, action in stages:
            try:
                outcome, message = await action(pkg, run)
            except MonoshipError as e:
                logger.error("%s: %s failed: %s", pkg.name, stage.value, e.message)
                run.record(pkg.name, stage, Outcome.FAILED, e.message)
                return stage
            run.record(pkg.name, stage, outcome, message)

        run.finish(pkg.name)
        return None

    async def _preflight(self, pkg: Package, run: PipelineRun) -> tuple[Outcome, str]:
        if self.options.read_only:
            return Outcome.SKIPPED, "read-only"
        if self.options.include_dev_deps or self.workspace.config.release.include_dev_deps:
            return Outcome.SKIPPED, "dev dependencies kept"

        manifest = pkg.manifest_path
        try:
            original = manifest.read_text(encoding="utf-8")
        except OSError as e:
            raise ManifestError(f"Cannot read {manifest}: {e.strerror or e}", path=manifest) from e
        if strip_dev_dependencies(manifest):
            self._originals.setdefault(manifest, original)
            logger.debug("%s: dev dependencies deactivated", pkg.name)
        return Outcome.SUCCESS, ""

    async def _verify(self, pkg: Package, run: PipelineRun) -> tuple[Outcome, str]:
        if self.options.no_check:
            return Outcome.SKIPPED, "checks disabled"

        issues = check_publishable(pkg.path)
        if issues:
            raise BuildError(pkg.name, "; ".join(issues))

        if self.options.check_readme:
            check_readme(pkg, self.services.readme)

        mode = BuildMode.BUILD if self.options.build else BuildMode.CHECK
        logger.info("%s: running %s", pkg.name, mode.value)
        result = await self.services.builder.run(pkg, mode)
        if not result.success:
            detail = result.tail() or f"exit code {result.exit_code}"
            raise BuildError(pkg.name, f"{mode.value} failed: {detail}")
        return Outcome.SUCCESS, ""

    async def _publish(self, pkg: Package, run: PipelineRun) -> tuple[Outcome, str]:
        if self.is_dry_run:
            logger.info("would publish %s", pkg.name)
            return Outcome.SUCCESS, "dry run"

        if self._uploads and self._rate_limited:
            delay = self.workspace.config.publish.rate_limit_delay
            logger.info("Waiting %.0fs to stay under the registry rate limit", delay)
            await self.services.sleep(delay)

        self._uploads += 1
        outcome = self.services.publisher.publish(pkg, self.options.token)
        run.reports[pkg.name].published = True
        if outcome == PublishOutcome.ALREADY_PUBLISHED:
            logger.info("%s %s is already published", pkg.name, pkg.version)
            return Outcome.SUCCESS, "already published"
        logger.info("Published %s", pkg)
        return Outcome.SUCCESS, ""

    async def _post_actions(self, pkg: Package, run: PipelineRun) -> tuple[Outcome, str]:
        owner = self.options.owner
        if not owner:
            return Outcome.SKIPPED, ""
        if self.is_dry_run:
            logger.info("would add owner %s to %s", owner, pkg.name)
            return Outcome.SUCCESS, ""

        outcome = self.services.publisher.add_owner(pkg, owner, self.options.token)
        if outcome == OwnerOutcome.ALREADY_OWNER:
            logger.info("%s is already an owner of %s", owner, pkg.name)
        else:
            logger.info("Added %s as owner of %s", owner, pkg.name)
        return Outcome.SUCCESS, ""

    def _restore_manifests(self) -> None:
        for manifest, original in self._originals.items():
            try:
                manifest.write_text(original, encoding="utf-8")
            except OSError as e:
                logger.error("Could not restore %s: %s", manifest, e)
        if self._originals:
            logger.debug("Restored %d manifest(s)", len(self._originals))
        self._originals.clear()


def check_release_config(workspace: Workspace, options: ReleaseOptions) -> None:
    """Reject options the workspace configuration cannot carry out.

    Raises:
        ConfigurationError: If an owner is requested but no owner command is configured.
    """
    if not options.publish or options.dry_run or not options.owner:
        return
    if workspace.config.publish.owner_command is None:
        raise ConfigurationError(
            f"--owner {options.owner} needs publish.owner_command in monoship.yaml"
        )


async def release(
    workspace: Workspace,
    criteria: SelectionCriteria | None = None,
    *,
    options: ReleaseOptions | None = None,
    services: ReleaseServices | None = None,
    plan: ReleasePlan | None = None,
) -> PipelineRun:
    """Convenience function to plan and release packages.

    Raises:
        MonoshipError: Pre-run failures (configuration, selection, git, cycles).
    """
    options = options or ReleaseOptions()
    check_release_config(workspace, options)
    if plan is None:
        plan = plan_release(workspace, criteria or SelectionCriteria())
    context = CommandContext(workspace=workspace, dry_run=options.dry_run)
    cmd = ReleaseCommand(context, plan, options, services)
    return await cmd.execute()


async def handle_release_command(
    workspace: Workspace,
    criteria: SelectionCriteria,
    options: ReleaseOptions,
    *,
    console: Console,
    error_console: Console,
    empty_package_is_failure: bool = False,
    dot_graph: Path | None = None,
) -> None:
    """Handle the release and check commands from the CLI."""
    from monoship.cli.output.report import print_run_report

    try:
        check_release_config(workspace, options)
        plan = plan_release(workspace, criteria)
        ensure_not_empty(plan, empty_package_is_failure)
        if dot_graph is not None:
            write_dot_graph(workspace, plan, dot_graph)
        if options.publish and not options.dry_run:
            options.token = resolve_token(workspace.root, workspace.config, options.token)
    except MonoshipError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    if plan.is_empty:
        console.print("[yellow]No packages to release[/yellow]")
        return

    if options.dry_run:
        console.print("[yellow]Dry run - nothing will be uploaded[/yellow]")

    run = await release(workspace, options=options, plan=plan)
    print_run_report(run, console)

    if not run.success:
        raise typer.Exit(1)
