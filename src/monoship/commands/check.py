"""Check command: pre-flight and verify only, nothing is published."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from monoship.commands.release import ReleaseOptions, handle_release_command, release
from monoship.filters import SelectionCriteria
from monoship.pipeline import PipelineRun
from monoship.workspace.workspace import Workspace


def check_options(
    *,
    build: bool = False,
    check_readme: bool = False,
    include_dev_deps: bool = False,
    read_only: bool = False,
) -> ReleaseOptions:
    """Release options that stop after the verify stage."""
    return ReleaseOptions(
        build=build,
        check_readme=check_readme,
        include_dev_deps=include_dev_deps,
        read_only=read_only,
        publish=False,
    )


async def check(
    workspace: Workspace,
    criteria: SelectionCriteria | None = None,
    *,
    build: bool = False,
    check_readme: bool = False,
    include_dev_deps: bool = False,
    read_only: bool = False,
) -> PipelineRun:
    """Convenience function to verify the selected packages in release order."""
    options = check_options(
        build=build,
        check_readme=check_readme,
        include_dev_deps=include_dev_deps,
        read_only=read_only,
    )
    return await release(workspace, criteria, options=options)


async def handle_check_command(
    workspace: Workspace,
    criteria: SelectionCriteria,
    *,
    console: Console,
    error_console: Console,
    build: bool = False,
    check_readme: bool = False,
    include_dev_deps: bool = False,
    read_only: bool = False,
    empty_package_is_failure: bool = False,
    dot_graph: Path | None = None,
) -> None:
    """Handle check command."""
    options = check_options(
        build=build,
        check_readme=check_readme,
        include_dev_deps=include_dev_deps,
        read_only=read_only,
    )
    await handle_release_command(
        workspace,
        criteria,
        options,
        console=console,
        error_console=error_console,
        empty_package_is_failure=empty_package_is_failure,
        dot_graph=dot_graph,
    )
