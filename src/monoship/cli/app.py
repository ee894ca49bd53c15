"""monoship CLI application."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from monoship.errors import MonoshipError
from monoship.filters import SelectionCriteria
from monoship.log import configure_logging
from monoship.workspace import Package, Workspace


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from monoship import __version__

        print(f"monoship {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="monoship",
    help="Release the packages of a Python monorepo in dependency order",
    no_args_is_help=True,
    add_completion=False,
)
version_app = typer.Typer(
    help="Change package versions across the workspace",
    no_args_is_help=True,
)
app.add_typer(version_app, name="version")

console = Console()
error_console = Console(stderr=True)


@dataclass
class State:
    """Global options shared by every command."""

    path: Path | None = None


@app.callback()
def _app_callback(
    ctx: typer.Context,
    manifest_path: Annotated[
        Path | None,
        typer.Option("--manifest-path", "-m", help="Workspace directory (default: cwd)"),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="More output (repeatable)"),
    ] = 0,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only show warnings and errors"),
    ] = False,
    version: Annotated[  # noqa: ARG001
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Release the packages of a Python monorepo in dependency order."""
    configure_logging(verbose, quiet=quiet)
    ctx.obj = State(path=manifest_path)


def parse_comma_list(values: list[str] | None) -> list[str] | None:
    """Flatten repeated and comma-separated option values."""
    if not values:
        return None
    return [item.strip() for value in values for item in value.split(",") if item.strip()]


def get_workspace(ctx: typer.Context) -> Workspace:
    """Load workspace from the --manifest-path directory or the current one."""
    state: State = ctx.obj or State()
    try:
        return Workspace.discover(state.path)
    except MonoshipError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e


def build_criteria(
    *,
    packages: list[str] | None,
    skip: list[str] | None,
    ignore_pre: list[str] | None,
    changed_since: str | None,
    ignore_publish: bool = False,
    include_dev_deps: bool = False,
    include_pre_deps: bool = False,
    cascade_dev_deps: bool = False,
    default_ignore_pre: bool = True,
) -> SelectionCriteria:
    """Validated criteria from command-line options.

    Without default_ignore_pre, pre-releases are only excluded when
    --ignore-pre-version is given.
    """
    pre = parse_comma_list(ignore_pre)
    if pre is None and not default_ignore_pre:
        pre = []
    try:
        return SelectionCriteria.from_options(
            packages=parse_comma_list(packages),
            skip=parse_comma_list(skip),
            ignore_pre=pre,
            changed_since=changed_since,
            ignore_publish=ignore_publish,
            include_dev_deps=include_dev_deps,
            include_pre_deps=include_pre_deps,
            cascade_dev_deps=cascade_dev_deps,
        )
    except MonoshipError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e


def select(
    ctx: typer.Context, criteria: SelectionCriteria, empty_is_failure: bool
) -> tuple[Workspace, list[Package]]:
    """Workspace plus the selected packages, for commands that need no ordering."""
    from monoship.commands.plan import ensure_not_empty
    from monoship.filters import select_packages

    workspace = get_workspace(ctx)
    try:
        packages = select_packages(workspace, criteria)
        ensure_not_empty(packages, empty_is_failure)
    except MonoshipError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e
    return workspace, packages


PackagesOpt = Annotated[
    list[str] | None,
    typer.Option(
        "--packages",
        "-p",
        help="Only these packages (comma-separated or repeated). "
        "Excludes --skip, --ignore-pre-version and --changed-since",
    ),
]
SkipOpt = Annotated[
    list[str] | None,
    typer.Option("--skip", "-s", help="Skip packages whose name matches this regex"),
]
IgnorePreOpt = Annotated[
    list[str] | None,
    typer.Option(
        "--ignore-pre-version",
        "-i",
        help=(
            "Skip packages whose pre-release tag is one of these; "
            "'' clears the configured default"
        ),
    ),
]
ChangedSinceOpt = Annotated[
    str | None,
    typer.Option("--changed-since", "-c", help="Only packages changed since this git ref"),
]
IgnorePublishOpt = Annotated[
    bool,
    typer.Option("--ignore-publish", help="Also select packages marked as not publishable"),
]
IncludePreDepsOpt = Annotated[
    bool,
    typer.Option(
        "--include-pre-deps",
        help="With --changed-since, keep changed packages excluded for their pre-release",
    ),
]
CascadeDevOpt = Annotated[
    bool,
    typer.Option("--cascade-dev-deps", help="Changes cascade along dev dependencies too"),
]
IncludeDevOpt = Annotated[
    bool,
    typer.Option(
        "--include-dev-deps",
        help="Keep dev dependencies in manifests and respect them when ordering",
    ),
]
EmptyIsFailureOpt = Annotated[
    bool,
    typer.Option("--empty-package-is-failure", help="Fail if no package matches"),
]
DotGraphOpt = Annotated[
    Path | None,
    typer.Option("--dot-graph", help="Write the dependency graph in dot format to this file"),
]
ForceUpdateOpt = Annotated[
    bool,
    typer.Option(
        "--force-update",
        help="Rewrite dependents' requirements even if they still match",
    ),
]
DryRunOpt = Annotated[
    bool,
    typer.Option("--dry-run", help="Show what would happen without changing anything"),
]


@app.command("plan")
def plan_cmd(
    ctx: typer.Context,
    packages: PackagesOpt = None,
    skip: SkipOpt = None,
    ignore_pre: IgnorePreOpt = None,
    changed_since: ChangedSinceOpt = None,
    ignore_publish: IgnorePublishOpt = False,
    include_pre_deps: IncludePreDepsOpt = False,
    cascade_dev_deps: CascadeDevOpt = False,
    include_dev_deps: IncludeDevOpt = False,
    empty_package_is_failure: EmptyIsFailureOpt = False,
    dot_graph: DotGraphOpt = None,
) -> None:
    """Show which packages would be released, in order."""
    from monoship.commands.plan import handle_plan_command

    criteria = build_criteria(
        packages=packages,
        skip=skip,
        ignore_pre=ignore_pre,
        changed_since=changed_since,
        ignore_publish=ignore_publish,
        include_dev_deps=include_dev_deps,
        include_pre_deps=include_pre_deps,
        cascade_dev_deps=cascade_dev_deps,
    )
    handle_plan_command(
        get_workspace(ctx),
        criteria,
        console=console,
        error_console=error_console,
        empty_package_is_failure=empty_package_is_failure,
        dot_graph=dot_graph,
    )


app.command("to-release", hidden=True)(plan_cmd)


@app.command("check")
def check_cmd(
    ctx: typer.Context,
    packages: PackagesOpt = None,
    skip: SkipOpt = None,
    ignore_pre: IgnorePreOpt = None,
    changed_since: ChangedSinceOpt = None,
    ignore_publish: IgnorePublishOpt = False,
    include_pre_deps: IncludePreDepsOpt = False,
    cascade_dev_deps: CascadeDevOpt = False,
    include_dev_deps: IncludeDevOpt = False,
    build: Annotated[
        bool,
        typer.Option("--build", help="Build sdist and wheel instead of a compile check"),
    ] = False,
    check_readme: Annotated[
        bool,
        typer.Option("--check-readme", help="Fail if a README differs from the generated one"),
    ] = False,
    read_only: Annotated[
        bool,
        typer.Option("--read-only", help="Never modify manifests"),
    ] = False,
    empty_package_is_failure: EmptyIsFailureOpt = False,
    dot_graph: DotGraphOpt = None,
) -> None:
    """Run pre-flight and verify on the selected packages without publishing."""
    from monoship.commands.check import handle_check_command

    criteria = build_criteria(
        packages=packages,
        skip=skip,
        ignore_pre=ignore_pre,
        changed_since=changed_since,
        ignore_publish=ignore_publish,
        include_dev_deps=include_dev_deps,
        include_pre_deps=include_pre_deps,
        cascade_dev_deps=cascade_dev_deps,
    )
    workspace = get_workspace(ctx)
    asyncio.run(
        handle_check_command(
            workspace,
            criteria,
            console=console,
            error_console=error_console,
            build=build,
            check_readme=check_readme,
            include_dev_deps=include_dev_deps,
            read_only=read_only,
            empty_package_is_failure=empty_package_is_failure,
            dot_graph=dot_graph,
        )
    )


@app.command("release")
def release_cmd(
    ctx: typer.Context,
    packages: PackagesOpt = None,
    skip: SkipOpt = None,
    ignore_pre: IgnorePreOpt = None,
    changed_since: ChangedSinceOpt = None,
    ignore_publish: IgnorePublishOpt = False,
    include_pre_deps: IncludePreDepsOpt = False,
    cascade_dev_deps: CascadeDevOpt = False,
    include_dev_deps: IncludeDevOpt = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Check everything but do not upload"),
    ] = False,
    no_check: Annotated[
        bool,
        typer.Option("--no-check", help="Skip the verify stage"),
    ] = False,
    build: Annotated[
        bool,
        typer.Option("--build", help="Verify with a full build instead of a compile check"),
    ] = False,
    check_readme: Annotated[
        bool,
        typer.Option("--check-readme", help="Fail if a README differs from the generated one"),
    ] = False,
    read_only: Annotated[
        bool,
        typer.Option("--read-only", help="Never modify manifests"),
    ] = False,
    token: Annotated[
        str | None,
        typer.Option(
            "--token",
            envvar="MONOSHIP_TOKEN",
            show_envvar=False,
            help="Registry token",
        ),
    ] = None,
    owner: Annotated[
        str | None,
        typer.Option("--owner", help="Add this owner to every published package"),
    ] = None,
    empty_package_is_failure: EmptyIsFailureOpt = False,
    dot_graph: DotGraphOpt = None,
) -> None:
    """Verify and publish the selected packages in dependency order."""
    from monoship.commands.release import ReleaseOptions, handle_release_command

    criteria = build_criteria(
        packages=packages,
        skip=skip,
        ignore_pre=ignore_pre,
        changed_since=changed_since,
        ignore_publish=ignore_publish,
        include_dev_deps=include_dev_deps,
        include_pre_deps=include_pre_deps,
        cascade_dev_deps=cascade_dev_deps,
    )
    options = ReleaseOptions(
        dry_run=dry_run,
        no_check=no_check,
        build=build,
        check_readme=check_readme,
        include_dev_deps=include_dev_deps,
        read_only=read_only,
        token=token,
        owner=owner,
    )
    workspace = get_workspace(ctx)
    asyncio.run(
        handle_release_command(
            workspace,
            criteria,
            options,
            console=console,
            error_console=error_console,
            empty_package_is_failure=empty_package_is_failure,
            dot_graph=dot_graph,
        )
    )


@app.command("set")
def set_cmd(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Field to set")],
    value: Annotated[str, typer.Argument(help="Value (true/false and integers are typed)")],
    root_key: Annotated[
        str,
        typer.Option("--root-key", help="Table holding the field, e.g. tool.monoship"),
    ] = "project",
    packages: PackagesOpt = None,
    skip: SkipOpt = None,
    ignore_pre: IgnorePreOpt = None,
    changed_since: ChangedSinceOpt = None,
    ignore_publish: IgnorePublishOpt = False,
    dry_run: DryRunOpt = False,
    empty_package_is_failure: EmptyIsFailureOpt = False,
) -> None:
    """Set a manifest field on every selected package."""
    from monoship.commands.version import handle_set_command

    criteria = build_criteria(
        packages=packages,
        skip=skip,
        ignore_pre=ignore_pre,
        changed_since=changed_since,
        ignore_publish=ignore_publish,
        default_ignore_pre=False,
    )
    handle_set_command(
        get_workspace(ctx),
        criteria,
        key,
        value,
        console=console,
        error_console=error_console,
        root_key=root_key,
        dry_run=dry_run,
        empty_package_is_failure=empty_package_is_failure,
    )


def _run_version(
    ctx: typer.Context,
    action_name: str,
    *,
    value: str | None,
    packages: list[str] | None,
    skip: list[str] | None,
    ignore_pre: list[str] | None,
    changed_since: str | None,
    ignore_publish: bool,
    force_update: bool,
    dry_run: bool,
    empty_package_is_failure: bool,
) -> None:
    from monoship.commands.version import VersionAction, handle_version_command

    criteria = build_criteria(
        packages=packages,
        skip=skip,
        ignore_pre=ignore_pre,
        changed_since=changed_since,
        ignore_publish=ignore_publish,
        default_ignore_pre=False,
    )
    handle_version_command(
        get_workspace(ctx),
        criteria,
        VersionAction(action_name),
        console=console,
        error_console=error_console,
        value=value,
        force_update=force_update,
        dry_run=dry_run,
        empty_package_is_failure=empty_package_is_failure,
    )


def _register_version_command(action_name: str, help_text: str, value_help: str | None) -> None:
    if value_help is not None:

        def command(
            ctx: typer.Context,
            value: str,
            packages: PackagesOpt = None,
            skip: SkipOpt = None,
            ignore_pre: IgnorePreOpt = None,
            changed_since: ChangedSinceOpt = None,
            ignore_publish: IgnorePublishOpt = False,
            force_update: ForceUpdateOpt = False,
            dry_run: DryRunOpt = False,
            empty_package_is_failure: EmptyIsFailureOpt = False,
        ) -> None:
            _run_version(
                ctx,
                action_name,
                value=value,
                packages=packages,
                skip=skip,
                ignore_pre=ignore_pre,
                changed_since=changed_since,
                ignore_publish=ignore_publish,
                force_update=force_update,
                dry_run=dry_run,
                empty_package_is_failure=empty_package_is_failure,
            )

    else:

        def command(  # type: ignore[misc]
            ctx: typer.Context,
            packages: PackagesOpt = None,
            skip: SkipOpt = None,
            ignore_pre: IgnorePreOpt = None,
            changed_since: ChangedSinceOpt = None,
            ignore_publish: IgnorePublishOpt = False,
            force_update: ForceUpdateOpt = False,
            dry_run: DryRunOpt = False,
            empty_package_is_failure: EmptyIsFailureOpt = False,
        ) -> None:
            _run_version(
                ctx,
                action_name,
                value=None,
                packages=packages,
                skip=skip,
                ignore_pre=ignore_pre,
                changed_since=changed_since,
                ignore_publish=ignore_publish,
                force_update=force_update,
                dry_run=dry_run,
                empty_package_is_failure=empty_package_is_failure,
            )

    if value_help is not None:
        # annotations are strings at runtime; value_help is only visible here
        command.__annotations__["value"] = Annotated[str, typer.Argument(help=value_help)]
    command.__doc__ = help_text
    version_app.command(action_name)(command)


for _action, _help, _value_help in (
    ("set", "Set the version to a fixed value.", "New version"),
    ("set-pre", "Set the pre-release part of the version.", "Pre-release, e.g. rc.1"),
    ("set-build", "Set the build metadata of the version.", "Build metadata"),
    ("bump-pre", "Increase the pre-release counter (start at dev.1 if absent).", None),
    ("bump-patch", "Bump the patch version and drop the pre-release.", None),
    ("bump-minor", "Bump the minor version and drop the pre-release.", None),
    ("bump-major", "Bump the major version and drop the pre-release.", None),
    ("bump-breaking", "Bump for a breaking change (minor for 0.x, patch for 0.0.x).", None),
    ("release", "Drop the pre-release and build metadata.", None),
):
    _register_version_command(_action, _help, _value_help)


@version_app.command("bump-to-dev")
def bump_to_dev_cmd(
    ctx: typer.Context,
    pre_tag: Annotated[
        str | None,
        typer.Option("--pre-tag", help="Pre-release label instead of the configured one"),
    ] = None,
    packages: PackagesOpt = None,
    skip: SkipOpt = None,
    ignore_pre: IgnorePreOpt = None,
    changed_since: ChangedSinceOpt = None,
    ignore_publish: IgnorePublishOpt = False,
    force_update: ForceUpdateOpt = False,
    dry_run: DryRunOpt = False,
    empty_package_is_failure: EmptyIsFailureOpt = False,
) -> None:
    """Bump for the next breaking release and add a dev pre-release tag."""
    _run_version(
        ctx,
        "bump-to-dev",
        value=pre_tag,
        packages=packages,
        skip=skip,
        ignore_pre=ignore_pre,
        changed_since=changed_since,
        ignore_publish=ignore_publish,
        force_update=force_update,
        dry_run=dry_run,
        empty_package_is_failure=empty_package_is_failure,
    )


@app.command("add-owner")
def add_owner_cmd(
    ctx: typer.Context,
    owner: Annotated[str, typer.Argument(help="User or team to add")],
    token: Annotated[
        str | None,
        typer.Option("--token", envvar="MONOSHIP_TOKEN", show_envvar=False, help="Registry token"),
    ] = None,
    packages: PackagesOpt = None,
    skip: SkipOpt = None,
    ignore_pre: IgnorePreOpt = None,
    changed_since: ChangedSinceOpt = None,
    ignore_publish: IgnorePublishOpt = False,
    dry_run: DryRunOpt = False,
    empty_package_is_failure: EmptyIsFailureOpt = False,
) -> None:
    """Add an owner to every selected package."""
    from monoship.commands.add_owner import handle_add_owner_command

    criteria = build_criteria(
        packages=packages,
        skip=skip,
        ignore_pre=ignore_pre,
        changed_since=changed_since,
        ignore_publish=ignore_publish,
    )
    workspace, selected = select(ctx, criteria, empty_package_is_failure)
    handle_add_owner_command(
        workspace,
        selected,
        owner,
        console=console,
        error_console=error_console,
        token=token,
        dry_run=dry_run,
    )


@app.command("de-dev-deps")
def de_dev_deps_cmd(
    ctx: typer.Context,
    packages: PackagesOpt = None,
    skip: SkipOpt = None,
    ignore_pre: IgnorePreOpt = None,
    changed_since: ChangedSinceOpt = None,
    ignore_publish: IgnorePublishOpt = False,
    empty_package_is_failure: EmptyIsFailureOpt = False,
) -> None:
    """Remove dev dependency tables from the selected manifests."""
    from monoship.commands.dedev import handle_dedev_command

    criteria = build_criteria(
        packages=packages,
        skip=skip,
        ignore_pre=ignore_pre,
        changed_since=changed_since,
        ignore_publish=ignore_publish,
    )
    workspace, selected = select(ctx, criteria, empty_package_is_failure)
    handle_dedev_command(workspace, selected, console=console, error_console=error_console)


@app.command("gen-readme")
def gen_readme_cmd(
    ctx: typer.Context,
    mode: Annotated[
        str,
        typer.Option("--readme-mode", help="if-missing, append or replace"),
    ] = "if-missing",
    packages: PackagesOpt = None,
    skip: SkipOpt = None,
    ignore_pre: IgnorePreOpt = None,
    changed_since: ChangedSinceOpt = None,
    ignore_publish: IgnorePublishOpt = False,
    empty_package_is_failure: EmptyIsFailureOpt = False,
) -> None:
    """Generate README files from each package's module docstring."""
    from monoship.commands.gen_readme import handle_gen_readme_command
    from monoship.readme import ReadmeMode

    try:
        readme_mode = ReadmeMode(mode)
    except ValueError:
        error_console.print(f"[red]Invalid readme mode:[/red] {mode}")
        raise typer.Exit(1) from None

    criteria = build_criteria(
        packages=packages,
        skip=skip,
        ignore_pre=ignore_pre,
        changed_since=changed_since,
        ignore_publish=ignore_publish,
    )
    workspace, selected = select(ctx, criteria, empty_package_is_failure)
    handle_gen_readme_command(
        workspace,
        selected,
        readme_mode,
        console=console,
        error_console=error_console,
    )


@app.command()
def changed(
    ctx: typer.Context,
    since: Annotated[str, typer.Argument(help="Git reference (branch, tag, commit)")],
    no_dependents: Annotated[
        bool,
        typer.Option("--no-dependents", help="Exclude dependent packages"),
    ] = False,
    cascade_dev_deps: CascadeDevOpt = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List packages changed since a git reference."""
    from monoship.commands.changed import handle_changed_command

    handle_changed_command(
        get_workspace(ctx),
        console=console,
        error_console=error_console,
        since=since,
        include_dependents=not no_dependents,
        include_dev=cascade_dev_deps,
        json_output=json_output,
    )


@app.command("rename")
def rename_cmd(
    ctx: typer.Context,
    old_name: Annotated[str, typer.Argument(help="Current package name")],
    new_name: Annotated[str, typer.Argument(help="New package name")],
    dry_run: DryRunOpt = False,
) -> None:
    """Rename a package and update every requirement and uv source naming it."""
    from monoship.commands.rename import handle_rename_command

    handle_rename_command(
        get_workspace(ctx),
        old_name,
        new_name,
        console=console,
        error_console=error_console,
        dry_run=dry_run,
    )


@app.command("independence-check")
def independence_check_cmd(
    ctx: typer.Context,
    failfast: Annotated[
        bool,
        typer.Option("--failfast", help="Stop at the first package that fails"),
    ] = False,
    packages: PackagesOpt = None,
    skip: SkipOpt = None,
    ignore_pre: IgnorePreOpt = None,
    changed_since: ChangedSinceOpt = None,
    ignore_publish: IgnorePublishOpt = False,
    empty_package_is_failure: EmptyIsFailureOpt = False,
) -> None:
    """Build each selected package on its own, ignoring workspace sources."""
    from monoship.commands.independence import handle_independence_command

    criteria = build_criteria(
        packages=packages,
        skip=skip,
        ignore_pre=ignore_pre,
        changed_since=changed_since,
        ignore_publish=ignore_publish,
    )
    workspace, selected = select(ctx, criteria, empty_package_is_failure)
    asyncio.run(
        handle_independence_command(
            workspace,
            selected,
            console=console,
            error_console=error_console,
            failfast=failfast,
        )
    )


def main() -> None:

    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
