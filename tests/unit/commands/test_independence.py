"""Tests for independence-check."""

from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import patch

import pytest
import typer
from rich.console import Console

from monoship.commands.independence import check_independence, handle_independence_command
from monoship.execution.results import ExecutionResult
from monoship.workspace import Package, Workspace


class FakeRunner:
    """Stand-in for run_in_package that fails for some packages."""

    def __init__(self, fail: set[str] = frozenset()) -> None:
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, package: Package, command: str, **kwargs) -> ExecutionResult:
        self.calls.append((package.name, command))
        if package.name in self.fail:
            return ExecutionResult.failure_result(
                package.name, 1, stderr="core was not found in the package registry"
            )
        return ExecutionResult.success_result(package.name)


@pytest.mark.asyncio
class TestCheckIndependence:
    """Tests for check_independence."""

    async def test_builds_without_sources(self, workspace: Workspace) -> None:
        runner = FakeRunner()
        with patch("monoship.commands.independence.run_in_package", runner):
            result = await check_independence(workspace, list(workspace.packages.values()))

        assert result.success
        assert [name for name, _ in runner.calls] == ["core", "core-cli", "core-macros"]
        command = runner.calls[0][1]
        assert command.startswith("uv build --no-sources --out-dir ")
        assert not Path(command.split("--out-dir ")[1].strip("'")).exists()

    async def test_keeps_going_after_failure(self, workspace: Workspace) -> None:
        runner = FakeRunner(fail={"core-cli"})
        with patch("monoship.commands.independence.run_in_package", runner):
            result = await check_independence(workspace, list(workspace.packages.values()))

        assert not result.success
        assert [r.package_name for r in result.failed] == ["core-cli"]
        assert len(result.results) == 3
        assert result.not_checked == []

    async def test_failfast(self, workspace: Workspace) -> None:
        runner = FakeRunner(fail={"core"})
        with patch("monoship.commands.independence.run_in_package", runner):
            result = await check_independence(
                workspace, list(workspace.packages.values()), failfast=True
            )

        assert [r.package_name for r in result.results] == ["core"]
        assert result.not_checked == ["core-cli", "core-macros"]

    async def test_configured_command(self, workspace: Workspace) -> None:
        workspace.config.release.independence_command = "make standalone OUT={out_dir}"
        runner = FakeRunner()
        with patch("monoship.commands.independence.run_in_package", runner):
            await check_independence(workspace, [workspace.packages["core"]])
        assert runner.calls[0][1].startswith("make standalone OUT=")


@pytest.mark.asyncio
class TestHandleIndependenceCommand:
    """Tests for handle_independence_command."""

    async def test_failure_exits(self, workspace: Workspace) -> None:
        out, err = io.StringIO(), io.StringIO()
        with (
            patch("monoship.commands.independence.run_in_package", FakeRunner(fail={"core"})),
            pytest.raises(typer.Exit) as exc_info,
        ):
            await handle_independence_command(
                workspace,
                list(workspace.packages.values()),
                console=Console(file=out, width=200),
                error_console=Console(file=err, width=200),
            )
        assert exc_info.value.exit_code == 1
        assert "not found in the package registry" in err.getvalue()
        assert "1 package(s) only build inside the workspace" in err.getvalue()
        assert "Built core-cli on its own" in out.getvalue()

    async def test_success(self, workspace: Workspace) -> None:
        out = io.StringIO()
        with patch("monoship.commands.independence.run_in_package", FakeRunner()):
            await handle_independence_command(
                workspace,
                [workspace.packages["core"]],
                console=Console(file=out, width=200),
                error_console=Console(file=io.StringIO()),
            )
        assert "All 1 package(s) build on their own" in out.getvalue()
