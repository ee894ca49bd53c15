"""Tests for the uv client and verify-stage build runner."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from monoship.config.schema import ReleaseConfig
from monoship.errors import MonoshipError
from monoship.execution.results import ExecutionResult
from monoship.uv.build import BuildMode, CommandBuildRunner
from monoship.uv.client import _redact, get_uv_executable
from monoship.workspace import Workspace


def test_uv_missing() -> None:
    with (
        patch("monoship.uv.client.shutil.which", return_value=None),
        pytest.raises(MonoshipError, match="uv is not installed"),
    ):
        get_uv_executable()


def test_token_redacted() -> None:
    assert _redact(["publish", "--token", "secret", "dist/x.whl"]) == [
        "publish",
        "--token",
        "***",
        "dist/x.whl",
    ]


def test_command_for_mode() -> None:
    runner = CommandBuildRunner(ReleaseConfig(check_command="make check", build_command="make"))
    assert runner.command_for(BuildMode.CHECK) == "make check"
    assert runner.command_for(BuildMode.BUILD) == "make"


@pytest.mark.asyncio
async def test_runs_in_package(workspace: Workspace) -> None:
    pkg = workspace.packages["core"]
    runner = CommandBuildRunner(ReleaseConfig(timeout=30), env={"CI": "1"})
    expected = ExecutionResult.success_result(pkg.name)

    with patch(
        "monoship.uv.build.run_in_package", new_callable=AsyncMock, return_value=expected
    ) as mock_run:
        result = await runner.run(pkg, BuildMode.BUILD)

    assert result is expected
    mock_run.assert_awaited_once_with(
        pkg, "uv build --out-dir dist", env={"CI": "1"}, timeout=30
    )
