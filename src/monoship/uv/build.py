"""Verify-stage runners: compile check or full build of one package."""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from monoship.config.schema import ReleaseConfig
from monoship.execution.results import ExecutionResult
from monoship.execution.runner import run_in_package
from monoship.workspace.package import Package


class BuildMode(Enum):
    CHECK = "check"
    BUILD = "build"


class BuildRunner(Protocol):
    async def run(self, package: Package, mode: BuildMode) -> ExecutionResult: ...


class CommandBuildRunner:
    """Run the configured check or build command in the package directory."""

    def __init__(self, config: ReleaseConfig, env: dict[str, str] | None = None) -> None:
        self.config = config
        self.env = env or {}

    def command_for(self, mode: BuildMode) -> str:
        if mode == BuildMode.BUILD:
            return self.config.build_command
        return self.config.check_command

    async def run(self, package: Package, mode: BuildMode) -> ExecutionResult:
        return await run_in_package(
            package,
            self.command_for(mode),
            env=self.env,
            timeout=self.config.timeout,
        )
