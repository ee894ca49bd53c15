"""Results of commands run inside packages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ExecutionStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class ExecutionResult:
    """Outcome of one command in one package."""

    package_name: str
    status: ExecutionStatus
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    command: str = ""

    @property
    def success(self) -> bool:
        return self.status == ExecutionStatus.SUCCESS

    @property
    def failed(self) -> bool:
        return self.status == ExecutionStatus.FAILURE

    def tail(self, lines: int = 20) -> str:
        """Last lines of combined output, for error messages."""
        output = (self.stderr or self.stdout).strip().splitlines()
        return "\n".join(output[-lines:])

    @classmethod
    def success_result(
        cls,
        package_name: str,
        *,
        stdout: str = "",
        stderr: str = "",
        duration_ms: int = 0,
        command: str = "",
    ) -> ExecutionResult:
        return cls(
            package_name=package_name,
            status=ExecutionStatus.SUCCESS,
            exit_code=0,
            stdout=stdout,
            stderr=stderr,
            duration_ms=duration_ms,
            command=command,
        )

    @classmethod
    def failure_result(
        cls,
        package_name: str,
        exit_code: int,
        *,
        stdout: str = "",
        stderr: str = "",
        duration_ms: int = 0,
        command: str = "",
    ) -> ExecutionResult:
        return cls(
            package_name=package_name,
            status=ExecutionStatus.FAILURE,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            duration_ms=duration_ms,
            command=command,
        )
