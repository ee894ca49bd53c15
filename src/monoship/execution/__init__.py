"""Command execution."""

from monoship.execution.results import ExecutionResult, ExecutionStatus
from monoship.execution.runner import run_command, run_in_package

__all__ = ["ExecutionResult", "ExecutionStatus", "run_command", "run_in_package"]
