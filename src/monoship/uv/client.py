"""Thin wrapper around the uv executable."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path

from monoship.errors import MonoshipError

logger = logging.getLogger(__name__)


def get_uv_executable() -> str:
    """Locate uv on PATH.

    Raises:
        MonoshipError: If uv is not installed.
    """
    uv = shutil.which("uv")
    if uv is None:
        raise MonoshipError("uv is not installed (https://docs.astral.sh/uv/)")
    return uv


def run_uv(
    args: list[str],
    cwd: Path,
    *,
    env: dict[str, str] | None = None,
    check: bool = True,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a uv command synchronously.

    Args:
        args: Arguments (without 'uv').
        cwd: Working directory.
        env: Extra environment variables.
        check: Raise CalledProcessError on a non-zero exit code.
        timeout: Timeout in seconds.

    Returns:
        Completed process with captured text output.
    """
    cmd = [get_uv_executable(), *args]
    run_env = os.environ.copy()
    if env:
        run_env.update(env)

    logger.debug("Running uv %s in %s", " ".join(_redact(args)), cwd)
    return subprocess.run(
        cmd,
        cwd=cwd,
        capture_output=True,
        text=True,
        env=run_env,
        check=check,
        timeout=timeout,
    )


def _redact(args: list[str]) -> list[str]:
    redacted = list(args)
    for i, arg in enumerate(redacted[:-1]):
        if arg in ("--token", "--password"):
            redacted[i + 1] = "***"
    return redacted
