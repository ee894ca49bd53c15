"""Git repository access through the git command line."""

from __future__ import annotations

import subprocess
from pathlib import Path

from monoship.errors import GitError


def run_git_command(
    args: list[str],
    cwd: Path | None = None,
    *,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a git command synchronously.

    Args:
        args: Git command arguments (without 'git').
        cwd: Working directory.
        check: Raise on non-zero exit code.

    Returns:
        Completed process result.

    Raises:
        GitError: If git is missing, or the command fails and check is True.
    """
    cmd = ["git"] + args

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise GitError("Git is not installed") from e

    if check and result.returncode != 0:
        raise GitError(
            result.stderr.strip() or f"Command failed with exit code {result.returncode}",
            command=" ".join(cmd),
        )
    return result


def get_repo_root(path: Path) -> Path:
    """Get the top-level directory of the repository containing path.

    Raises:
        GitError: If not inside a git repository.
    """
    result = run_git_command(["rev-parse", "--show-toplevel"], cwd=path, check=False)
    if result.returncode != 0:
        raise GitError(
            f"{path} is not inside a git repository",
            command="git rev-parse --show-toplevel",
        )
    return Path(result.stdout.strip()).resolve()


def resolve_ref(root: Path, ref: str) -> str:
    """Resolve a branch, tag or commit to a commit SHA.

    Raises:
        GitError: If the reference does not name a commit.
    """
    result = run_git_command(
        ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
        cwd=root,
        check=False,
    )
    if result.returncode != 0 or not result.stdout.strip():
        raise GitError(
            f"Reference '{ref}' not found in git repository (is it fetched locally?)",
            command=f"git rev-parse --verify {ref}^{{commit}}",
        )
    return result.stdout.strip()
