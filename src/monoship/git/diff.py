"""Changed-file detection."""

from __future__ import annotations

import logging
from pathlib import Path

from monoship.git.repo import get_repo_root, resolve_ref, run_git_command

logger = logging.getLogger(__name__)


def get_changed_files_since(
    root: Path,
    since: str,
    *,
    include_untracked: bool = True,
) -> set[Path]:
    """Files that differ between the working tree and a reference.

    Committed, staged and unstaged changes are all covered because the diff
    is taken against the working tree.

    Args:
        root: Workspace root (anywhere inside the repository).
        since: Branch, tag or commit.
        include_untracked: Also report untracked, non-ignored files.

    Returns:
        Absolute paths of changed files.

    Raises:
        GitError: If root is not in a repository or the reference is unknown.
    """
    top = get_repo_root(root)
    sha = resolve_ref(top, since)
    logger.info("Calculating git diff since %s (%s)", since, sha[:10])

    files: set[Path] = set()
    # --no-renames reports both sides of a rename
    result = run_git_command(["diff", "--name-only", "--no-renames", sha], cwd=top)
    files.update(top / line for line in result.stdout.splitlines() if line)

    if include_untracked:
        result = run_git_command(["ls-files", "--others", "--exclude-standard"], cwd=top)
        files.update(top / line for line in result.stdout.splitlines() if line)

    logger.debug("Files changed since %s: %s", since, sorted(str(f) for f in files))
    return files
