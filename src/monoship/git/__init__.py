"""Git integration."""

from monoship.git.diff import get_changed_files_since
from monoship.git.repo import (
    get_repo_root,
    resolve_ref,
    run_git_command,
)

__all__ = [
    "get_changed_files_since",
    "get_repo_root",
    "resolve_ref",
    "run_git_command",
]
