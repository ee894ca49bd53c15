"""Git-based change detection (--changed-since)."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from monoship.git import get_changed_files_since
from monoship.workspace.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeSet:
    """Packages touched since a git reference.

    Attributes:
        since: The reference that was compared against.
        direct: Packages owning at least one changed file.
        cascaded: direct plus every package depending on one of them.
        file_counts: Changed files per directly changed package.
        files_changed: Every changed file, inside a package or not.
    """

    since: str
    direct: frozenset[str] = field(default_factory=frozenset)
    cascaded: frozenset[str] = field(default_factory=frozenset)
    file_counts: Mapping[str, int] = field(default_factory=dict, compare=False)
    files_changed: int = field(default=0, compare=False)

    @property
    def indirect(self) -> frozenset[str]:
        return self.cascaded - self.direct

    def __contains__(self, name: object) -> bool:
        return name in self.cascaded

    def __len__(self) -> int:
        return len(self.cascaded)


def count_files_per_package(workspace: Workspace, files: set[Path]) -> Counter[str]:
    """Number of the given files each package owns (longest directory prefix wins)."""
    counts: Counter[str] = Counter()
    for path in files:
        owner = workspace.owner_of(path)
        if owner is None:
            logger.debug("%s is outside every package", path)
            continue
        counts[owner.name] += 1
    return counts


def map_files_to_packages(workspace: Workspace, files: set[Path]) -> set[str]:
    """Names of packages owning the given files."""
    return set(count_files_per_package(workspace, files))


def detect_changed_packages(
    workspace: Workspace,
    since: str,
    *,
    include_dev: bool = False,
) -> ChangeSet:
    """Find packages changed since a git reference, cascaded to their dependents.

    Args:
        workspace: Workspace instance.
        since: Git reference (branch, tag, commit).
        include_dev: Cascade along dev-dependency edges too.

    Returns:
        The change set.

    Raises:
        GitError: If the repository or the reference is unavailable.
    """
    files = get_changed_files_since(workspace.root, since)
    counts = count_files_per_package(workspace, files)
    direct = set(counts)
    cascaded = workspace.graph.cascade(direct, include_dev=include_dev)

    logger.info(
        "%d package(s) changed since %s, %d including dependents",
        len(direct),
        since,
        len(cascaded),
    )
    return ChangeSet(
        since=since,
        direct=frozenset(direct),
        cascaded=frozenset(cascaded),
        file_counts=dict(counts),
        files_changed=len(files),
    )
