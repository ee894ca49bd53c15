"""Filter chain composition."""

from __future__ import annotations

import logging
from collections.abc import Callable

from packaging.utils import canonicalize_name

from monoship.errors import PackageNotFoundError
from monoship.filters.criteria import SelectionCriteria
from monoship.filters.prerelease import filter_publishable, split_by_prerelease
from monoship.filters.since import ChangeSet, detect_changed_packages
from monoship.filters.skip import filter_by_skip
from monoship.workspace.package import Package
from monoship.workspace.workspace import Workspace

logger = logging.getLogger(__name__)

ChangeDetector = Callable[[Workspace, str], ChangeSet]


def _default_detector(cascade_dev: bool) -> ChangeDetector:
    def detect(workspace: Workspace, since: str) -> ChangeSet:
        return detect_changed_packages(workspace, since, include_dev=cascade_dev)

    return detect


def select_by_name(workspace: Workspace, names: tuple[str, ...]) -> list[Package]:
    """Resolve explicit package names.

    Raises:
        PackageNotFoundError: If a name is not a workspace member.
    """
    selected: dict[str, Package] = {}
    for raw in names:
        name = canonicalize_name(raw)
        if name not in workspace.packages:
            raise PackageNotFoundError(raw, workspace.packages)
        selected[name] = workspace.packages[name]
    return list(selected.values())


def select_packages(
    workspace: Workspace,
    criteria: SelectionCriteria,
    *,
    detector: ChangeDetector | None = None,
) -> list[Package]:
    """Narrow the workspace to the packages a command should operate on.

    Filters are applied in order:
    1. Explicit names (if given, only these, then publish-eligibility)
    2. Skip patterns
    3. Disqualified pre-release tags
    4. Publish-eligibility
    5. Change detection, re-admitting changed pre-releases with include_pre_deps

    Args:
        workspace: Workspace instance.
        criteria: Validated selection criteria.
        detector: Change detector override (defaults to git).

    Returns:
        Selected packages sorted by name. May be empty.

    Raises:
        PackageNotFoundError: If an explicit name is unknown.
        GitError: If change detection is requested and fails.
    """
    if criteria.packages:
        result = select_by_name(workspace, criteria.packages)
        result = filter_publishable(result, ignore_publish=criteria.ignore_publish)
        return sorted(result, key=lambda p: p.name)

    result = filter_by_skip(list(workspace.packages.values()), criteria.skip)

    tags = criteria.disqualified_pre(workspace.config.release.ignore_pre)
    result, pre_excluded = split_by_prerelease(result, tags)
    for pkg in pre_excluded:
        logger.debug("%s: pre-release %s is excluded", pkg.name, pkg.version)

    result = filter_publishable(result, ignore_publish=criteria.ignore_publish)

    if criteria.changed_since:
        detect = detector or _default_detector(criteria.cascade_dev_deps)
        changes = detect(workspace, criteria.changed_since)
        result = [p for p in result if p.name in changes]
        if criteria.include_pre_deps:
            readmit = filter_publishable(
                [p for p in pre_excluded if p.name in changes],
                ignore_publish=criteria.ignore_publish,
            )
            for pkg in readmit:
                logger.debug("%s: changed pre-release re-admitted", pkg.name)
            result.extend(readmit)

    if not result:
        logger.warning("No packages selected")
    return sorted(result, key=lambda p: p.name)
