"""Pre-release and publish-eligibility filtering."""

from __future__ import annotations

import logging

from monoship.workspace.package import Package

logger = logging.getLogger(__name__)


def has_disqualified_pre(package: Package, tags: tuple[str, ...]) -> bool:
    """Check whether the package version carries one of the given pre-release tags."""
    if not tags:
        return False
    try:
        version = package.parsed_version
    except ValueError:
        logger.warning("%s: cannot parse version %r", package.name, package.version)
        return False
    return version.matches_pre(tags)


def split_by_prerelease(
    packages: list[Package],
    tags: tuple[str, ...],
) -> tuple[list[Package], list[Package]]:
    """Partition packages into (kept, excluded-for-pre-release)."""
    kept: list[Package] = []
    excluded: list[Package] = []
    for pkg in packages:
        (excluded if has_disqualified_pre(pkg, tags) else kept).append(pkg)
    return kept, excluded


def filter_publishable(packages: list[Package], *, ignore_publish: bool = False) -> list[Package]:
    """Drop packages that opted out of publishing, unless ignore_publish."""
    if ignore_publish:
        return packages
    kept = []
    for pkg in packages:
        if pkg.publishable:
            kept.append(pkg)
        else:
            logger.debug("%s: not publishable, skipped", pkg.name)
    return kept
