"""Skip-pattern filtering."""

from __future__ import annotations

import re

from monoship.workspace.package import Package


def should_skip(package: Package, patterns: tuple[re.Pattern[str], ...]) -> bool:
    """Check if a package name matches any skip pattern.

    Patterns are searched anywhere in the name, against both the canonical
    and the underscore spelling.
    """
    if not patterns:
        return False

    underscored = package.name.replace("-", "_")
    return any(p.search(package.name) or p.search(underscored) for p in patterns)


def filter_by_skip(
    packages: list[Package],
    patterns: tuple[re.Pattern[str], ...],
) -> list[Package]:
    """Filter out packages matching skip patterns."""
    if not patterns:
        return packages

    return [p for p in packages if not should_skip(p, patterns)]
