"""Selection criteria value object."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from monoship.errors import ConfigurationError

DEFAULT_IGNORE_PRE: tuple[str, ...] = ("dev",)


def _compile(patterns: Iterable[str | re.Pattern[str]]) -> tuple[re.Pattern[str], ...]:
    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        if isinstance(pattern, re.Pattern):
            compiled.append(pattern)
            continue
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ConfigurationError(f"Invalid skip pattern {pattern!r}: {e}") from e
    return tuple(compiled)


@dataclass(frozen=True)
class SelectionCriteria:
    """Which packages a command operates on.

    Invalid combinations are rejected when the object is built, so the rest
    of the pipeline never has to re-check them.

    Attributes:
        packages: Explicit package names. Excludes skip, ignore_pre and
            changed_since.
        skip: Regular expressions; matching package names are left out.
        ignore_pre: Pre-release labels that disqualify a package. None means
            the workspace default.
        ignore_publish: Keep packages that opted out of publishing.
        include_dev_deps: Order (and cascade) along dev edges too.
        include_pre_deps: With changed_since, re-admit changed packages that
            were only excluded for their pre-release.
        cascade_dev_deps: Cascade changes along dev edges.
        changed_since: Git reference for change detection.
    """

    packages: tuple[str, ...] = ()
    skip: tuple[re.Pattern[str], ...] = field(default=())
    ignore_pre: tuple[str, ...] | None = None
    ignore_publish: bool = False
    include_dev_deps: bool = False
    include_pre_deps: bool = False
    cascade_dev_deps: bool = False
    changed_since: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "packages", tuple(self.packages))
        object.__setattr__(self, "skip", _compile(self.skip))
        if self.ignore_pre is not None:
            object.__setattr__(self, "ignore_pre", tuple(self.ignore_pre))

        if self.packages:
            if self.skip or self.ignore_pre:
                raise ConfigurationError(
                    "--packages is mutually exclusive with --skip and --ignore-pre-version"
                )
            if self.changed_since:
                raise ConfigurationError("--packages is mutually exclusive with --changed-since")

    @classmethod
    def from_options(
        cls,
        *,
        packages: Iterable[str] | None = None,
        skip: Iterable[str] | None = None,
        ignore_pre: Iterable[str] | None = None,
        ignore_publish: bool = False,
        include_dev_deps: bool = False,
        include_pre_deps: bool = False,
        cascade_dev_deps: bool = False,
        changed_since: str | None = None,
    ) -> SelectionCriteria:
        """Build criteria from optional CLI values (None means not given).

        An empty ignore_pre clears the workspace default instead of using it.
        """
        return cls(
            packages=tuple(packages or ()),
            skip=tuple(skip or ()),
            ignore_pre=tuple(ignore_pre) if ignore_pre is not None else None,
            ignore_publish=ignore_publish,
            include_dev_deps=include_dev_deps,
            include_pre_deps=include_pre_deps,
            cascade_dev_deps=cascade_dev_deps,
            changed_since=changed_since or None,
        )

    def disqualified_pre(self, default: Iterable[str] = DEFAULT_IGNORE_PRE) -> tuple[str, ...]:
        """Pre-release labels to exclude, falling back to the workspace default."""
        if self.ignore_pre is not None:
            return self.ignore_pre
        return tuple(default)
