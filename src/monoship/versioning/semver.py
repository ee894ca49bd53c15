"""Semantic version handling.

Versions are parsed as ``MAJOR.MINOR.PATCH[-PRE][+BUILD]``. The PEP 440
spellings that packages commonly use for pre-releases (``1.0.0a1``,
``1.0.0.dev2``, ``1.0.0rc1``) are accepted too; the pre-release part is
kept verbatim so it can be matched against ignore lists.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion
from packaging.version import Version as Pep440Version

SEMVER_PATTERN = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:[-.]?(?P<pre>[0-9A-Za-z][0-9A-Za-z.-]*?))?"
    r"(?:\+(?P<build>[0-9A-Za-z][0-9A-Za-z.-]*))?$"
)

_TRAILING_NUMBER = re.compile(r"^(?P<head>.*?)(?P<num>\d+)$")


class BumpType(Enum):
    """Kind of version increment."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    BREAKING = "breaking"


@dataclass(frozen=True, slots=True)
class Version:
    """A semantic version.

    Attributes:
        major: Major component.
        minor: Minor component.
        patch: Patch component.
        prerelease: Pre-release identifiers (without the leading separator).
        build: Build metadata (without the leading ``+``).
    """

    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    @classmethod
    def parse(cls, value: str) -> Version:
        """Parse a version string.

        Raises:
            ValueError: If the string is not a version.
        """
        match = SEMVER_PATTERN.match(value.strip())
        if not match:
            raise ValueError(f"Invalid version: {value!r}")
        return cls(
            major=int(match["major"]),
            minor=int(match["minor"]),
            patch=int(match["patch"]),
            prerelease=match["pre"] or None,
            build=match["build"] or None,
        )

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    @property
    def pre_label(self) -> str | None:
        """Leading alphabetic label of the pre-release (``dev.3`` -> ``dev``)."""
        if not self.prerelease:
            return None
        match = re.match(r"[A-Za-z]+", self.prerelease)
        return match.group(0).lower() if match else None

    def matches_pre(self, tags: list[str] | tuple[str, ...]) -> bool:
        """Check whether the pre-release is one of the given tags.

        A tag matches the whole pre-release string or its leading label.
        """
        if not self.prerelease:
            return False
        wanted = {t.lower() for t in tags}
        return self.prerelease.lower() in wanted or self.pre_label in wanted

    def bump(self, bump_type: BumpType) -> Version:
        """Return the next release version; pre-release and build are dropped."""
        if bump_type is BumpType.MAJOR:
            return Version(self.major + 1, 0, 0)
        if bump_type is BumpType.MINOR:
            return Version(self.major, self.minor + 1, 0)
        if bump_type is BumpType.PATCH:
            return Version(self.major, self.minor, self.patch + 1)
        # 0.0.x: every patch is breaking
        if self.major != 0:
            return Version(self.major + 1, 0, 0)
        if self.minor != 0:
            return Version(0, self.minor + 1, 0)
        return Version(0, 0, self.patch + 1)

    def bump_pre(self, initial: str = "dev.1") -> Version:
        """Increment the numeric suffix of the pre-release.

        ``1.0.0`` -> ``1.0.0-<initial>``, ``-dev.1`` -> ``-dev.2``,
        ``-rc2`` -> ``-rc3``, ``-beta`` -> ``-beta.1``.
        """
        if not self.prerelease:
            return replace(self, prerelease=initial)

        parts = self.prerelease.split(".")
        match = _TRAILING_NUMBER.match(parts[-1])
        if match:
            parts[-1] = f"{match['head']}{int(match['num']) + 1}"
        else:
            parts.append("1")
        return replace(self, prerelease=".".join(parts))

    def with_pre(self, prerelease: str | None) -> Version:
        return replace(self, prerelease=prerelease or None)

    def with_build(self, build: str | None) -> Version:
        return replace(self, build=build or None)

    def release(self) -> Version:
        """Drop pre-release and build metadata."""
        return Version(self.major, self.minor, self.patch)

    def to_pep440(self) -> Pep440Version:
        """Interpret the version the way pip and the registry will.

        Raises:
            ValueError: If the version has no PEP 440 reading.
        """
        try:
            return Pep440Version(str(self))
        except InvalidVersion as e:
            raise ValueError(f"{self} is not a valid PEP 440 version") from e


def satisfies(version: Version, specifier: str) -> bool:
    """Check whether a requirement specifier admits a version.

    Pre-releases are always admitted; an empty specifier admits everything.
    Unparseable input counts as not satisfied.
    """
    if not specifier.strip():
        return True
    try:
        return SpecifierSet(specifier).contains(version.to_pep440(), prereleases=True)
    except (InvalidSpecifier, ValueError):
        return False
