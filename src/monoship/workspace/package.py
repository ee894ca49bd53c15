"""Package model."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

from monoship.versioning import Version


class DependencyKind(Enum):
    """Which kind of edge a requirement creates."""

    BUILD = "build"
    DEV = "dev"


@dataclass(frozen=True, slots=True)
class RequirementSpec:
    """A requirement as declared in a manifest.

    Attributes:
        name: Canonical (PEP 503) name of the required distribution.
        specifier: Version specifier, possibly empty.
        kind: Build or dev requirement.
        raw: The requirement string as written.
    """

    name: str
    specifier: str
    kind: DependencyKind
    raw: str


@dataclass(frozen=True)
class Package:
    """A workspace member.

    Attributes:
        name: Canonical package name.
        version: Version string from project.version.
        path: Absolute path to the package directory.
        description: project.description, if any.
        publishable: False if the package opts out of publishing.
        requirements: Every requirement of the manifest.
        local_sources: Names declared as workspace/path sources.
        dependencies: Local build dependencies (set once resolved).
        dev_dependencies: Local dev dependencies (set once resolved).
    """

    name: str
    version: str
    path: Path
    description: str | None = None
    publishable: bool = True
    requirements: tuple[RequirementSpec, ...] = ()
    local_sources: frozenset[str] = frozenset()
    dependencies: frozenset[str] = field(default=frozenset())
    dev_dependencies: frozenset[str] = field(default=frozenset())

    @property
    def manifest_path(self) -> Path:
        return self.path / "pyproject.toml"

    @property
    def parsed_version(self) -> Version:
        """The version parsed as a semantic version.

        Raises:
            ValueError: If the version is not parseable.
        """
        return Version.parse(self.version)

    @property
    def prerelease(self) -> str | None:
        try:
            return self.parsed_version.prerelease
        except ValueError:
            return None

    @property
    def external_requirements(self) -> tuple[RequirementSpec, ...]:
        """Requirements that are not satisfied inside the workspace."""
        local = self.dependencies | self.dev_dependencies
        return tuple(r for r in self.requirements if r.name not in local)

    def resolve(self, workspace_names: Iterable[str]) -> Package:
        """Split requirements into local and external ones.

        Args:
            workspace_names: Canonical names of all workspace members.

        Returns:
            A copy with dependencies and dev_dependencies filled in.
        """
        names = set(workspace_names)
        build = {
            r.name
            for r in self.requirements
            if r.kind is DependencyKind.BUILD and r.name in names and r.name != self.name
        }
        dev = {
            r.name
            for r in self.requirements
            if r.kind is DependencyKind.DEV and r.name in names and r.name != self.name
        }
        return replace(self, dependencies=frozenset(build), dev_dependencies=frozenset(dev - build))

    def __str__(self) -> str:
        return f"{self.name} ({self.version})"
