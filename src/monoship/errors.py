"""Exception hierarchy for monoship.

Errors raised before a release run starts (configuration, graph, git) abort
the whole invocation. Errors raised while a package moves through the
pipeline (manifest, build, registry) are caught by the orchestrator and only
fail that package and its dependents.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class MonoshipError(Exception):
    """Base class for all monoship errors.

    Attributes:
        message: Human readable description of the error.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(MonoshipError):
    """Invalid configuration file or conflicting selection criteria."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class WorkspaceNotFoundError(MonoshipError):
    """No workspace root could be located."""

    def __init__(self, start: Path) -> None:
        super().__init__(
            f"No monoship workspace found in {start} or any parent directory "
            "(looked for monoship.yaml or a pyproject.toml with [tool.uv.workspace])"
        )
        self.start = start


class PackageNotFoundError(MonoshipError):
    """A package name does not exist in the workspace."""

    def __init__(self, name: str, available: Iterable[str] = ()) -> None:
        names = sorted(available)
        hint = f" (available: {', '.join(names)})" if names else ""
        super().__init__(f"Package '{name}' not found in workspace{hint}")
        self.name = name


class GraphError(MonoshipError):
    """Structural problem in the workspace package graph."""


class CyclicDependencyError(GraphError):
    """The dependency subgraph that must be ordered contains a cycle."""

    def __init__(self, packages: Iterable[str]) -> None:
        self.packages = sorted(packages)
        super().__init__(f"Dependency cycle detected involving: {', '.join(self.packages)}")


class GitError(MonoshipError):
    """A git command failed or the repository is unavailable."""

    def __init__(self, message: str, *, command: str | None = None) -> None:
        super().__init__(message)
        self.command = command

    def __str__(self) -> str:
        if self.command:
            return f"{self.message} (command: {self.command})"
        return self.message


class ManifestError(MonoshipError):
    """A package manifest could not be read, parsed or written."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class BuildError(MonoshipError):
    """Verification, check or build of a package failed."""

    def __init__(self, package: str, message: str) -> None:
        super().__init__(f"{package}: {message}")
        self.package = package


class RegistryError(MonoshipError):
    """Publishing a package or changing its owners failed."""

    def __init__(self, package: str, message: str) -> None:
        super().__init__(f"{package}: {message}")
        self.package = package


class EmptySelectionError(MonoshipError):
    """No package matched the selection and an empty selection is a failure."""

    def __init__(self) -> None:
        super().__init__("No packages matched the selection criteria")
