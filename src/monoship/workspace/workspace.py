"""Workspace discovery and access."""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable
from pathlib import Path

from packaging.utils import canonicalize_name

from monoship.config import MonoshipConfig, find_workspace_root, load_config
from monoship.errors import GraphError
from monoship.workspace.graph import DependencyGraph
from monoship.workspace.manifest import MANIFEST_FILENAME, read_package
from monoship.workspace.package import Package

logger = logging.getLogger(__name__)


def discover_package_dirs(root: Path, patterns: list[str], ignore: list[str]) -> list[Path]:
    """Expand member globs into package directories.

    Args:
        root: Workspace root.
        patterns: Glob patterns relative to root.
        ignore: Glob patterns (relative paths) to leave out.

    Returns:
        Sorted, de-duplicated package directories holding a pyproject.toml.
    """
    found: set[Path] = set()
    for pattern in patterns:
        for candidate in root.glob(pattern):
            if not (candidate / MANIFEST_FILENAME).is_file():
                continue
            rel = candidate.relative_to(root).as_posix()
            if any(fnmatch.fnmatch(rel, p) or fnmatch.fnmatch(candidate.name, p) for p in ignore):
                logger.debug("Ignoring %s", rel)
                continue
            found.add(candidate.resolve())
    return sorted(found)


class Workspace:
    """All packages managed together, plus their dependency graph.

    Attributes:
        root: Workspace root directory.
        config: Loaded configuration.
        packages: Packages keyed by canonical name, sorted by name.
        graph: Dependency graph over the packages.
    """

    def __init__(self, root: Path, config: MonoshipConfig, packages: Iterable[Package]) -> None:
        self.root = root.resolve()
        self.config = config

        raw = list(packages)
        names = [p.name for p in raw]
        resolved: list[Package] = []
        for pkg in raw:
            unknown = sorted(pkg.local_sources - set(names))
            if unknown:
                raise GraphError(
                    f"{pkg.name} declares workspace dependencies that are not members: "
                    f"{', '.join(unknown)}"
                )
            resolved.append(pkg.resolve(names))

        self.graph = DependencyGraph(resolved)
        self.packages: dict[str, Package] = {
            p.name: p for p in sorted(self.graph.packages, key=lambda p: p.name)
        }

    @classmethod
    def discover(cls, path: Path | None = None) -> Workspace:
        """Find the workspace containing path and load it.

        Raises:
            WorkspaceNotFoundError: If there is no workspace root.
            ConfigurationError: If the configuration is invalid.
            ManifestError: If a member manifest cannot be read.
            GraphError: On duplicate names or unresolvable local dependencies.
        """
        root = find_workspace_root(path)
        config = load_config(root)
        dirs = discover_package_dirs(root, config.packages, config.ignore)
        logger.debug("Found %d packages in %s", len(dirs), root)
        return cls(root, config, (read_package(d) for d in dirs))

    def reload(self) -> Workspace:
        """Re-read every manifest (after they were edited)."""
        return type(self).discover(self.root)

    def get_package(self, name: str) -> Package:
        """Get a package by name (any spelling PEP 503 normalizes to it).

        Raises:
            PackageNotFoundError: If unknown.
        """
        return self.graph.get(canonicalize_name(name))

    def owner_of(self, path: Path) -> Package | None:
        """Package whose directory is the longest prefix of path."""
        target = path if path.is_absolute() else self.root / path
        best: Package | None = None
        for pkg in self.packages.values():
            if target == pkg.path or pkg.path in target.parents:
                if best is None or len(pkg.path.parts) > len(best.path.parts):
                    best = pkg
        return best

    def get_affected_packages(
        self, packages: Iterable[Package], *, include_dev: bool = False
    ) -> list[Package]:
        """Packages plus everything depending on them, sorted by name."""
        names = self.graph.cascade((p.name for p in packages), include_dev=include_dev)
        return [self.packages[n] for n in sorted(names)]
