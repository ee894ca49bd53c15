"""monoship - release many interdependent Python packages from one workspace.

Selects the packages that need releasing, orders them so that dependencies
are published before their dependents, and drives each one through
pre-flight, verify, publish and post-publish stages:
- Workspace discovery and dependency graph
- Package selection by name, pattern, pre-release tag and git changes
- Dependency-ordered, dry-run capable publishing with uv
- Bulk version edits across the workspace
"""

from monoship.config import MonoshipConfig, load_config
from monoship.errors import (
    BuildError,
    ConfigurationError,
    CyclicDependencyError,
    EmptySelectionError,
    GitError,
    GraphError,
    ManifestError,
    MonoshipError,
    PackageNotFoundError,
    RegistryError,
    WorkspaceNotFoundError,
)
from monoship.filters import SelectionCriteria, select_packages
from monoship.pipeline import Outcome, PipelineRun, RunStatus, Stage
from monoship.workspace import DependencyGraph, Package, Workspace

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Core
    "Workspace",
    "Package",
    "DependencyGraph",
    "MonoshipConfig",
    "load_config",
    # Selection
    "SelectionCriteria",
    "select_packages",
    # Pipeline
    "PipelineRun",
    "Stage",
    "Outcome",
    "RunStatus",
    # Errors
    "MonoshipError",
    "ConfigurationError",
    "WorkspaceNotFoundError",
    "PackageNotFoundError",
    "GraphError",
    "CyclicDependencyError",
    "GitError",
    "ManifestError",
    "BuildError",
    "RegistryError",
    "EmptySelectionError",
]
