"""Workspace model: packages and their dependency graph."""

from monoship.workspace.graph import DependencyGraph
from monoship.workspace.package import DependencyKind, Package, RequirementSpec
from monoship.workspace.workspace import Workspace

__all__ = ["DependencyGraph", "DependencyKind", "Package", "RequirementSpec", "Workspace"]
