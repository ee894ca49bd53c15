"""Tests for workspace discovery."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import write_package

from monoship.errors import GraphError, PackageNotFoundError, WorkspaceNotFoundError
from monoship.workspace import Workspace


def test_discover(workspace: Workspace, workspace_dir: Path) -> None:
    assert workspace.root == workspace_dir
    assert list(workspace.packages) == ["core", "core-cli", "core-macros"]
    assert workspace.config.name == "test-workspace"


def test_local_edges(workspace: Workspace) -> None:
    assert workspace.packages["core-cli"].dependencies == {"core"}
    assert workspace.packages["core-macros"].dependencies == frozenset()
    assert workspace.packages["core-macros"].dev_dependencies == {"core"}
    assert workspace.packages["core"].dependencies == frozenset()


def test_get_package_any_spelling(workspace: Workspace) -> None:
    assert workspace.get_package("Core_CLI").name == "core-cli"
    with pytest.raises(PackageNotFoundError):
        workspace.get_package("missing")


def test_owner_of(workspace: Workspace, workspace_dir: Path) -> None:
    core_file = workspace_dir / "packages" / "core" / "src" / "core" / "__init__.py"
    assert workspace.owner_of(core_file).name == "core"
    assert workspace.owner_of(Path("packages/core-cli/README.md")).name == "core-cli"
    assert workspace.owner_of(workspace_dir / "monoship.yaml") is None


def test_owner_of_prefers_nested_package(workspace_dir: Path) -> None:
    nested_root = workspace_dir / "packages" / "core"
    (workspace_dir / "monoship.yaml").write_text(
        "name: ws\npackages:\n  - packages/*\n  - packages/core/plugins/packages/*\n"
    )
    plugin_dir = nested_root / "plugins" / "packages" / "extra"
    write_package(nested_root / "plugins", "extra", "0.1.0")
    ws = Workspace.discover(workspace_dir)
    assert ws.owner_of(plugin_dir / "README.md").name == "extra"


def test_affected_packages(workspace: Workspace) -> None:
    affected = workspace.get_affected_packages([workspace.packages["core"]])
    assert [p.name for p in affected] == ["core", "core-cli"]


def test_ignore_patterns(workspace_dir: Path) -> None:
    (workspace_dir / "monoship.yaml").write_text(
        "name: ws\npackages: [packages/*]\nignore: [packages/core-macros]\n"
    )
    assert list(Workspace.discover(workspace_dir).packages) == ["core", "core-cli"]


def test_workspace_source_must_be_member(workspace_dir: Path) -> None:
    write_package(workspace_dir, "broken", "1.0.0", dependencies=["ghost"], sources=["ghost"])
    with pytest.raises(GraphError, match="ghost"):
        Workspace.discover(workspace_dir)


def test_not_a_workspace(temp_dir: Path) -> None:
    with pytest.raises(WorkspaceNotFoundError):
        Workspace.discover(temp_dir)


def test_reload_sees_edits(workspace: Workspace) -> None:
    manifest = workspace.packages["core"].manifest_path
    manifest.write_text(manifest.read_text().replace('version = "1.0.0"', 'version = "1.1.0"'))
    assert workspace.reload().packages["core"].version == "1.1.0"
