"""Change detection against a real git repository."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import git, requires_git
from typer.testing import CliRunner

from monoship.cli.app import app
from monoship.errors import GitError
from monoship.filters import SelectionCriteria, select_packages
from monoship.filters.since import detect_changed_packages
from monoship.git import get_changed_files_since
from monoship.workspace import Workspace

pytestmark = [pytest.mark.integration, requires_git]


def touch_core(root: Path) -> None:
    module = root / "packages" / "core" / "src" / "core" / "__init__.py"
    module.write_text('"""The core package."""\n\nVALUE = 2\n')


def test_no_changes(git_workspace: Path) -> None:
    changes = detect_changed_packages(Workspace.discover(git_workspace), "base")
    assert changes.direct == frozenset()
    assert len(changes) == 0


def test_committed_change_cascades(git_workspace: Path) -> None:
    touch_core(git_workspace)
    git(git_workspace, "commit", "-q", "-am", "Change core")

    changes = detect_changed_packages(Workspace.discover(git_workspace), "base")
    assert changes.direct == {"core"}
    assert changes.cascaded == {"core", "core-cli"}
    assert changes.indirect == {"core-cli"}


def test_dev_cascade(git_workspace: Path) -> None:
    touch_core(git_workspace)
    changes = detect_changed_packages(
        Workspace.discover(git_workspace), "base", include_dev=True
    )
    assert changes.cascaded == {"core", "core-cli", "core-macros"}


def test_untracked_file(git_workspace: Path) -> None:
    new_file = git_workspace / "packages" / "core-macros" / "src" / "core_macros" / "extra.py"
    new_file.write_text("X = 1\n")

    files = get_changed_files_since(git_workspace, "base")
    assert new_file in files
    changes = detect_changed_packages(Workspace.discover(git_workspace), "base")
    assert changes.direct == {"core-macros"}


def test_file_outside_packages(git_workspace: Path) -> None:
    (git_workspace / "NOTES.md").write_text("notes\n")
    changes = detect_changed_packages(Workspace.discover(git_workspace), "base")
    assert changes.direct == frozenset()


def test_selection_with_changed_since(git_workspace: Path) -> None:
    touch_core(git_workspace)
    workspace = Workspace.discover(git_workspace)
    selected = select_packages(workspace, SelectionCriteria(changed_since="base"))
    assert [p.name for p in selected] == ["core", "core-cli"]


def test_unknown_ref(git_workspace: Path) -> None:
    with pytest.raises(GitError, match="not found"):
        get_changed_files_since(git_workspace, "no-such-tag")


def test_not_a_repository(workspace_dir: Path) -> None:
    with pytest.raises(GitError, match="not inside a git repository"):
        get_changed_files_since(workspace_dir, "base")


def test_changed_json(git_workspace: Path) -> None:
    touch_core(git_workspace)
    result = CliRunner().invoke(
        app, ["-q", "-m", str(git_workspace), "changed", "base", "--json"]
    )
    assert result.exit_code == 0, result.output

    data = json.loads(result.output)
    assert data == [
        {"name": "core", "path": "packages/core", "files_changed": 1, "is_dependent": False},
        {"name": "core-cli", "path": "packages/core-cli", "files_changed": 0, "is_dependent": True},
    ]
