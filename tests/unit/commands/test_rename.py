"""Tests for rename command."""

from __future__ import annotations

import io

import pytest
import typer
from rich.console import Console

from monoship.commands.rename import handle_rename_command, rename
from monoship.errors import ConfigurationError, PackageNotFoundError
from monoship.workspace import Workspace


class TestRename:
    """Tests for rename."""

    def test_updates_every_reference(self, workspace: Workspace) -> None:
        result = rename(workspace, "core", "core-base")

        assert result.old_name == "core"
        assert result.references == {"core-cli": 2, "core-macros": 2}

        ws = workspace.reload()
        assert "core" not in ws.packages
        assert [p.name for p in ws.graph.get_dependencies("core-cli")] == ["core-base"]
        assert [p.name for p in ws.graph.get_dependencies("core-macros", include_dev=True)] == [
            "core-base"
        ]
        assert ws.packages["core-cli"].local_sources == frozenset({"core-base"})

    def test_keeps_specifier(self, workspace: Workspace) -> None:
        rename(workspace, "core", "core-base")
        ws = workspace.reload()
        [req] = [r for r in ws.packages["core-cli"].requirements if r.name == "core-base"]
        assert req.specifier == "<2,>=1.0"

    def test_leaf_package(self, workspace: Workspace) -> None:
        result = rename(workspace, "Core_Macros", "macros")
        assert result.old_name == "core-macros"
        assert result.references == {}
        assert "macros" in workspace.reload().packages

    def test_unknown_package(self, workspace: Workspace) -> None:
        with pytest.raises(PackageNotFoundError):
            rename(workspace, "nope", "other")

    @pytest.mark.parametrize(
        ("new_name", "message"),
        [
            ("core_cli", "already a workspace member"),
            ("-bad-", "not a valid package name"),
            ("Core", "already named"),
        ],
    )
    def test_rejected_names(self, workspace: Workspace, new_name: str, message: str) -> None:
        with pytest.raises(ConfigurationError, match=message):
            rename(workspace, "core", new_name)
        assert "core" in workspace.reload().packages

    def test_dry_run_writes_nothing(self, workspace: Workspace) -> None:
        manifest = workspace.packages["core-cli"].manifest_path
        before = manifest.read_text()
        rename(workspace, "core", "core-base", dry_run=True)
        assert manifest.read_text() == before
        assert "core" in workspace.reload().packages


class TestHandleRenameCommand:
    """Tests for handle_rename_command."""

    def test_prints_references(self, workspace: Workspace) -> None:
        out = io.StringIO()
        handle_rename_command(
            workspace,
            "core",
            "core-base",
            console=Console(file=out, width=200),
            error_console=Console(file=io.StringIO()),
        )
        assert "Renamed core to core-base" in out.getvalue()
        assert "Updated 2 reference(s) in core-cli" in out.getvalue()

    def test_error_exits(self, workspace: Workspace) -> None:
        err = io.StringIO()
        with pytest.raises(typer.Exit):
            handle_rename_command(
                workspace,
                "nope",
                "other",
                console=Console(file=io.StringIO()),
                error_console=Console(file=err, width=200),
            )
        assert "'nope' not found" in err.getvalue()
