"""Tests for registry publishing through uv."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from monoship.config.schema import PublishConfig
from monoship.errors import RegistryError
from monoship.uv.publish import (
    OwnerOutcome,
    PublishOutcome,
    UvPublisher,
    check_publishable,
    find_distributions,
)
from monoship.workspace import Workspace


def completed(returncode: int = 0, stdout: str = "", stderr: str = ""):
    return subprocess.CompletedProcess(["uv"], returncode, stdout=stdout, stderr=stderr)


def make_dists(dist_dir: Path, name: str, version: str) -> list[Path]:
    dist_dir.mkdir(parents=True, exist_ok=True)
    module = name.replace("-", "_")
    files = [
        dist_dir / f"{module}-{version}-py3-none-any.whl",
        dist_dir / f"{module}-{version}.tar.gz",
    ]
    for f in files:
        f.write_bytes(b"")
    return files


class TestFindDistributions:
    """Tests for find_distributions."""

    def test_missing_dir(self, temp_dir: Path) -> None:
        assert find_distributions(temp_dir / "dist") == []

    def test_filters_by_version(self, temp_dir: Path) -> None:
        dist = temp_dir / "dist"
        current = make_dists(dist, "core", "1.0.0")
        make_dists(dist, "core", "0.9.0")
        (dist / "notes.txt").write_text("x")
        assert find_distributions(dist, "1.0.0") == sorted(current)
        assert len(find_distributions(dist)) == 4

    def test_prerelease_spelling(self, temp_dir: Path) -> None:
        dist = temp_dir / "dist"
        files = make_dists(dist, "core", "1.0.0rc1")
        assert find_distributions(dist, "1.0.0-rc.1") == sorted(files)


class TestCheckPublishable:
    """Tests for check_publishable."""

    def test_complete(self, workspace: Workspace) -> None:
        assert check_publishable(workspace.packages["core"].path) == []

    def test_missing_fields(self, temp_dir: Path) -> None:
        (temp_dir / "pyproject.toml").write_text('[project]\nname = "p"\nversion = "1.0.0"\n')
        issues = check_publishable(temp_dir)
        assert "Missing required field: project.description" in issues
        assert "Missing required field: project.license" in issues
        assert "Missing required field: project.readme" in issues

    def test_readme_file_missing(self, workspace: Workspace) -> None:
        pkg = workspace.packages["core"]
        (pkg.path / "README.md").unlink()
        assert check_publishable(pkg.path) == ["Readme file not found: README.md"]


class TestUvPublisher:
    """Tests for UvPublisher."""

    def test_publish(self, workspace: Workspace) -> None:
        pkg = workspace.packages["core"]
        files = make_dists(pkg.path / "dist", "core", "1.0.0")
        publisher = UvPublisher(PublishConfig(registry="https://test.example/legacy/"))

        with patch("monoship.uv.publish.run_uv", return_value=completed()) as mock_uv:
            assert publisher.publish(pkg, "tok") == PublishOutcome.PUBLISHED

        args = mock_uv.call_args[0][0]
        assert args[:3] == ["publish", "--publish-url", "https://test.example/legacy/"]
        assert args[3:5] == ["--token", "tok"]
        assert sorted(args[5:]) == sorted(str(f) for f in files)
        assert mock_uv.call_args[1]["check"] is False

    def test_already_published(self, workspace: Workspace) -> None:
        pkg = workspace.packages["core"]
        make_dists(pkg.path / "dist", "core", "1.0.0")
        result = completed(1, stderr="error: File already exists (core-1.0.0.tar.gz)")
        with patch("monoship.uv.publish.run_uv", return_value=result):
            outcome = UvPublisher(PublishConfig()).publish(pkg, None)
        assert outcome == PublishOutcome.ALREADY_PUBLISHED

    def test_failure(self, workspace: Workspace) -> None:
        pkg = workspace.packages["core"]
        make_dists(pkg.path / "dist", "core", "1.0.0")
        result = completed(2, stderr="403 Forbidden")
        with (
            patch("monoship.uv.publish.run_uv", return_value=result),
            pytest.raises(RegistryError, match="403 Forbidden"),
        ):
            UvPublisher(PublishConfig()).publish(pkg, None)

    def test_builds_when_no_dists(self, workspace: Workspace) -> None:
        pkg = workspace.packages["core"]

        def fake_build(package_path: Path, out_dir: Path) -> Path:
            make_dists(out_dir, "core", "1.0.0")
            return out_dir

        with (
            patch("monoship.uv.publish.build", side_effect=fake_build) as mock_build,
            patch("monoship.uv.publish.run_uv", return_value=completed()),
        ):
            assert UvPublisher(PublishConfig()).publish(pkg, None) == PublishOutcome.PUBLISHED
        mock_build.assert_called_once_with(pkg.path, pkg.path / "dist")

    def test_uv_missing(self, workspace: Workspace) -> None:
        pkg = workspace.packages["core"]
        make_dists(pkg.path / "dist", "core", "1.0.0")
        with (
            patch("monoship.uv.client.shutil.which", return_value=None),
            pytest.raises(RegistryError, match="uv publish failed: uv is not installed"),
        ):
            UvPublisher(PublishConfig()).publish(pkg, None)

    def test_uv_missing_when_building(self, workspace: Workspace) -> None:
        with (
            patch("monoship.uv.client.shutil.which", return_value=None),
            pytest.raises(RegistryError, match="uv build failed: uv is not installed"),
        ):
            UvPublisher(PublishConfig()).publish(workspace.packages["core"], None)

    def test_build_failure(self, workspace: Workspace) -> None:
        pkg = workspace.packages["core"]
        error = subprocess.CalledProcessError(1, ["uv", "build"], stderr="no backend")
        with (
            patch("monoship.uv.publish.build", side_effect=error),
            pytest.raises(RegistryError, match="no backend"),
        ):
            UvPublisher(PublishConfig()).publish(pkg, None)


class TestAddOwner:
    """Tests for UvPublisher.add_owner."""

    def test_not_configured(self, workspace: Workspace) -> None:
        with pytest.raises(RegistryError, match="owner_command"):
            UvPublisher(PublishConfig()).add_owner(workspace.packages["core"], "team", None)

    def test_runs_command(self, workspace: Workspace) -> None:
        config = PublishConfig(owner_command="pypi-owner add {name} {owner}")
        with patch("monoship.uv.publish.subprocess.run", return_value=completed()) as mock_run:
            outcome = UvPublisher(config).add_owner(workspace.packages["core"], "team", "tok")

        assert outcome == OwnerOutcome.ADDED
        assert mock_run.call_args[0][0] == ["pypi-owner", "add", "core", "team"]
        assert mock_run.call_args[1]["env"]["MONOSHIP_TOKEN"] == "tok"

    def test_already_owner(self, workspace: Workspace) -> None:
        config = PublishConfig(owner_command="pypi-owner add {name} {owner}")
        result = completed(1, stderr="team is already an owner")
        with patch("monoship.uv.publish.subprocess.run", return_value=result):
            outcome = UvPublisher(config).add_owner(workspace.packages["core"], "team", None)
        assert outcome == OwnerOutcome.ALREADY_OWNER

    def test_failure(self, workspace: Workspace) -> None:
        config = PublishConfig(owner_command="pypi-owner add {name} {owner}")
        result = completed(1, stderr="forbidden")
        with (
            patch("monoship.uv.publish.subprocess.run", return_value=result),
            pytest.raises(RegistryError, match="forbidden"),
        ):
            UvPublisher(config).add_owner(workspace.packages["core"], "team", None)
