"""Tests for locating and loading configuration."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from monoship.config import find_workspace_root, load_config, resolve_token
from monoship.errors import ConfigurationError, WorkspaceNotFoundError


def test_find_root_from_nested_directory(workspace_dir: Path) -> None:
    nested = workspace_dir / "packages" / "core" / "src"
    assert find_workspace_root(nested) == workspace_dir


def test_find_root_uv_workspace(temp_dir: Path) -> None:
    (temp_dir / "pyproject.toml").write_text(
        '[project]\nname = "root"\n\n[tool.uv.workspace]\nmembers = ["libs/*"]\n'
    )
    (temp_dir / "libs").mkdir()
    assert find_workspace_root(temp_dir / "libs") == temp_dir


def test_find_root_missing(temp_dir: Path) -> None:
    (temp_dir / "pyproject.toml").write_text('[project]\nname = "plain"\n')
    with pytest.raises(WorkspaceNotFoundError):
        find_workspace_root(temp_dir)


def test_load_yaml(workspace_dir: Path) -> None:
    config = load_config(workspace_dir)
    assert config.name == "test-workspace"
    assert config.packages == ["packages/*"]
    assert config.publish.token_env == "MONOSHIP_TEST_TOKEN"


def test_load_yaml_name_defaults_to_directory(temp_dir: Path) -> None:
    (temp_dir / "monoship.yaml").write_text("packages:\n  - pkgs/*\n")
    assert load_config(temp_dir).name == temp_dir.name


def test_load_uv_workspace_fallback(temp_dir: Path) -> None:
    (temp_dir / "pyproject.toml").write_text(
        '[project]\nname = "root"\n\n'
        '[tool.uv.workspace]\nmembers = ["libs/*"]\nexclude = ["libs/old"]\n'
    )
    config = load_config(temp_dir)
    assert config.name == "root"
    assert config.packages == ["libs/*"]
    assert config.ignore == ["libs/old"]


def test_invalid_yaml(temp_dir: Path) -> None:
    (temp_dir / "monoship.yaml").write_text("packages: [unclosed\n")
    with pytest.raises(ConfigurationError, match="Cannot read"):
        load_config(temp_dir)


def test_invalid_values_reported(temp_dir: Path) -> None:
    (temp_dir / "monoship.yaml").write_text(
        "packages: [p/*]\nversioning:\n  dependency_operator: '<'\n"
    )
    with pytest.raises(ConfigurationError, match="versioning.dependency_operator"):
        load_config(temp_dir)


def test_top_level_must_be_mapping(temp_dir: Path) -> None:
    (temp_dir / "monoship.yaml").write_text("- a\n- b\n")
    with pytest.raises(ConfigurationError, match="mapping"):
        load_config(temp_dir)


class TestResolveToken:
    """Tests for registry token resolution."""

    def test_explicit_wins(
        self, workspace_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MONOSHIP_TEST_TOKEN", "from-env")
        config = load_config(workspace_dir)
        assert resolve_token(workspace_dir, config, "explicit") == "explicit"

    def test_configured_env_var(
        self, workspace_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MONOSHIP_TEST_TOKEN", "from-env")
        config = load_config(workspace_dir)
        assert resolve_token(workspace_dir, config) == "from-env"

    def test_dotenv_file(self, workspace_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MONOSHIP_TEST_TOKEN", raising=False)
        monkeypatch.delenv("UV_PUBLISH_TOKEN", raising=False)
        (workspace_dir / ".env").write_text("MONOSHIP_TEST_TOKEN=from-dotenv\n")
        config = load_config(workspace_dir)
        try:
            assert resolve_token(workspace_dir, config) == "from-dotenv"
        finally:
            os.environ.pop("MONOSHIP_TEST_TOKEN", None)

    def test_uv_fallback(self, workspace_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MONOSHIP_TEST_TOKEN", raising=False)
        monkeypatch.setenv("UV_PUBLISH_TOKEN", "uv-token")
        config = load_config(workspace_dir)
        assert resolve_token(workspace_dir, config) == "uv-token"

    def test_none(self, workspace_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MONOSHIP_TEST_TOKEN", raising=False)
        monkeypatch.delenv("UV_PUBLISH_TOKEN", raising=False)
        config = load_config(workspace_dir)
        assert resolve_token(workspace_dir, config) is None
