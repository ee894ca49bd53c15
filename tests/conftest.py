"""Shared test fixtures for monoship tests."""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
from dotenv import load_dotenv

from monoship.workspace import Workspace

# Load .env from project root (doesn't override existing env vars)
load_dotenv(Path(__file__).parent.parent / ".env")

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


@pytest.fixture(autouse=True)
def _reset_monoship_logger() -> Generator[None, None, None]:
    """Undo configure_logging so caplog sees records between tests."""

    def reset() -> None:
        logger = logging.getLogger("monoship")
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)

    reset()
    yield
    reset()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def sample_monoship_yaml() -> str:
    """Sample monoship.yaml content."""
    return """\
name: test-workspace
packages:
  - packages/*

release:
  ignore_pre: [dev]

publish:
  registry: https://upload.pypi.org/legacy/
  token_env: MONOSHIP_TEST_TOKEN
"""


def write_package(
    root: Path,
    name: str,
    version: str,
    *,
    dependencies: list[str] | None = None,
    sources: list[str] | None = None,
    dev: list[str] | None = None,
    docstring: str | None = None,
) -> Path:
    """Write a complete, publishable package under root/packages."""
    pkg_dir = root / "packages" / name
    module = name.replace("-", "_")
    (pkg_dir / "src" / module).mkdir(parents=True)

    deps = ", ".join(f'"{d}"' for d in dependencies or [])
    text = f"""\
[project]
name = "{name}"
version = "{version}"
description = "The {name} package"
license = "MIT"
readme = "README.md"
dependencies = [{deps}]
"""
    if dev:
        dev_deps = ", ".join(f'"{d}"' for d in dev)
        text += f"\n[dependency-groups]\ndev = [{dev_deps}]\n"
    if sources:
        text += "\n[tool.uv.sources]\n"
        text += "".join(f"{s} = {{ workspace = true }}\n" for s in sources)
    (pkg_dir / "pyproject.toml").write_text(text)

    doc = docstring or f"The {name} package."
    (pkg_dir / "src" / module / "__init__.py").write_text(f'"""{doc}"""\n')
    (pkg_dir / "README.md").write_text(f"# {name}\n\n{doc}\n")
    return pkg_dir


@pytest.fixture
def workspace_dir(temp_dir: Path, sample_monoship_yaml: str) -> Path:
    """Create a workspace with three packages.

    core-cli depends on core; core-macros only has a dev dependency on core.
    """
    (temp_dir / "monoship.yaml").write_text(sample_monoship_yaml)

    write_package(temp_dir, "core", "1.0.0", dev=["pytest>=8"])
    write_package(
        temp_dir,
        "core-cli",
        "1.0.0",
        dependencies=["core>=1.0,<2"],
        sources=["core"],
    )
    write_package(temp_dir, "core-macros", "0.3.0", dev=["core"], sources=["core"])
    return temp_dir


@pytest.fixture
def workspace(workspace_dir: Path) -> Workspace:
    """Loaded workspace for workspace_dir."""
    return Workspace.discover(workspace_dir)


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


@pytest.fixture
def git_workspace(workspace_dir: Path) -> Path:
    """Create a workspace with git initialized and a 'base' tag on the first commit."""
    git(workspace_dir, "init", "-q")
    git(workspace_dir, "config", "user.email", "test@test.com")
    git(workspace_dir, "config", "user.name", "Test")
    git(workspace_dir, "config", "commit.gpgsign", "false")
    git(workspace_dir, "add", "-A")
    git(workspace_dir, "commit", "-q", "-m", "Initial commit")
    git(workspace_dir, "tag", "base")
    return workspace_dir
