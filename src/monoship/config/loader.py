"""Locating and loading workspace configuration."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from monoship.config.schema import MonoshipConfig
from monoship.errors import ConfigurationError, WorkspaceNotFoundError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found]

CONFIG_FILENAME = "monoship.yaml"
PYPROJECT_FILENAME = "pyproject.toml"

logger = logging.getLogger(__name__)


def _uv_workspace_table(pyproject: Path) -> dict[str, Any] | None:
    try:
        with pyproject.open("rb") as fh:
            data = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError):
        return None
    workspace = data.get("tool", {}).get("uv", {}).get("workspace")
    if not isinstance(workspace, dict):
        return None
    return {"project": data.get("project", {}), "workspace": workspace}


def find_workspace_root(start: Path | None = None) -> Path:
    """Walk up from start looking for a workspace root.

    A directory is a root if it holds monoship.yaml, or a pyproject.toml
    with a [tool.uv.workspace] table.

    Args:
        start: Directory to start from (defaults to cwd).

    Returns:
        Workspace root directory.

    Raises:
        WorkspaceNotFoundError: If no root is found.
    """
    origin = (start or Path.cwd()).resolve()
    if origin.is_file():
        origin = origin.parent

    for directory in (origin, *origin.parents):
        if (directory / CONFIG_FILENAME).is_file():
            return directory
        pyproject = directory / PYPROJECT_FILENAME
        if pyproject.is_file() and _uv_workspace_table(pyproject) is not None:
            return directory

    raise WorkspaceNotFoundError(origin)


def load_config(root: Path) -> MonoshipConfig:
    """Load configuration for a workspace root.

    monoship.yaml wins; otherwise the uv workspace members are used with
    default settings.

    Args:
        root: Workspace root directory.

    Returns:
        Validated configuration.

    Raises:
        ConfigurationError: If the file is unreadable or invalid.
    """
    config_path = root / CONFIG_FILENAME
    if config_path.is_file():
        try:
            raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read {config_path}: {e}", path=config_path) from e
        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"{config_path} must contain a mapping at the top level", path=config_path
            )
        raw.setdefault("name", root.name)
        return _validate(raw, config_path)

    table = _uv_workspace_table(root / PYPROJECT_FILENAME)
    if table is None:
        raise WorkspaceNotFoundError(root)

    logger.debug("No %s in %s, using [tool.uv.workspace]", CONFIG_FILENAME, root)
    workspace = table["workspace"]
    raw = {
        "name": table["project"].get("name") or root.name,
        "packages": list(workspace.get("members", [])),
        "ignore": list(workspace.get("exclude", [])),
    }
    return _validate(raw, root / PYPROJECT_FILENAME)


def _validate(raw: dict[str, Any], path: Path) -> MonoshipConfig:
    try:
        return MonoshipConfig.model_validate(raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration in {path}: {problems}", path=path) from e


def resolve_token(root: Path, config: MonoshipConfig, explicit: str | None = None) -> str | None:
    """Resolve the registry token.

    Order: explicit value, the configured environment variable (a .env file
    in the workspace root is loaded first without overriding the process
    environment), then UV_PUBLISH_TOKEN.

    Args:
        root: Workspace root.
        config: Workspace configuration.
        explicit: Token given on the command line.

    Returns:
        Token or None.
    """
    if explicit:
        return explicit

    load_dotenv(root / ".env", override=False)
    return os.environ.get(config.publish.token_env) or os.environ.get("UV_PUBLISH_TOKEN")
