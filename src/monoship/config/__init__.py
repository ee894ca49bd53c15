"""Workspace configuration."""

from monoship.config.loader import (
    CONFIG_FILENAME,
    find_workspace_root,
    load_config,
    resolve_token,
)
from monoship.config.schema import (
    MonoshipConfig,
    PublishConfig,
    ReleaseConfig,
    VersioningConfig,
)

__all__ = [
    "CONFIG_FILENAME",
    "MonoshipConfig",
    "PublishConfig",
    "ReleaseConfig",
    "VersioningConfig",
    "find_workspace_root",
    "load_config",
    "resolve_token",
]
