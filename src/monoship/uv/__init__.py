"""uv integration: building and publishing."""

from monoship.uv.build import BuildMode, BuildRunner, CommandBuildRunner
from monoship.uv.client import run_uv
from monoship.uv.publish import (
    OwnerOutcome,
    PublishOutcome,
    RegistryPublisher,
    UvPublisher,
    check_publishable,
)

__all__ = [
    "BuildMode",
    "BuildRunner",
    "CommandBuildRunner",
    "OwnerOutcome",
    "PublishOutcome",
    "RegistryPublisher",
    "UvPublisher",
    "check_publishable",
    "run_uv",
]
