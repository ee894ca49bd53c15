"""monoship commands."""

from monoship.commands.add_owner import (
    AddOwnerCommand,
    AddOwnerResult,
    handle_add_owner_command,
)
from monoship.commands.base import Command, CommandContext, SyncCommand
from monoship.commands.changed import (
    ChangedCommand,
    ChangedOptions,
    ChangedPackage,
    ChangedResult,
    get_changed_packages,
    handle_changed_command,
)
from monoship.commands.check import check, handle_check_command
from monoship.commands.dedev import DeDevDepsCommand, handle_dedev_command
from monoship.commands.gen_readme import GenReadmeCommand, handle_gen_readme_command
from monoship.commands.plan import (
    ReleasePlan,
    ensure_not_empty,
    handle_plan_command,
    plan_release,
)
from monoship.commands.release import (
    ReleaseCommand,
    ReleaseOptions,
    ReleaseServices,
    handle_release_command,
    release,
)
from monoship.commands.version import (
    SetFieldCommand,
    SetFieldResult,
    VersionAction,
    VersionCommand,
    VersionOptions,
    VersionResult,
    compute_version,
    handle_set_command,
    handle_version_command,
    version,
)

__all__ = [
    # Base
    "Command",
    "SyncCommand",
    "CommandContext",
    # Plan
    "ReleasePlan",
    "plan_release",
    "ensure_not_empty",
    "handle_plan_command",
    # Release
    "ReleaseCommand",
    "ReleaseOptions",
    "ReleaseServices",
    "release",
    "handle_release_command",
    # Check
    "check",
    "handle_check_command",
    # Changed
    "ChangedCommand",
    "ChangedOptions",
    "ChangedResult",
    "ChangedPackage",
    "get_changed_packages",
    "handle_changed_command",
    # Version
    "VersionAction",
    "VersionCommand",
    "VersionOptions",
    "VersionResult",
    "compute_version",
    "version",
    "handle_version_command",
    "SetFieldCommand",
    "SetFieldResult",
    "handle_set_command",
    # Owners
    "AddOwnerCommand",
    "AddOwnerResult",
    "handle_add_owner_command",
    # Manifests
    "DeDevDepsCommand",
    "handle_dedev_command",
    "GenReadmeCommand",
    "handle_gen_readme_command",
]
