"""Version parsing and comparison."""

from monoship.versioning.semver import BumpType, Version, satisfies

__all__ = ["BumpType", "Version", "satisfies"]
