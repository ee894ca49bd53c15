"""Registry uploads through uv, owner management and publish metadata checks."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from enum import Enum
from pathlib import Path
from typing import Protocol

from packaging.utils import (
    InvalidSdistFilename,
    InvalidWheelFilename,
    parse_sdist_filename,
    parse_wheel_filename,
)
from packaging.version import InvalidVersion
from packaging.version import Version as Pep440Version

from monoship.config.schema import PublishConfig
from monoship.errors import ManifestError, MonoshipError, RegistryError
from monoship.uv.client import run_uv
from monoship.workspace.manifest import MANIFEST_FILENAME, load_pyproject
from monoship.workspace.package import Package

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "version", "description", "license", "readme")

_ALREADY_PUBLISHED_MARKERS = ("already exists", "file already exists", "already been uploaded")
_ALREADY_OWNER_MARKERS = ("already an owner", "already a maintainer", "already has role")


class PublishOutcome(Enum):
    PUBLISHED = "published"
    ALREADY_PUBLISHED = "already-published"


class OwnerOutcome(Enum):
    ADDED = "added"
    ALREADY_OWNER = "already-owner"


class RegistryPublisher(Protocol):
    def publish(self, package: Package, token: str | None) -> PublishOutcome: ...

    def add_owner(self, package: Package, owner: str, token: str | None) -> OwnerOutcome: ...


def _mentions(output: str, markers: tuple[str, ...]) -> bool:
    lowered = output.lower()
    return any(marker in lowered for marker in markers)


def _reason(error: Exception) -> str:
    if isinstance(error, subprocess.CalledProcessError):
        return (error.stderr or "").strip() or f"exit code {error.returncode}"
    if isinstance(error, MonoshipError):
        return error.message
    return str(error)


def _dist_version(filename: str) -> Pep440Version | None:
    try:
        if filename.endswith(".whl"):
            return parse_wheel_filename(filename)[1]
        if filename.endswith(".tar.gz"):
            return parse_sdist_filename(filename)[1]
    except (InvalidWheelFilename, InvalidSdistFilename):
        return None
    return None


def find_distributions(dist_dir: Path, version: str | None = None) -> list[Path]:
    """Wheels and sdists in dist_dir, optionally only those of one version."""
    if not dist_dir.is_dir():
        return []

    wanted: Pep440Version | None = None
    if version is not None:
        try:
            wanted = Pep440Version(version)
        except InvalidVersion:
            wanted = None

    found = []
    for path in sorted(dist_dir.iterdir()):
        file_version = _dist_version(path.name)
        if file_version is None:
            continue
        if wanted is not None and file_version != wanted:
            continue
        found.append(path)
    return found


def build(package_path: Path, out_dir: Path | None = None) -> Path:
    """Build sdist and wheel with uv.

    Returns:
        The directory the distributions were written to.

    Raises:
        subprocess.CalledProcessError: If the build fails.
        MonoshipError: If uv is not installed.
    """
    dist_dir = out_dir or package_path / "dist"
    run_uv(["build", "--out-dir", str(dist_dir)], cwd=package_path)
    return dist_dir


def publish(
    package_path: Path,
    *,
    repository: str | None = None,
    token: str | None = None,
    dist_dir: Path | None = None,
    files: list[Path] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Upload distributions with `uv publish`.

    Does not raise on failure; the caller inspects the completed process.
    """
    dist_dir = dist_dir or package_path / "dist"
    args = ["publish"]
    if repository:
        args.extend(["--publish-url", repository])
    if token:
        args.extend(["--token", token])
    args.extend(str(f) for f in (files if files is not None else find_distributions(dist_dir)))
    return run_uv(args, cwd=package_path, check=False)


def check_publishable(package_path: Path) -> list[str]:
    """Check that a package carries the metadata a registry upload needs.

    Returns:
        Human-readable issues; empty when the package looks publishable.
    """
    try:
        doc = load_pyproject(package_path / MANIFEST_FILENAME)
    except ManifestError as e:
        return [e.message]

    project = doc.get("project")
    if project is None:
        return ["Missing [project] table"]

    issues = [
        f"Missing required field: project.{field}"
        for field in REQUIRED_FIELDS
        if not project.get(field)
    ]

    readme = project.get("readme")
    if isinstance(readme, str) and not (package_path / readme).is_file():
        issues.append(f"Readme file not found: {readme}")
    return issues


class UvPublisher:
    """Publish with `uv publish`; add owners with a configured command."""

    def __init__(self, config: PublishConfig) -> None:
        self.config = config

    def _dist_dir(self, package: Package) -> Path:
        return package.path / self.config.dist_dir

    def publish(self, package: Package, token: str | None) -> PublishOutcome:
        """Upload the package's distributions for its current version.

        The package is built first when no matching distribution exists.

        Raises:
            RegistryError: On any failure other than the version already existing.
        """
        dist_dir = self._dist_dir(package)
        files = find_distributions(dist_dir, package.version)
        if not files:
            logger.debug("%s: no distributions in %s, building", package.name, dist_dir)
            try:
                build(package.path, dist_dir)
            except (subprocess.CalledProcessError, MonoshipError, OSError) as e:
                raise RegistryError(package.name, f"uv build failed: {_reason(e)}") from e
            files = find_distributions(dist_dir, package.version)
            if not files:
                raise RegistryError(package.name, f"no distributions found in {dist_dir}")

        try:
            result = publish(
                package.path,
                repository=self.config.registry,
                token=token,
                dist_dir=dist_dir,
                files=files,
            )
        except (MonoshipError, OSError) as e:
            raise RegistryError(package.name, f"uv publish failed: {_reason(e)}") from e
        output = f"{result.stdout}\n{result.stderr}"
        if _mentions(output, _ALREADY_PUBLISHED_MARKERS):
            return PublishOutcome.ALREADY_PUBLISHED
        if result.returncode != 0:
            raise RegistryError(
                package.name, result.stderr.strip() or f"uv publish exited {result.returncode}"
            )
        return PublishOutcome.PUBLISHED

    def add_owner(self, package: Package, owner: str, token: str | None) -> OwnerOutcome:
        """Grant owner rights on the package by running the owner command.

        Raises:
            RegistryError: If no command is configured or it fails.
        """
        if not self.config.owner_command:
            raise RegistryError(package.name, "publish.owner_command is not configured")

        command = self.config.owner_command.format(name=package.name, owner=owner)
        env = os.environ.copy()
        if token:
            env[self.config.token_env] = token

        try:
            result = subprocess.run(
                shlex.split(command),
                cwd=package.path,
                capture_output=True,
                text=True,
                env=env,
                check=False,
            )
        except OSError as e:
            raise RegistryError(package.name, f"cannot run owner command: {e}") from e

        output = f"{result.stdout}\n{result.stderr}"
        if _mentions(output, _ALREADY_OWNER_MARKERS):
            return OwnerOutcome.ALREADY_OWNER
        if result.returncode != 0:
            raise RegistryError(
                package.name, result.stderr.strip() or f"owner command exited {result.returncode}"
            )
        return OwnerOutcome.ADDED
