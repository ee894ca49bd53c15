"""Reading and editing package manifests (pyproject.toml).

Edits go through tomlkit so that formatting and comments survive.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, MutableMapping
from pathlib import Path
from typing import Any

import tomlkit
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name
from tomlkit import TOMLDocument
from tomlkit.exceptions import TOMLKitError

from monoship.errors import ManifestError
from monoship.workspace.package import DependencyKind, Package, RequirementSpec

MANIFEST_FILENAME = "pyproject.toml"
PRIVATE_CLASSIFIER = "Private :: Do Not Upload"

logger = logging.getLogger(__name__)


def load_pyproject(path: Path) -> TOMLDocument:
    """Parse a manifest, keeping formatting.

    Raises:
        ManifestError: If the file cannot be read or parsed.
    """
    try:
        return tomlkit.parse(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ManifestError(f"Cannot read {path}: {e.strerror or e}", path=path) from e
    except TOMLKitError as e:
        raise ManifestError(f"Cannot parse {path}: {e}", path=path) from e


def save_pyproject(path: Path, doc: TOMLDocument) -> None:
    """Write a manifest back to disk.

    Raises:
        ManifestError: If the file cannot be written.
    """
    try:
        path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Cannot write {path}: {e.strerror or e}", path=path) from e


def _parse_requirements(entries: Any, kind: DependencyKind) -> list[RequirementSpec]:
    specs: list[RequirementSpec] = []
    if not isinstance(entries, list):
        return specs
    for entry in entries:
        # dependency-groups may hold {include-group = "..."} tables
        if not isinstance(entry, str):
            continue
        try:
            req = Requirement(entry)
        except InvalidRequirement:
            logger.warning("Ignoring unparseable requirement %r", entry)
            continue
        specs.append(
            RequirementSpec(
                name=canonicalize_name(req.name),
                specifier=str(req.specifier),
                kind=kind,
                raw=entry,
            )
        )
    return specs


def _is_publishable(project: dict[str, Any], tool: dict[str, Any]) -> bool:
    settings = tool.get("monoship", {})
    if isinstance(settings, dict) and settings.get("publish") is False:
        return False
    return PRIVATE_CLASSIFIER not in project.get("classifiers", [])


def read_package(package_dir: Path) -> Package:
    """Read a package from its directory.

    Dependencies are returned unresolved; the workspace decides which of
    them are local.

    Raises:
        ManifestError: If the manifest is missing or lacks name/version.
    """
    manifest = package_dir / MANIFEST_FILENAME
    data = load_pyproject(manifest).unwrap()

    project = data.get("project")
    if not isinstance(project, dict):
        raise ManifestError(f"{manifest} has no [project] table", path=manifest)
    name = project.get("name")
    version = project.get("version")
    if not name:
        raise ManifestError(f"{manifest} is missing project.name", path=manifest)
    if not version:
        raise ManifestError(
            f"{manifest} is missing project.version (dynamic versions are not supported)",
            path=manifest,
        )

    tool = data.get("tool", {})
    requirements = _parse_requirements(project.get("dependencies", []), DependencyKind.BUILD)
    for group in project.get("optional-dependencies", {}).values():
        requirements.extend(_parse_requirements(group, DependencyKind.BUILD))
    for group in data.get("dependency-groups", {}).values():
        requirements.extend(_parse_requirements(group, DependencyKind.DEV))
    requirements.extend(
        _parse_requirements(tool.get("uv", {}).get("dev-dependencies", []), DependencyKind.DEV)
    )

    sources = tool.get("uv", {}).get("sources", {})
    local_sources = frozenset(
        canonicalize_name(source_name)
        for source_name, source in sources.items()
        if isinstance(source, dict) and (source.get("workspace") or "path" in source)
    )

    return Package(
        name=canonicalize_name(name),
        version=str(version),
        path=package_dir.resolve(),
        description=project.get("description"),
        publishable=_is_publishable(project, tool),
        requirements=tuple(requirements),
        local_sources=local_sources,
    )


def coerce_value(value: str) -> bool | int | str:
    """Interpret a command-line value as a TOML boolean, integer or string."""
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(value)
    except ValueError:
        return value


def write_field(manifest: Path, key: str, value: Any, *, root_key: str = "project") -> None:
    """Set key in the root_key table of a manifest, creating it if needed.

    root_key may be dotted (``tool.monoship``).

    Raises:
        ManifestError: On read/write failure or if root_key is not a table.
    """
    doc = load_pyproject(manifest)
    table: Any = doc
    for part in root_key.split("."):
        if part not in table:
            table[part] = tomlkit.table()
        table = table[part]
        if not isinstance(table, MutableMapping):
            raise ManifestError(f"{root_key} in {manifest} is not a table", path=manifest)
    table[key] = value
    save_pyproject(manifest, doc)


def set_version(manifest: Path, version: str) -> None:
    """Write project.version."""
    write_field(manifest, "version", version)


def _requirement_lists(doc: TOMLDocument) -> list[tuple[Any, DependencyKind]]:
    lists: list[tuple[Any, DependencyKind]] = []
    project = doc.get("project", {})
    if "dependencies" in project:
        lists.append((project["dependencies"], DependencyKind.BUILD))
    for group in project.get("optional-dependencies", {}).values():
        lists.append((group, DependencyKind.BUILD))
    for group in doc.get("dependency-groups", {}).values():
        lists.append((group, DependencyKind.DEV))
    uv = doc.get("tool", {}).get("uv", {})
    if "dev-dependencies" in uv:
        lists.append((uv["dev-dependencies"], DependencyKind.DEV))
    return lists


def rewrite_requirements(
    manifest: Path,
    rewrite: Callable[[Requirement, DependencyKind], str | None],
) -> int:
    """Rewrite requirement strings in every dependency list of a manifest.

    Args:
        manifest: Manifest to edit.
        rewrite: Called with each parsed requirement and the kind of list it
            sits in; returns the replacement string, or None to leave the
            entry untouched.

    Returns:
        Number of entries changed. The file is only written if non-zero.
    """
    doc = load_pyproject(manifest)
    changed = 0
    for entries, kind in _requirement_lists(doc):
        for i, entry in enumerate(list(entries)):
            if not isinstance(entry, str):
                continue
            try:
                req = Requirement(str(entry))
            except InvalidRequirement:
                continue
            replacement = rewrite(req, kind)
            if replacement is not None and replacement != str(entry):
                entries[i] = replacement
                changed += 1
    if changed:
        save_pyproject(manifest, doc)
    return changed


def strip_dev_dependencies(manifest: Path) -> bool:
    """Remove [dependency-groups] and [tool.uv].dev-dependencies.

    Returns:
        True if the manifest was modified.
    """
    doc = load_pyproject(manifest)
    modified = False
    if "dependency-groups" in doc:
        del doc["dependency-groups"]
        modified = True
    uv = doc.get("tool", {}).get("uv")
    if uv is not None and "dev-dependencies" in uv:
        del uv["dev-dependencies"]
        modified = True
    if modified:
        save_pyproject(manifest, doc)
    return modified


def rename_source(manifest: Path, old: str, new: str) -> bool:
    """Re-key the [tool.uv.sources] entry for old to new.

    Names are compared canonicalized; the entry's table is kept as is.

    Returns:
        True if the manifest was modified.
    """
    doc = load_pyproject(manifest)
    sources = doc.get("tool", {}).get("uv", {}).get("sources")
    if sources is None:
        return False

    key = next((k for k in sources if canonicalize_name(k) == canonicalize_name(old)), None)
    if key is None:
        return False
    sources[new] = sources[key]
    del sources[key]
    save_pyproject(manifest, doc)
    return True
