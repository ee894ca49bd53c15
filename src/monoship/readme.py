"""README generation from a package's module docstring."""

from __future__ import annotations

import ast
import logging
from enum import Enum
from pathlib import Path
from typing import Protocol

from monoship.errors import BuildError, ManifestError
from monoship.workspace.manifest import load_pyproject
from monoship.workspace.package import Package

logger = logging.getLogger(__name__)

DEFAULT_README = "README.md"


class ReadmeMode(Enum):
    """How gen-readme treats an existing README."""

    IF_MISSING = "if-missing"
    APPEND = "append"
    REPLACE = "replace"


class ReadmeGenerator(Protocol):
    def generate(self, package: Package) -> str: ...


def readme_path(package: Package) -> Path:
    """README declared by [project].readme, or README.md."""
    try:
        doc = load_pyproject(package.manifest_path)
    except ManifestError:
        return package.path / DEFAULT_README
    readme = doc.get("project", {}).get("readme")
    if isinstance(readme, str):
        return package.path / readme
    if isinstance(readme, dict) and isinstance(readme.get("file"), str):
        return package.path / readme["file"]
    return package.path / DEFAULT_README


def find_module_file(package: Package) -> Path | None:
    """Locate the top-level module of a package (src or flat layout)."""
    module = package.name.replace("-", "_")
    for candidate in (
        package.path / "src" / module / "__init__.py",
        package.path / module / "__init__.py",
        package.path / "src" / f"{module}.py",
        package.path / f"{module}.py",
    ):
        if candidate.is_file():
            return candidate
    return None


class DocstringReadmeGenerator:
    """Render '# <name>' followed by the top-level module docstring.

    Falls back to the project description when the module has no docstring.
    """

    def generate(self, package: Package) -> str:
        body = None
        module_file = find_module_file(package)
        if module_file is not None:
            try:
                tree = ast.parse(module_file.read_text(encoding="utf-8"), str(module_file))
            except (OSError, SyntaxError, ValueError) as e:
                raise BuildError(package.name, f"cannot read {module_file}: {e}") from e
            body = ast.get_docstring(tree)
        if not body:
            body = package.description or ""

        text = f"# {package.name}\n"
        if body:
            text += f"\n{body.strip()}\n"
        return text


def check_readme(package: Package, generator: ReadmeGenerator) -> None:
    """Compare the on-disk README to a freshly generated one.

    Raises:
        BuildError: If the README is missing or has drifted.
    """
    path = readme_path(package)
    expected = generator.generate(package)
    if not path.is_file():
        raise BuildError(package.name, f"{path.name} is missing")
    if path.read_text(encoding="utf-8").rstrip() != expected.rstrip():
        raise BuildError(package.name, f"{path.name} is out of date, run gen-readme")


def write_readme(package: Package, generator: ReadmeGenerator, mode: ReadmeMode) -> bool:
    """Write the generated README according to mode.

    Returns:
        True if the file was written.
    """
    path = readme_path(package)
    exists = path.is_file()
    if exists and mode == ReadmeMode.IF_MISSING:
        logger.debug("%s: %s exists, left alone", package.name, path.name)
        return False

    generated = generator.generate(package)
    if exists and mode == ReadmeMode.APPEND:
        current = path.read_text(encoding="utf-8").rstrip()
        generated = f"{current}\n\n{generated}"

    try:
        path.write_text(generated, encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Cannot write {path}: {e.strerror or e}", path=path) from e
    logger.info("%s: wrote %s", package.name, path.name)
    return True
