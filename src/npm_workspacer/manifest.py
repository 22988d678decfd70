"""package.json I/O and the in-memory workspace state.

Manifests are always read whole, mutated in memory and written back whole
through a temp file + rename, so a reader never sees a partial document.
Key order and indentation of existing files are preserved.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .types import ManifestNotFoundError, ManifestParseError, ManifestWriteError

MANIFEST_NAME = "package.json"
DEFAULT_INDENT = 2


def manifest_path(directory: Path) -> Path:
    """Get the package.json path for a directory."""
    return directory / MANIFEST_NAME


def has_manifest(directory: Path) -> bool:
    return manifest_path(directory).is_file()


def detect_indent(text: str) -> int | str:
    """Return the indentation unit of a JSON document (spaces or a tab)."""
    for line in text.splitlines()[1:]:
        stripped = line.lstrip(" \t")
        if not stripped or len(stripped) == len(line):
            continue
        leading = line[: len(line) - len(stripped)]
        if leading.startswith("\t"):
            return "\t"
        return len(leading)
    return DEFAULT_INDENT


def read_manifest_text(path: Path) -> tuple[dict[str, Any], int | str]:
    """Read a manifest and its indentation.

    Raises:
        ManifestNotFoundError: If the file does not exist.
        ManifestParseError: If the file is not a JSON object.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ManifestNotFoundError(path) from None
    except UnicodeDecodeError as e:
        raise ManifestParseError(path, f"invalid UTF-8: {e.reason}") from e
    except OSError as e:
        raise ManifestParseError(path, str(e)) from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestParseError(path, str(e)) from e
    if not isinstance(data, dict):
        raise ManifestParseError(path, "top level is not an object")
    return data, detect_indent(text)


def read_manifest(path: Path) -> dict[str, Any]:
    """Read a manifest as a dict."""
    data, _indent = read_manifest_text(path)
    return data


def dump_manifest(data: dict[str, Any], indent: int | str = DEFAULT_INDENT) -> str:
    """Serialize a manifest the way npm writes it (trailing newline)."""
    return json.dumps(data, indent=indent, ensure_ascii=False) + "\n"


def write_manifest(path: Path, data: dict[str, Any], indent: int | str = DEFAULT_INDENT) -> None:
    """Write a manifest atomically."""
    content = dump_manifest(data, indent)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".package.", suffix=".tmp")
        os.write(fd, content.encode("utf-8"))
        os.close(fd)
        fd = None
        if path.exists():
            os.chmod(tmp_path, path.stat().st_mode & 0o777)
        else:
            os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
        tmp_path = None
    finally:
        if fd is not None:
            os.close(fd)
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)


def get_scripts(data: dict[str, Any], path: Path) -> dict[str, Any]:
    """Return the manifest's ``scripts`` mapping, creating it if missing.

    Raises:
        ManifestParseError: If ``scripts`` exists but is not an object.
    """
    scripts = data.get("scripts")
    if scripts is None:
        scripts = {}
        data["scripts"] = scripts
    elif not isinstance(scripts, dict):
        raise ManifestParseError(path, '"scripts" is not an object')
    return scripts


@dataclass
class WorkspaceState:
    """Single in-memory view of the workspace shared by every component.

    The root manifest is read once by :meth:`load`, mutated by components
    and persisted with :meth:`save`. :meth:`reload` re-reads it from disk.
    """

    root: Path
    packages_dir: str = "packages"
    root_manifest: dict[str, Any] = field(default_factory=dict)
    indent: int | str = DEFAULT_INDENT

    @classmethod
    def load(cls, root: Path, packages_dir: str = "packages") -> "WorkspaceState":
        """Load the workspace rooted at ``root``.

        Raises:
            ManifestNotFoundError: If the root package.json is missing.
            ManifestParseError: If it cannot be parsed.
        """
        state = cls(root=root, packages_dir=packages_dir)
        state.reload()
        return state

    @property
    def manifest_file(self) -> Path:
        return manifest_path(self.root)

    @property
    def packages_path(self) -> Path:
        return self.root / self.packages_dir

    def reload(self) -> None:
        self.root_manifest, self.indent = read_manifest_text(self.manifest_file)

    def save(self) -> None:
        """Write the root manifest.

        Raises:
            ManifestWriteError: If the file cannot be written.
        """
        try:
            write_manifest(self.manifest_file, self.root_manifest, self.indent)
        except OSError as e:
            raise ManifestWriteError(self.manifest_file, str(e)) from e

    def package_dirs(self) -> list[str]:
        """List member directory names under the packages root (sorted)."""
        if not self.packages_path.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.packages_path.iterdir()
            if entry.is_dir() and not entry.name.startswith(".")
        )

    def package_path(self, name: str) -> Path:
        return self.packages_path / name

    def glob_for(self, name: str) -> str:
        return f"{self.packages_dir}/{name}"

    def derived_workspaces(self) -> list[str]:
        """Workspace globs derived from the current directory listing."""
        return [self.glob_for(name) for name in self.package_dirs()]

    def get_workspaces(self) -> list[str] | None:
        """Return declared workspace globs, or None when undeclared.

        Both the array form and the ``{"packages": [...]}`` object form are
        understood.
        """
        raw = self.root_manifest.get("workspaces")
        if isinstance(raw, dict):
            raw = raw.get("packages")
        if not isinstance(raw, list):
            return None
        return [str(entry) for entry in raw]

    def set_workspaces(self, globs: list[str]) -> None:
        raw = self.root_manifest.get("workspaces")
        if isinstance(raw, dict):
            raw["packages"] = list(globs)
        else:
            self.root_manifest["workspaces"] = list(globs)

    @property
    def scripts(self) -> dict[str, Any]:
        return get_scripts(self.root_manifest, self.manifest_file)
