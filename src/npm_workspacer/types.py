"""Type definitions for npm-workspacer.

Shared enums, dataclasses and the exception hierarchy used across the
reconciliation engine. Side effects that may fail per source or per
directory (clone, update, scaffold) report an ``Ok`` or ``Err`` outcome
instead of raising, and a run collects them into a ``RunReport``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Union


# ── errors ────────────────────────────────────────────────────────────────


class WorkspacerError(RuntimeError):
    """Base error for npm-workspacer operations."""


class UsageError(WorkspacerError):
    """Raised when required input (e.g. an account name) is missing."""


class CatalogError(WorkspacerError):
    """Raised when the repository catalog cannot be fetched or parsed."""


class ManifestError(WorkspacerError):
    """Base error for manifest read failures."""

    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"{message}: {path}")


class ManifestNotFoundError(ManifestError):
    """Raised when a required package.json does not exist."""

    def __init__(self, path: Path):
        super().__init__(path, "Manifest not found")


class ManifestParseError(ManifestError):
    """Raised when a package.json is not a valid JSON object."""

    def __init__(self, path: Path, detail: str):
        self.detail = detail
        super().__init__(path, f"Cannot parse manifest ({detail})")


class ManifestWriteError(ManifestError):
    """Raised when a package.json cannot be written."""

    def __init__(self, path: Path, detail: str):
        self.detail = detail
        super().__init__(path, f"Cannot write manifest ({detail})")


# ── enums ─────────────────────────────────────────────────────────────────


class KeyStyle(str, Enum):
    """Naming convention for generated member script keys."""

    PREFIX = "prefix"  # <prefix>:<command>
    PACKAGE = "package"  # <package>:<command>

    def __str__(self) -> str:
        return self.value


class Action(str, Enum):
    """Side effect attempted for one source or directory."""

    CLONE = "clone"
    UPDATE = "update"
    SCAFFOLD = "scaffold"

    def __str__(self) -> str:
        return self.value


class ErrorKind(str, Enum):
    """Why a side effect failed."""

    COMMAND_FAILED = "command-failed"
    COMMAND_NOT_FOUND = "command-not-found"
    TIMEOUT = "timeout"
    OS_ERROR = "os-error"

    def __str__(self) -> str:
        return self.value


# ── data ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RepositorySource:
    """A remote repository selected for materialization."""

    url: str
    name: str

    @classmethod
    def from_url(cls, url: str) -> "RepositorySource":
        return cls(url=url, name=repo_name_from_url(url))


def repo_name_from_url(url: str) -> str:
    """Derive a local directory name from a clone URL.

    >>> repo_name_from_url("https://github.com/user/app.git")
    'app'
    """
    return url.rstrip("/").rsplit("/", 1)[-1].removesuffix(".git")


@dataclass(frozen=True)
class Ok:
    """Successful side effect; ``path`` exists and is current."""

    name: str
    action: Action
    path: Path

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed side effect for a single source or directory."""

    name: str
    action: Action
    kind: ErrorKind
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False


Outcome = Union[Ok, Err]


@dataclass
class MergeResult:
    """Result of merging a command set into the workspace manifests."""

    root_scripts: dict[str, str] = field(default_factory=dict)
    updated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # no package.json
    failed: list[str] = field(default_factory=list)  # unreadable or unwritable package.json


@dataclass
class RunReport:
    """Per-run summary of every outcome and manifest update."""

    outcomes: list[Outcome] = field(default_factory=list)
    workspaces_added: list[str] = field(default_factory=list)
    merge: MergeResult | None = None
    notice: str = ""

    def record(self, outcome: Outcome) -> None:
        self.outcomes.append(outcome)

    def extend(self, outcomes: list[Outcome]) -> None:
        self.outcomes.extend(outcomes)

    @property
    def succeeded(self) -> list[Ok]:
        return [o for o in self.outcomes if isinstance(o, Ok)]

    @property
    def failed(self) -> list[Err]:
        return [o for o in self.outcomes if isinstance(o, Err)]

    def by_action(self, action: Action) -> list[Outcome]:
        return [o for o in self.outcomes if o.action == action]
