"""Keep the root manifest's ``workspaces`` in line with the packages directory.

State machine:
    unchecked -> absent  -> write derived globs, reload -> done
    unchecked -> present -> append uncovered dirs (write, reload if any) -> done

After :func:`reconcile_workspaces` returns, every directory under the
packages root is matched by some declared glob and the in-memory state
reflects what is on disk.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from fnmatch import fnmatchcase

from .manifest import WorkspaceState

logger = logging.getLogger(__name__)


class WorkspacesState(str, Enum):
    ABSENT = "absent"
    PRESENT = "present"

    def __str__(self) -> str:
        return self.value


@dataclass
class ReconcileResult:
    """What the reconciler found and changed."""

    initial: WorkspacesState
    added: list[str] = field(default_factory=list)

    @property
    def written(self) -> bool:
        return bool(self.added) or self.initial == WorkspacesState.ABSENT


def _normalize(glob: str) -> str:
    glob = glob.strip()
    if glob.startswith("./"):
        glob = glob[2:]
    return glob.rstrip("/")


def is_covered(path: str, globs: list[str]) -> bool:
    """Check whether a relative member path matches any workspace glob."""
    return any(fnmatchcase(path, _normalize(g)) for g in globs if not g.startswith("!"))


def uncovered_dirs(state: WorkspaceState, globs: list[str]) -> list[str]:
    """Globs for member directories no declared glob matches."""
    return [
        state.glob_for(name)
        for name in state.package_dirs()
        if not is_covered(state.glob_for(name), globs)
    ]


def reconcile_workspaces(state: WorkspaceState) -> ReconcileResult:
    """Ensure the root manifest declares every member directory.

    Writes the root manifest and reloads it into ``state`` when anything
    changed, so later components see the persisted document.
    """
    declared = state.get_workspaces()

    if declared is None:
        derived = state.derived_workspaces()
        logger.info("Declaring %d workspace(s) in %s", len(derived), state.manifest_file)
        state.set_workspaces(derived)
        state.save()
        state.reload()
        return ReconcileResult(initial=WorkspacesState.ABSENT, added=derived)

    missing = uncovered_dirs(state, declared)
    if missing:
        logger.info("Adding %d uncovered workspace(s): %s", len(missing), ", ".join(missing))
        state.set_workspaces(declared + missing)
        state.save()
        state.reload()
    else:
        logger.debug("Workspaces already cover every package directory")
    return ReconcileResult(initial=WorkspacesState.PRESENT, added=missing)
