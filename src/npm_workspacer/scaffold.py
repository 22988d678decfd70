"""Detect member directories without a package.json and initialize them."""

from __future__ import annotations

import logging

from .manifest import WorkspaceState, has_manifest
from .runner_utils import run_command
from .types import Action, Err, ErrorKind, Ok, Outcome

logger = logging.getLogger(__name__)

DEFAULT_INIT_COMMAND = ["npm", "init", "-y"]


def find_missing_manifests(state: WorkspaceState) -> list[str]:
    """Member directory names that have no package.json."""
    return [
        name for name in state.package_dirs() if not has_manifest(state.package_path(name))
    ]


def scaffold_manifests(
    state: WorkspaceState,
    names: list[str],
    *,
    init_command: list[str] | None = None,
    timeout: float | None = None,
) -> list[Outcome]:
    """Run the package initializer in each named directory.

    Directories that already have a manifest are left alone and produce no
    outcome. A failure in one directory does not stop the others.
    """
    cmd = init_command or DEFAULT_INIT_COMMAND
    outcomes: list[Outcome] = []

    for name in names:
        directory = state.package_path(name)
        if not directory.is_dir():
            logger.warning("Skipping %s: not a directory", directory)
            outcomes.append(Err(name, Action.SCAFFOLD, ErrorKind.OS_ERROR, "not a directory"))
            continue
        if has_manifest(directory):
            logger.debug("Skipping %s: package.json already exists", name)
            continue

        logger.info("Initializing package.json in %s...", directory)
        result = run_command(cmd, cwd=directory, timeout=timeout)
        if not result.success:
            logger.error("Error initializing %s: %s", name, result.output)
            outcomes.append(Err(name, Action.SCAFFOLD, result.kind, result.output))
            continue
        if not has_manifest(directory):
            detail = f"'{' '.join(cmd)}' did not create package.json"
            logger.error("Error initializing %s: %s", name, detail)
            outcomes.append(Err(name, Action.SCAFFOLD, ErrorKind.COMMAND_FAILED, detail))
            continue
        logger.info("Created %s/package.json", name)
        outcomes.append(Ok(name, Action.SCAFFOLD, directory))

    return outcomes
