"""Clone-or-update local working copies of selected repositories.

For each source:
1. Target directory missing: ``git clone <url> <target>``
2. Target directory present: ``git fetch`` then ``git pull`` inside it

Failures are returned as ``Err`` outcomes so one bad source never stops
the others.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .runner_utils import run_command
from .types import Action, Err, Ok, Outcome, RepositorySource

logger = logging.getLogger(__name__)


def clone(source: RepositorySource, target: Path, timeout: float | None = None) -> Outcome:
    """Clone ``source`` into ``target``."""
    logger.info("Cloning %s into %s...", source.url, target)
    result = run_command(["git", "clone", source.url, str(target)], timeout=timeout)
    if not result.success:
        logger.error("Error cloning %s: %s", source.url, result.output)
        return Err(source.name, Action.CLONE, result.kind, result.output)
    logger.info("Successfully cloned %s", source.url)
    return Ok(source.name, Action.CLONE, target)


def update(source: RepositorySource, target: Path, timeout: float | None = None) -> Outcome:
    """Fetch and pull an existing working copy.

    The working copy's remote is trusted as-is.
    """
    logger.info("Updating %s in %s...", source.name, target)
    for step in (["git", "fetch"], ["git", "pull"]):
        result = run_command(step, cwd=target, timeout=timeout)
        if not result.success:
            logger.error("Error running '%s' in %s: %s", " ".join(step), target, result.output)
            return Err(source.name, Action.UPDATE, result.kind, result.output)
    logger.info("Successfully updated %s", source.name)
    return Ok(source.name, Action.UPDATE, target)


def materialize(source: RepositorySource, target: Path, timeout: float | None = None) -> Outcome:
    """Ensure ``target`` holds an up-to-date working copy of ``source``."""
    if target.exists():
        return update(source, target, timeout=timeout)
    return clone(source, target, timeout=timeout)


def materialize_all(
    sources: list[RepositorySource],
    packages_path: Path,
    *,
    jobs: int = 1,
    timeout: float | None = None,
) -> list[Outcome]:
    """Materialize every source under ``packages_path``.

    Sources map to disjoint directories, so with ``jobs > 1`` they run on a
    thread pool. Outcomes are returned in source order.
    """
    packages_path.mkdir(parents=True, exist_ok=True)

    def _one(source: RepositorySource) -> Outcome:
        return materialize(source, packages_path / source.name, timeout=timeout)

    if jobs <= 1 or len(sources) <= 1:
        return [_one(source) for source in sources]

    with ThreadPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(_one, sources))
