"""Selection resolver: turn a first-pass pick into the final repository set."""

from __future__ import annotations

import logging
from typing import Callable

from .types import RepositorySource

logger = logging.getLogger(__name__)

SelectFn = Callable[[list[str]], list[str]]
ConfirmFn = Callable[[], bool]


def _in_catalog_order(catalog: list[str], picked: list[str]) -> list[str]:
    chosen = set(picked)
    return [url for url in catalog if url in chosen]


def resolve_selection(
    catalog: list[str],
    select: SelectFn,
    confirm_all: ConfirmFn,
    *,
    retries: int = 1,
) -> list[str]:
    """Resolve the final list of clone URLs to materialize.

    An empty pick is ambiguous: ``confirm_all`` decides whether it means
    "everything". When declined the selection is re-run, at most ``retries``
    times.

    Returns:
        Selected URLs in catalog order; empty means the run should stop.
    """
    selected = _in_catalog_order(catalog, select(catalog))
    if selected:
        return selected

    for attempt in range(max(0, retries)):
        if confirm_all():
            logger.debug("Empty selection confirmed as all %d repositories", len(catalog))
            return list(catalog)
        logger.debug("Re-running selection (attempt %d/%d)", attempt + 1, retries)
        selected = _in_catalog_order(catalog, select(catalog))
        if selected:
            return selected

    return []


def to_sources(urls: list[str]) -> list[RepositorySource]:
    """Build repository sources, dropping URLs that map to a duplicate name."""
    sources: list[RepositorySource] = []
    seen: set[str] = set()
    for url in urls:
        source = RepositorySource.from_url(url)
        if not source.name or source.name in seen:
            logger.warning("Skipping %s: duplicate or empty directory name", url)
            continue
        seen.add(source.name)
        sources.append(source)
    return sources
