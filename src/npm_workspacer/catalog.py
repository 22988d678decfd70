"""Remote repository catalog client.

Lists the clone URLs an account exposes through the GitHub REST API.
"""

from __future__ import annotations

import logging
import subprocess

import requests

from .types import CatalogError

logger = logging.getLogger(__name__)

USER_AGENT = "npm-workspacer"
PER_PAGE = 100


def default_account() -> str:
    """Return ``git config user.name`` or an empty string."""
    try:
        result = subprocess.run(
            ["git", "config", "user.name"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (subprocess.TimeoutExpired, OSError):
        logger.info("No git username found in the current configuration.")
        return ""
    if result.returncode != 0:
        logger.info("No git username found in the current configuration.")
        return ""
    return result.stdout.strip()


def fetch_catalog(
    account: str,
    *,
    api_url: str = "https://api.github.com",
    timeout: float = 30,
    session: requests.Session | None = None,
) -> list[str]:
    """Fetch the clone URLs of every repository owned by ``account``.

    Pages are followed through the ``Link`` header. The API order is kept.

    Returns:
        Clone URLs, empty if the account has no repositories or does not exist.

    Raises:
        CatalogError: On network failure, unexpected status or invalid payload.
    """
    http = session or requests.Session()
    url: str | None = f"{api_url.rstrip('/')}/users/{account}/repos"
    params: dict[str, int] | None = {"per_page": PER_PAGE}
    urls: list[str] = []

    while url:
        logger.debug("GET %s", url)
        try:
            response = http.get(
                url,
                params=params,
                headers={"User-Agent": USER_AGENT, "Accept": "application/vnd.github+json"},
                timeout=timeout,
            )
        except requests.RequestException as e:
            raise CatalogError(f"Error fetching repositories: {e}") from e

        if response.status_code == 404:
            return []
        if not response.ok:
            raise CatalogError(
                f"Error fetching repositories: HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise CatalogError(f"Error fetching repositories: invalid JSON ({e})") from e
        if not isinstance(payload, list):
            raise CatalogError("Error fetching repositories: expected a list of repositories")

        for repo in payload:
            if not isinstance(repo, dict):
                continue
            clone_url = repo.get("clone_url")
            if isinstance(clone_url, str) and clone_url:
                urls.append(clone_url)

        url = response.links.get("next", {}).get("url")
        # The next link already carries the query string
        params = None

    logger.debug("Catalog for %s: %d repositories", account, len(urls))
    return urls
