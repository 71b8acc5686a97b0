"""GitHub REST API client for listing repository issues."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import requests

from feed_ingestor.config import GitHubConfig
from feed_ingestor.errors import DecodeError, FetchError

logger = logging.getLogger(__name__)


@dataclass
class IssuePage:
    """One page of the issue list plus the page cursor for the next one (0 when done)."""

    items: List[Dict[str, Any]]
    next_page: int


def next_page_from_links(links: Dict[str, Dict[str, str]]) -> int:
    """
    Extract the next page number from a parsed ``Link`` header.

    Args:
        links: ``requests.Response.links`` mapping

    Returns:
        Page number of ``rel="next"``, or 0 if there is no next page
    """
    next_link = links.get("next") if links else None
    if not next_link or not next_link.get("url"):
        return 0
    query = parse_qs(urlparse(next_link["url"]).query)
    try:
        page = int(query.get("page", ["0"])[0])
    except ValueError:
        page = 0
    if page <= 0:
        logger.warning(f"Next link has no usable page number, paging stops here: {next_link['url']}")
        return 0
    return page


class GitHubClient:
    """Wrapper around ``requests`` for the issues endpoint with bearer-token auth."""

    def __init__(
        self,
        token: str,
        settings: Optional[GitHubConfig] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the GitHub client.

        Args:
            token: Bearer token (empty string means unauthenticated requests)
            settings: API URL and paging settings
            timeout: Per-request timeout in seconds (None waits indefinitely)
            session: Optional pre-built session, mainly for tests
        """
        self.settings = settings or GitHubConfig()
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        })
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        else:
            logger.warning("No GitHub token configured; requests will be unauthenticated")

    def list_issues_page(self, owner: str, repo: str, page: Optional[int] = None) -> IssuePage:
        """
        Fetch one page of issues for a repository.

        Args:
            owner: Repository owner
            repo: Repository name
            page: Page number to request (None for the first page)

        Returns:
            IssuePage with the raw issue objects and the next page number

        Raises:
            FetchError: On transport failure or a non-2xx status
            DecodeError: If the body is not a JSON list
        """
        url = f"{self.settings.api_url.rstrip('/')}/repos/{owner}/{repo}/issues"
        params: Dict[str, Any] = {"state": self.settings.state, "per_page": self.settings.per_page}
        if page:
            params["page"] = page

        logger.debug(f"GET {url} page={page or 1}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise FetchError(f"GitHub issue list for {owner}/{repo} failed: {e}", status_code=status) from e
        except requests.RequestException as e:
            raise FetchError(f"GitHub issue list for {owner}/{repo} failed: {e}") from e

        try:
            items = response.json()
        except ValueError as e:
            raise DecodeError(f"GitHub returned invalid JSON for {owner}/{repo}: {e}") from e
        if not isinstance(items, list):
            raise DecodeError(f"GitHub issue list for {owner}/{repo} is not a JSON array")

        return IssuePage(items=items, next_page=next_page_from_links(response.links))

    def list_issues(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        """
        Fetch every page of issues for a repository.

        Pages are requested until one carries no next-page cursor; items are
        returned in page order.
        """
        all_issues: List[Dict[str, Any]] = []
        page: Optional[int] = None
        pages = 0
        while True:
            result = self.list_issues_page(owner, repo, page)
            all_issues.extend(result.items)
            pages += 1
            if result.next_page == 0:
                break
            page = result.next_page

        logger.info(f"Fetched {len(all_issues)} issues for {owner}/{repo} in {pages} page(s)")
        return all_issues

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()
