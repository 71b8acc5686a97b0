"""Stack Exchange API client for time-windowed question searches."""

import logging
from typing import Any, Dict, List, Optional

import requests

from feed_ingestor.config import StackExchangeConfig
from feed_ingestor.errors import DecodeError, FetchError

logger = logging.getLogger(__name__)


class StackExchangeClient:
    """Wrapper around ``requests`` for the ``/questions`` endpoint."""

    def __init__(
        self,
        settings: Optional[StackExchangeConfig] = None,
        key: str = "",
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or StackExchangeConfig()
        self.key = key
        self.timeout = timeout
        self.session = session or requests.Session()

    def build_params(self, tag: str, from_date: int) -> Dict[str, Any]:
        """
        Build the query string for a question search.

        Args:
            tag: Technology tag to filter on
            from_date: Unix timestamp; only questions active since then are returned

        Returns:
            Query parameters for ``GET /questions``
        """
        params: Dict[str, Any] = {
            "order": "desc",
            "sort": "activity",
            "tagged": tag,
            "site": self.settings.site,
            "fromdate": from_date,
        }
        if self.settings.filter:
            params["filter"] = self.settings.filter
        if self.key:
            params["key"] = self.key
        return params

    def search_questions(self, tag: str, from_date: int) -> List[Any]:
        """
        Run one question search and return the raw ``items`` list.

        Args:
            tag: Technology tag to filter on
            from_date: Unix timestamp for the start of the activity window

        Returns:
            The decoded ``items`` array

        Raises:
            FetchError: On transport failure, a non-2xx status or an API error wrapper
            DecodeError: If the body is not an object with an ``items`` array
        """
        url = f"{self.settings.api_url.rstrip('/')}/questions"
        params = self.build_params(tag, from_date)

        logger.debug(f"GET {url} tagged={tag} fromdate={from_date}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise FetchError(f"Question search for {tag} failed: {e}", status_code=status) from e
        except requests.RequestException as e:
            raise FetchError(f"Question search for {tag} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise DecodeError(f"Question search for {tag} returned invalid JSON: {e}") from e
        if not isinstance(body, dict):
            raise DecodeError(f"Question search for {tag} did not return a JSON object")

        if "error_id" in body:
            raise FetchError(
                f"Question search for {tag} failed: {body.get('error_name')}: {body.get('error_message')}",
                status_code=body.get("error_id"),
            )

        items = body.get("items")
        if not isinstance(items, list):
            raise DecodeError(f"Question search for {tag} has no items array")

        if "quota_remaining" in body:
            logger.debug(f"Stack Exchange quota remaining: {body['quota_remaining']}")

        return items

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()
