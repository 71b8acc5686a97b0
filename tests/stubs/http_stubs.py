"""Stand-ins for ``requests`` responses used by client and fetcher tests."""

from typing import Any, Dict, Optional
from unittest.mock import MagicMock

import requests


def make_response(
    json_data: Any = None,
    status_code: int = 200,
    links: Optional[Dict[str, Dict[str, str]]] = None,
    invalid_json: bool = False,
) -> MagicMock:
    """Build a stand-in for ``requests.Response``."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.links = links or {}
    if invalid_json:
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    else:
        response.json.return_value = json_data
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Client Error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


def next_link(url: str) -> Dict[str, Dict[str, str]]:
    """Parsed ``Link`` header with a single ``rel="next"`` entry."""
    return {"next": {"url": url, "rel": "next"}}


def mock_session() -> MagicMock:
    """A ``requests.Session`` stand-in with a real headers dict."""
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    return session
