"""SharePoint search REST client.

Issues blocking HTTP calls against the site-scoped search endpoints and
returns decoded JSON. Retries are intentionally left to the caller.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import requests

from FacetSearch.sources.sharepoint.query import quote_querytext
from FacetSearch.utils.log import log

POSTQUERY_PATH = "/_api/search/postquery"
SUGGEST_PATH = "/_api/search/suggest"
DEFAULT_TIMEOUT = 30.0

HEADERS = {
    "User-Agent": "facet-search/0.1",
    "Accept": "application/json;odata=nometadata",
}


class SharePointSearchClient:
    """Low-level HTTP client for the SharePoint search REST API.

    Responsible only for making requests and decoding JSON; compiling
    queries and parsing results are handled elsewhere.
    """

    def __init__(self, site_url: str, *, access_token: str = "", timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize the client with a reusable HTTP session.

        Args:
            site_url: Absolute URL of the site that scopes every query.
            access_token: Pre-acquired bearer token; empty for anonymous calls.
            timeout: Request timeout in seconds.
        """
        self.site_url = site_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(HEADERS)
        if access_token:
            self._session.headers["Authorization"] = f"Bearer {access_token}"

    def close(self) -> None:
        """Close the underlying HTTP session and release pooled connections."""
        self._session.close()

    def __enter__(self) -> SharePointSearchClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def post_query(self, body: Mapping[str, Any], *, timeout: Optional[float] = None) -> dict[str, Any]:
        """Run a search query.

        Args:
            body: Compiled postquery request body.
            timeout: Optional request timeout override in seconds.

        Returns:
            Decoded JSON payload.

        Raises:
            requests.RequestException: On transport failure or non-2xx status.
        """
        response = self._session.post(
            self.site_url + POSTQUERY_PATH,
            json=body,
            headers={"Content-Type": "application/json;odata=nometadata"},
            timeout=timeout or self.timeout,
        )
        return self._decode(response)

    def fetch_suggestions(self, text: str, *, timeout: Optional[float] = None) -> dict[str, Any]:
        """Fetch query suggestions for partial text.

        Raises:
            requests.RequestException: On transport failure or non-2xx status.
        """
        response = self._session.get(
            self.site_url + SUGGEST_PATH,
            params={"querytext": quote_querytext(text)},
            timeout=timeout or self.timeout,
        )
        return self._decode(response)

    def _decode(self, response: requests.Response) -> dict[str, Any]:
        log.debug("SharePoint search %s status=%d", response.url, response.status_code)
        response.raise_for_status()
        payload = response.json()
        return payload if isinstance(payload, dict) else {}
