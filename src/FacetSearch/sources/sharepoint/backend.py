"""SharePoint search backend adapter."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import requests

from FacetSearch.core.errors import SearchBackendError
from FacetSearch.core.query import QueryDescriptor
from FacetSearch.sources.sharepoint.client import SharePointSearchClient
from FacetSearch.sources.sharepoint.query import compile_postquery_body, extract_suggest_queries


@dataclass(slots=True)
class SharePointSearchBackend:
    """Async search backend on top of the blocking SharePoint client.

    Each call runs in a worker thread so the event loop keeps serving other
    session operations while a request is in flight.
    """

    client: SharePointSearchClient
    name: str = "sharepoint"

    async def execute(self, descriptor: QueryDescriptor) -> Mapping[str, Any]:
        """Run a compiled query and return the raw postquery payload.

        Raises:
            SearchBackendError: If the request fails.
        """
        body = compile_postquery_body(descriptor)
        return await self._call(self.client.post_query, body)

    async def suggest(self, text: str) -> Mapping[str, Any]:
        """Return ``{"queries": [...]}`` for partial query text.

        Raises:
            SearchBackendError: If the request fails.
        """
        payload = await self._call(self.client.fetch_suggestions, text)
        return {"queries": extract_suggest_queries(payload)}

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.client.close()

    async def _call(self, func: Callable[..., dict[str, Any]], *args: Any) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(func, *args)
        except requests.HTTPError as error:
            status_code = getattr(error.response, "status_code", None)
            raise SearchBackendError(
                f"SharePoint search request failed: HTTP {status_code}",
                status_code=status_code,
            ) from error
        except requests.RequestException as error:
            raise SearchBackendError(f"SharePoint search request failed: {error}") from error
