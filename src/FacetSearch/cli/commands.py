"""Command implementations for the FacetSearch CLI.

Encapsulates the session-driving logic of each command, separated from
CLI parameter handling and output formatting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from FacetSearch.core.query import SearchQueryBuilder, SearchVerticals
from FacetSearch.renderers import OutputWriter
from FacetSearch.renderers.mapper import map_session_to_view
from FacetSearch.session.controller import SearchSession
from FacetSearch.utils.log import log


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """Parameters of one ``search`` CLI invocation.

    Attributes:
        text: Free-text query.
        pages: Number of pages to load (first page included).
        page_size: Optional page size override.
        refinements: (facet, value) pairs toggled after the first page.
        vertical: Optional vertical name (see ``SearchVerticals``).
    """

    text: str
    pages: int = 1
    page_size: Optional[int] = None
    refinements: tuple[tuple[str, str], ...] = ()
    vertical: Optional[str] = None


@dataclass(slots=True)
class SearchCommand:
    """Run one query through a session: search, refine, then page forward."""

    session: SearchSession[Any]
    output_writer: OutputWriter
    request: SearchRequest

    async def execute(self) -> None:
        """Execute the search and hand the final session state to the writer."""
        request = self.request
        source_id = SearchVerticals.by_name(request.vertical) if request.vertical else None

        def build_query(builder: SearchQueryBuilder) -> SearchQueryBuilder:
            builder.text(request.text)
            if source_id:
                builder.source_id(source_id)
            return builder

        log.info("query=%r vertical=%s", request.text, request.vertical or "all")
        await self.session.search(build_query, page_size=request.page_size)
        log.info("Fetched %d of %d results", len(self.session.results), self.session.total_results)

        for name, value in request.refinements:
            await self.session.apply_refiner(name, value)
            log.info("Refined %s=%s: %d results", name, value, self.session.total_results)

        for page in range(2, request.pages + 1):
            if not self.session.has_more:
                break
            fetched = await self.session.load_more()
            log.debug("Loaded page %d with %d results", page, len(fetched))

        self.output_writer.write_search_result(map_session_to_view(self.session, request.text))


@dataclass(slots=True)
class SuggestCommand:
    """Fetch autocomplete suggestions for partial query text."""

    session: SearchSession[Any]
    output_writer: OutputWriter
    text: str

    async def execute(self) -> None:
        suggestions = await self.session.suggest(self.text)
        log.debug("Fetched %d suggestions", len(suggestions))
        self.output_writer.write_suggestions(self.text, suggestions)
