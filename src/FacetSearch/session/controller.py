"""Search session controller.

Owns the per-consumer search state (anchor query, cursor, refinements,
accumulated results) and keeps it consistent across overlapping async
operations.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Generic, Mapping, NoReturn, Optional, Protocol, Sequence, TypeVar

from FacetSearch.core.errors import SessionClosedError, SessionStateError
from FacetSearch.core.models import Refiner, SearchPage, SearchResult
from FacetSearch.core.query import Query, QueryDescriptor, describe_query
from FacetSearch.session.builder import QueryDefaults, build_descriptor
from FacetSearch.session.cursor import FetchMode, PaginationCursor, compute_has_more, merge_results
from FacetSearch.session.parser import Projection, parse_search_response, parse_suggestions
from FacetSearch.session.refinement import RefinementState
from FacetSearch.utils.log import log

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 50


class SearchBackend(Protocol):
    """Asynchronous search capability injected into a session."""

    name: str

    async def execute(self, descriptor: QueryDescriptor) -> Mapping[str, Any]:
        """Run one query and return the raw backend payload."""
        raise NotImplementedError

    async def suggest(self, text: str) -> Mapping[str, Any]:
        """Return ``{"queries": [...]}`` completions for partial query text."""
        raise NotImplementedError

    def close(self) -> None:
        """Release resources held by the backend."""
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class SessionSnapshot(Generic[T]):
    """Immutable view of the observable session state."""

    results: tuple[SearchResult[T], ...]
    total_results: int
    refiners: tuple[Refiner, ...]
    loading: bool
    loading_more: bool
    has_more: bool
    error: Optional[BaseException]
    applied_refinements: Mapping[str, tuple[str, ...]]


Listener = Callable[[SessionSnapshot], None]


class SearchSession(Generic[T]):
    """Faceted search session bound to one consumer.

    ``search`` anchors the session to a query; ``load_more``, ``refetch`` and
    ``apply_refiner`` all work from that anchor. Every search/refetch takes a
    new generation number and only the newest generation may write results,
    so a slow response cannot overwrite the state of a later query.
    ``load_more`` calls are queued behind each other. ``has_more`` is False
    while the displayed results do not belong to the latest query (it is still
    pending or has failed), and after an appended page came back empty even
    though the reported total promised more rows.

    The backend is shared, not owned: ``close`` stops state updates but does
    not close the backend.

    Example::

        async with SearchSession(backend, page_size=20, refiners="FileType") as session:
            await session.search("report")
            for _ in range(4):  # at most five pages
                if not session.has_more:
                    break
                await session.load_more()
    """

    def __init__(
        self,
        backend: SearchBackend,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        select_properties: Sequence[str] = (),
        refiners: Optional[str] = None,
        projection: Optional[Projection[T]] = None,
    ) -> None:
        """Create a session.

        Args:
            backend: Backend used for queries and suggestions.
            page_size: Default rows per page, overridable per ``search``.
            select_properties: Default managed properties for builder queries.
            refiners: Default comma-joined facet names for builder queries.
            projection: Row projection for ``SearchResult.data``.

        Raises:
            ValueError: If ``page_size`` is not a positive integer.
        """
        self._backend = backend
        self._default_page_size = _check_page_size(page_size)
        self._defaults = QueryDefaults.create(select_properties, refiners)
        self._projection = projection

        self._last_query: Optional[Query] = None
        self._cursor = PaginationCursor()
        self._refinement = RefinementState()
        self._results: list[SearchResult[T]] = []
        self._total_results = 0
        self._refiners: tuple[Refiner, ...] = ()
        self._error: Optional[BaseException] = None

        self._pending_replace = 0
        self._loading_more = False
        self._generation = 0
        self._applied_generation = 0
        self._exhausted = False
        self._load_more_lock = asyncio.Lock()
        self._listeners: list[Listener] = []
        self._closed = False

    @property
    def backend(self) -> SearchBackend:
        return self._backend

    @property
    def results(self) -> tuple[SearchResult[T], ...]:
        return tuple(self._results)

    @property
    def total_results(self) -> int:
        return self._total_results

    @property
    def refiners(self) -> tuple[Refiner, ...]:
        return self._refiners

    @property
    def loading(self) -> bool:
        return self._pending_replace > 0

    @property
    def loading_more(self) -> bool:
        return self._loading_more

    @property
    def has_more(self) -> bool:
        if self._applied_generation != self._generation or self._exhausted:
            return False
        return compute_has_more(len(self._results), self._total_results)

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def applied_refinements(self) -> Mapping[str, tuple[str, ...]]:
        return self._refinement.snapshot()

    @property
    def last_query(self) -> Optional[Query]:
        return self._last_query

    @property
    def page_size(self) -> int:
        return self._cursor.page_size or self._default_page_size

    @property
    def closed(self) -> bool:
        return self._closed

    async def search(self, query: Query, *, page_size: Optional[int] = None) -> list[SearchResult[T]]:
        """Run a new query, replacing results and clearing refinements.

        Args:
            query: Query text or builder callback.
            page_size: Page size for this query lineage.

        Returns:
            The fetched first page.
        """
        self._ensure_open()
        size = self._default_page_size if page_size is None else _check_page_size(page_size)

        self._refinement.clear()
        self._last_query = query
        self._cursor.reset(size)
        log.debug("Search started: query=%s page_size=%d", describe_query(query), size)

        page = await self._run_replace(query, size)
        return list(page.results)

    async def load_more(self) -> list[SearchResult[T]]:
        """Fetch the next page of the anchor query and append it.

        Returns an empty list without calling the backend when every row is
        already loaded, or when the current results do not belong to the
        anchor query yet (its search is still pending or has failed).

        Returns:
            Only the newly fetched page.

        Raises:
            SessionStateError: If no search has anchored the session.
        """
        self._ensure_open()
        async with self._load_more_lock:
            self._ensure_open()
            if self._last_query is None:
                self._fail_precondition("No previous search to load more from. Call search() first.")
            if not self._cursor.page_size:
                self._fail_precondition("Cannot load more without a page size. Pass page_size to search().")
            if self._applied_generation != self._generation:
                log.debug("load_more skipped: results do not belong to the latest query yet")
                return []
            if not self.has_more:
                log.debug("load_more skipped: all %d results are loaded", self._total_results)
                return []

            query = self._last_query
            page_size = self._cursor.page_size
            start_row = self._cursor.next_start_row()
            generation = self._generation

            self._error = None
            self._loading_more = True
            self._notify()
            try:
                descriptor = build_descriptor(
                    query,
                    self._defaults,
                    page_size=page_size,
                    start_row=start_row,
                    refinements=self._refinement,
                )
                page = await self._execute(descriptor, start_row=start_row)
                if self._is_current(generation):
                    self._cursor.advance(start_row)
                    self._apply_page(page, FetchMode.APPEND)
                    if not page.results:
                        # TotalRows is an estimate; an empty page ends the lineage
                        self._exhausted = True
                    log.debug("load_more appended %d rows: start_row=%d", len(page.results), start_row)
                else:
                    log.debug("Discarding stale load_more page: start_row=%d", start_row)
                return list(page.results)
            except Exception as error:
                self._record_failure(error, generation)
                raise
            finally:
                if not self._closed:
                    self._loading_more = False
                    self._notify()

    async def refetch(self) -> None:
        """Re-run the anchor query from the first page with current refinements.

        Raises:
            SessionStateError: If no search has anchored the session.
        """
        self._ensure_open()
        if self._last_query is None:
            self._fail_precondition("No previous search to refetch. Call search() first.")
        self._cursor.reset()
        await self._run_replace(self._last_query, self.page_size)

    async def apply_refiner(self, refiner_name: str, refiner_value: str) -> None:
        """Toggle one facet value and refetch with the updated filters.

        Raises:
            SessionStateError: If no search has anchored the session.
        """
        self._ensure_open()
        if self._last_query is None:
            self._fail_precondition("No previous search to apply refiner to. Call search() first.")
        selected = self._refinement.toggle(refiner_name, refiner_value)
        log.debug("Refiner %s: %s=%s", "selected" if selected else "cleared", refiner_name, refiner_value)
        await self.refetch()

    async def suggest(self, text: str) -> list[str]:
        """Return autocomplete suggestions for partial query text.

        Does not touch results, cursor, refiners or loading flags. A failure
        is recorded in ``error`` and re-raised.
        """
        self._ensure_open()
        try:
            payload = await self._backend.suggest(text)
        except Exception as error:
            if not self._closed:
                log.warning("Suggest failed: text=%r error=%s", text, error)
                self._error = error
                self._notify()
            raise
        return parse_suggestions(payload)

    def clear_error(self) -> None:
        self._error = None
        self._notify()

    def set_backend(self, backend: SearchBackend) -> None:
        """Point the session at another backend scope.

        The anchor query, cursor, refinements and results are discarded, and
        responses still in flight from the previous backend are ignored.
        """
        self._ensure_open()
        self._backend = backend
        self._generation += 1
        self._applied_generation = self._generation
        self._last_query = None
        self._cursor.clear()
        self._refinement.clear()
        self._results = []
        self._exhausted = False
        self._total_results = 0
        self._refiners = ()
        self._error = None
        log.debug("Session backend switched: backend=%s", getattr(backend, "name", "unknown"))
        self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with a snapshot after every state change.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> SessionSnapshot[T]:
        return SessionSnapshot(
            results=tuple(self._results),
            total_results=self._total_results,
            refiners=self._refiners,
            loading=self.loading,
            loading_more=self._loading_more,
            has_more=self.has_more,
            error=self._error,
            applied_refinements=MappingProxyType(dict(self._refinement.snapshot())),
        )

    def close(self) -> None:
        """Stop applying updates; in-flight requests finish but are ignored."""
        self._closed = True
        self._listeners.clear()

    async def __aenter__(self) -> SearchSession[T]:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    async def _run_replace(self, query: Query, page_size: int) -> SearchPage[T]:
        """Fetch the first page of ``query`` and replace results if still current."""
        self._generation += 1
        generation = self._generation
        self._error = None
        self._pending_replace += 1
        self._notify()
        try:
            descriptor = build_descriptor(
                query,
                self._defaults,
                page_size=page_size,
                start_row=0,
                refinements=self._refinement,
            )
            page = await self._execute(descriptor, start_row=0)
            if self._is_current(generation):
                self._applied_generation = generation
                self._exhausted = False
                self._apply_page(page, FetchMode.REPLACE)
                log.debug("Search applied: rows=%d total=%d", len(page.results), page.total_results)
            else:
                log.debug("Discarding stale search response: generation=%d latest=%d", generation, self._generation)
            return page
        except Exception as error:
            self._record_failure(error, generation)
            raise
        finally:
            if not self._closed:
                self._pending_replace -= 1
                self._notify()

    async def _execute(self, descriptor: QueryDescriptor, *, start_row: int) -> SearchPage[T]:
        raw = await self._backend.execute(descriptor)
        return parse_search_response(raw, projection=self._projection, start_row=start_row)

    def _apply_page(self, page: SearchPage[T], mode: FetchMode) -> None:
        self._results = merge_results(self._results, page.results, mode)
        self._total_results = page.total_results
        self._refiners = page.refiners

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _record_failure(self, error: Exception, generation: int) -> None:
        """Mirror a failure into ``error`` unless a newer operation owns the state."""
        if not self._is_current(generation):
            log.debug("Ignoring failure of superseded request: %s", error)
            return
        log.warning("Search failed: %s", error)
        self._error = error

    def _fail_precondition(self, message: str) -> NoReturn:
        error = SessionStateError(message)
        self._error = error
        self._notify()
        raise error

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Search session is closed")

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as error:  # noqa: BLE001 - listener failure must be isolated
                log.warning("Session listener failed: %s", error)


def _check_page_size(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"page_size must be a positive integer, got {value!r}")
    return value
