from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Union


class SearchVerticals:
    """Well-known result source ids used to scope a query to one content type.

    ``ALL`` means no result source filtering.

    Example::

        session.search(lambda b: b.text("john").source_id(SearchVerticals.PEOPLE))
    """

    ALL: Optional[str] = None
    PEOPLE = "b09a7990-05ea-4af9-81ef-edfab16c4e31"
    VIDEOS = "38403c8c-3975-41a8-826e-717f2d41568a"
    SITES = "e1327b9c-2b8c-4b23-99c9-3730cb29c3f7"
    DOCUMENTS = "8413cd39-2156-4e00-b54d-11efd9abdb89"
    CONVERSATIONS = "6e71030e-5e16-4406-9bff-9c1829843083"
    PAGES = "5e34578e-4d68-4783-8c79-1f07d10bed4f"

    @classmethod
    def by_name(cls, name: str) -> Optional[str]:
        """Resolve a vertical by case-insensitive name.

        Raises:
            ValueError: If the name is not a known vertical.
        """
        key = name.strip().upper()
        if key not in _VERTICAL_NAMES:
            raise ValueError(f"Unknown search vertical: {name}")
        return getattr(cls, key)


_VERTICAL_NAMES = ("ALL", "PEOPLE", "VIDEOS", "SITES", "DOCUMENTS", "CONVERSATIONS", "PAGES")


@dataclass(frozen=True, slots=True)
class SortSpec:
    """Sort instruction for one managed property.

    Attributes:
        property: Managed property name.
        direction: 0 for ascending, 1 for descending.
    """

    property: str
    direction: int = 0


@dataclass(frozen=True, slots=True)
class QueryDescriptor:
    """Backend-ready description of one search request.

    Produced by ``SearchQueryBuilder.build`` and consumed by a search backend.
    ``start_row`` is None for the first page.
    """

    text: str = ""
    query_template: Optional[str] = None
    select_properties: tuple[str, ...] = ()
    refiners: Optional[str] = None
    refinement_filters: tuple[str, ...] = ()
    row_limit: Optional[int] = None
    start_row: Optional[int] = None
    source_id: Optional[str] = None
    sort_list: tuple[SortSpec, ...] = ()
    trim_duplicates: Optional[bool] = None
    culture: Optional[int] = None


@dataclass(slots=True)
class SearchQueryBuilder:
    """Fluent builder for ``QueryDescriptor``.

    Every setter mutates the builder and returns it, so calls can be chained::

        SearchQueryBuilder("report").select_properties("Title", "Path").row_limit(20)
    """

    _text: str = ""
    _query_template: Optional[str] = None
    _select_properties: list[str] = field(default_factory=list)
    _refiners: Optional[str] = None
    _refinement_filters: list[str] = field(default_factory=list)
    _row_limit: Optional[int] = None
    _start_row: Optional[int] = None
    _source_id: Optional[str] = None
    _sort_list: list[SortSpec] = field(default_factory=list)
    _trim_duplicates: Optional[bool] = None
    _culture: Optional[int] = None

    def text(self, value: str) -> SearchQueryBuilder:
        self._text = value
        return self

    def query_template(self, value: str) -> SearchQueryBuilder:
        self._query_template = value
        return self

    def select_properties(self, *names: str) -> SearchQueryBuilder:
        """Replace the list of managed properties returned per row."""
        self._select_properties = [name for name in names if name]
        return self

    def refiners(self, value: str) -> SearchQueryBuilder:
        """Set the comma-joined list of facet names to request."""
        self._refiners = value
        return self

    def refinement_filters(self, *filters: str) -> SearchQueryBuilder:
        """Replace the refinement filter expressions."""
        self._refinement_filters = [item for item in filters if item]
        return self

    def add_refinement_filters(self, *filters: str) -> SearchQueryBuilder:
        """Append refinement filter expressions to the existing ones."""
        self._refinement_filters.extend(item for item in filters if item)
        return self

    def row_limit(self, value: int) -> SearchQueryBuilder:
        self._row_limit = value
        return self

    def start_row(self, value: int) -> SearchQueryBuilder:
        self._start_row = value
        return self

    def source_id(self, value: Optional[str]) -> SearchQueryBuilder:
        self._source_id = value
        return self

    def sort_list(self, *sorts: SortSpec) -> SearchQueryBuilder:
        self._sort_list = list(sorts)
        return self

    def trim_duplicates(self, value: bool) -> SearchQueryBuilder:
        self._trim_duplicates = value
        return self

    def culture(self, lcid: int) -> SearchQueryBuilder:
        self._culture = lcid
        return self

    def build(self) -> QueryDescriptor:
        """Freeze the current builder state into a descriptor."""
        return QueryDescriptor(
            text=self._text,
            query_template=self._query_template,
            select_properties=tuple(self._select_properties),
            refiners=self._refiners,
            refinement_filters=tuple(self._refinement_filters),
            row_limit=self._row_limit,
            start_row=self._start_row,
            source_id=self._source_id,
            sort_list=tuple(self._sort_list),
            trim_duplicates=self._trim_duplicates,
            culture=self._culture,
        )


QueryBuilderFn = Callable[[SearchQueryBuilder], Optional[SearchQueryBuilder]]
"""Callback that customizes a pre-seeded builder.

Returning None means "use the builder I was given"."""

Query = Union[str, QueryBuilderFn]


def describe_query(query: Query) -> str:
    """Return a short, log-friendly label for a query."""
    if isinstance(query, str):
        return repr(query)
    return f"<builder {getattr(query, '__name__', type(query).__name__)}>"


def normalize_terms(values: Sequence[str]) -> tuple[str, ...]:
    """Strip names and drop empty entries while preserving order."""
    out: list[str] = []
    for value in values:
        text = str(value).strip()
        if text:
            out.append(text)
    return tuple(out)
