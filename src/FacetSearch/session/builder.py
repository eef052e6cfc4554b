"""Translate a logical query into a backend-ready ``QueryDescriptor``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from FacetSearch.core.query import Query, QueryDescriptor, SearchQueryBuilder, normalize_terms
from FacetSearch.session.refinement import RefinementState


@dataclass(frozen=True, slots=True)
class QueryDefaults:
    """Session-wide defaults seeded into builder-callback queries.

    Attributes:
        select_properties: Managed properties returned for every row.
        refiners: Comma-joined facet names requested with every query.
    """

    select_properties: tuple[str, ...] = ()
    refiners: Optional[str] = None

    @classmethod
    def create(cls, select_properties: Sequence[str] = (), refiners: Optional[str] = None) -> QueryDefaults:
        cleaned = refiners.strip() if refiners else None
        return cls(select_properties=normalize_terms(select_properties), refiners=cleaned or None)


def build_descriptor(
    query: Query,
    defaults: QueryDefaults,
    *,
    page_size: int,
    start_row: int = 0,
    refinements: RefinementState | None = None,
) -> QueryDescriptor:
    """Build the descriptor for one page of ``query``.

    String queries are raw: the text becomes the full-text clause and the
    session defaults are not applied. Builder callbacks receive a builder that
    already carries the defaults, so they can read, override or extend them.
    Pagination and the selected refinements are applied after the callback.

    Args:
        query: Query text or builder callback.
        defaults: Session defaults for builder callbacks.
        page_size: Rows per page.
        start_row: Offset of the first requested row.
        refinements: Selected facet values to filter by.

    Returns:
        Frozen descriptor ready for a backend.
    """
    if isinstance(query, str):
        builder = SearchQueryBuilder(query)
    else:
        seeded = SearchQueryBuilder("")
        if defaults.select_properties:
            seeded.select_properties(*defaults.select_properties)
        if defaults.refiners:
            seeded.refiners(defaults.refiners)
        returned = query(seeded)
        builder = returned if returned is not None else seeded

    builder.row_limit(page_size)
    if start_row > 0:
        builder.start_row(start_row)

    if refinements is not None and not refinements.is_empty:
        builder.add_refinement_filters(*refinements.to_filter_expressions())

    return builder.build()
