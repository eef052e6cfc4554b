"""Faceted search session layer.

Exposes the session controller together with the query, cursor, refinement
and parsing building blocks it is made of, plus a factory that builds a
session from application configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from FacetSearch.session.builder import QueryDefaults, build_descriptor
from FacetSearch.session.controller import (
    DEFAULT_PAGE_SIZE,
    SearchBackend,
    SearchSession,
    SessionSnapshot,
)
from FacetSearch.session.cursor import FetchMode, PaginationCursor
from FacetSearch.session.parser import (
    dataclass_projection,
    default_projection,
    parse_search_response,
    parse_suggestions,
)
from FacetSearch.session.refinement import RefinementState

if TYPE_CHECKING:
    from FacetSearch.config import AppConfig


def create_search_session(config: AppConfig, backend: Optional[SearchBackend] = None) -> SearchSession:
    """Create a search session with configured defaults.

    Args:
        config: Application configuration containing session defaults.
        backend: Backend to use; built from ``config.backend`` when omitted.

    Returns:
        A fresh SearchSession.
    """
    if backend is None:
        from FacetSearch.sources.registry import build_backend

        backend = build_backend(config.backend.name, config=config)

    return SearchSession(
        backend,
        page_size=config.session.page_size,
        select_properties=config.session.select_properties,
        refiners=config.session.refiners,
    )


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "FetchMode",
    "PaginationCursor",
    "QueryDefaults",
    "RefinementState",
    "SearchBackend",
    "SearchSession",
    "SessionSnapshot",
    "build_descriptor",
    "create_search_session",
    "dataclass_projection",
    "default_projection",
    "parse_search_response",
    "parse_suggestions",
]
