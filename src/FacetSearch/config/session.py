"""Session domain configuration (query defaults)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from FacetSearch.config.common import (
    expect_int,
    expect_optional_str,
    expect_str_list,
    get_optional_value,
    get_section,
)
from FacetSearch.core.query import SearchVerticals, normalize_terms
from FacetSearch.session.controller import DEFAULT_PAGE_SIZE


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Store validated defaults applied to every search session.

    Attributes:
        page_size: Rows per page.
        select_properties: Managed properties returned per row.
        refiners: Comma-joined facet names, or None for no facets.
        vertical: Optional vertical name (see ``SearchVerticals``).
    """

    page_size: int
    select_properties: tuple[str, ...]
    refiners: str | None
    vertical: str | None


def load_session(raw: Mapping[str, Any]) -> SessionConfig:
    """Load the ``session`` section; the section itself is optional."""
    section = get_section(raw, "session", required=False)
    refiners = expect_optional_str(get_optional_value(section, "refiners", None), "session.refiners")
    vertical = expect_optional_str(get_optional_value(section, "vertical", None), "session.vertical")
    return SessionConfig(
        page_size=expect_int(get_optional_value(section, "page_size", DEFAULT_PAGE_SIZE), "session.page_size"),
        select_properties=normalize_terms(
            expect_str_list(get_optional_value(section, "select_properties", []), "session.select_properties")
        ),
        refiners=_normalize_refiners(refiners),
        vertical=(vertical or "").strip() or None,
    )


def _normalize_refiners(value: str | None) -> str | None:
    """Strip blanks around comma-separated facet names; empty means none."""
    if value is None:
        return None
    return ",".join(normalize_terms(value.split(","))) or None


def check_session(config: SessionConfig) -> None:
    """Validate session domain constraints.

    Raises:
        ValueError: If values violate session constraints.
    """
    if config.page_size <= 0:
        raise ValueError("session.page_size must be positive")
    if config.vertical is not None:
        try:
            SearchVerticals.by_name(config.vertical)
        except ValueError as error:
            raise ValueError(f"session.vertical: {error}") from error
