"""Mapper from session state to display view models."""

from __future__ import annotations

from typing import Any, Mapping

from FacetSearch.core.models import Refiner, SearchResult
from FacetSearch.renderers.view_models import RefinerEntryView, RefinerView, ResultView, SearchView
from FacetSearch.session.controller import SearchSession


def map_result_to_view(result: SearchResult[Any]) -> ResultView:
    """Map one ``SearchResult`` to a display view.

    Field values are stringified from the raw row so any projection type
    can be rendered.
    """
    fields = {key: (None if value is None else str(value)) for key, value in result.raw.items()}
    return ResultView(
        id=result.id,
        rank=result.rank,
        title=fields.get("Title") or result.id,
        path=fields.get("Path"),
        fields=fields,
    )


def map_refiner_to_view(refiner: Refiner, selected: Mapping[str, tuple[str, ...]]) -> RefinerView:
    chosen = selected.get(refiner.name, ())
    return RefinerView(
        name=refiner.name,
        entries=tuple(
            RefinerEntryView(value=entry.value, count=entry.count, selected=entry.value in chosen)
            for entry in refiner.entries
        ),
    )


def map_session_to_view(session: SearchSession[Any], query: str) -> SearchView:
    """Capture the current session state as a ``SearchView``."""
    applied = session.applied_refinements
    return SearchView(
        query=query,
        total_results=session.total_results,
        has_more=session.has_more,
        results=tuple(map_result_to_view(result) for result in session.results),
        refiners=tuple(map_refiner_to_view(refiner, applied) for refiner in session.refiners),
        applied_refinements={name: tuple(values) for name, values in applied.items()},
    )
