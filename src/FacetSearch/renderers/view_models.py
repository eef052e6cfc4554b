"""View models for output rendering.

Display-oriented snapshots of a search session, decoupled from the live
session object so writers can accumulate and serialize them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence


@dataclass(frozen=True, slots=True)
class ResultView:
    """One search hit prepared for display.

    Attributes:
        id: Stable result id.
        rank: Integer relevance rank, if reported.
        title: ``Title`` field or the id when missing.
        path: ``Path`` field if present.
        fields: All row fields as strings (None kept as None).
    """

    id: str
    rank: int | None
    title: str
    path: str | None
    fields: Mapping[str, str | None]


@dataclass(frozen=True, slots=True)
class RefinerEntryView:
    value: str
    count: int
    selected: bool


@dataclass(frozen=True, slots=True)
class RefinerView:
    name: str
    entries: Sequence[RefinerEntryView]


@dataclass(frozen=True, slots=True)
class SearchView:
    """Outcome of one CLI search run.

    Attributes:
        query: The query text as typed.
        total_results: Backend-reported total for query plus filters.
        has_more: Whether rows remain beyond ``results``.
        results: Loaded results in rank order.
        refiners: Facets of the last fetch with selection flags.
        applied_refinements: Selected values per facet.
    """

    query: str
    total_results: int
    has_more: bool
    results: Sequence[ResultView]
    refiners: Sequence[RefinerView]
    applied_refinements: Mapping[str, Sequence[str]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "total_results": self.total_results,
            "has_more": self.has_more,
            "applied_refinements": {name: list(values) for name, values in self.applied_refinements.items()},
            "results": [
                {"id": view.id, "rank": view.rank, "title": view.title, "path": view.path, "fields": dict(view.fields)}
                for view in self.results
            ],
            "refiners": [
                {
                    "name": refiner.name,
                    "entries": [
                        {"value": entry.value, "count": entry.count, "selected": entry.selected}
                        for entry in refiner.entries
                    ],
                }
                for refiner in self.refiners
            ],
        }
