from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Generic, Mapping, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class SearchResult(Generic[T]):
    """One normalized search hit.

    Attributes:
        id: Stable identifier derived from ``DocId`` or ``Path``.
        data: Typed projection of the selected fields.
        raw: The flattened backend row the projection was built from.
        rank: Integer relevance rank if the backend reported one.
    """

    id: str
    data: T
    raw: Mapping[str, Any]
    rank: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "raw", MappingProxyType(dict(self.raw)))


@dataclass(frozen=True, slots=True)
class RefinerEntry:
    """One candidate value of a facet with its match count."""

    value: str
    count: int
    token: str = ""


@dataclass(frozen=True, slots=True)
class Refiner:
    """Facet reported by the backend for the current query."""

    name: str
    entries: tuple[RefinerEntry, ...] = ()

    def entry(self, value: str) -> Optional[RefinerEntry]:
        """Return the entry for a value, if the backend reported it."""
        for item in self.entries:
            if item.value == value:
                return item
        return None


@dataclass(frozen=True, slots=True)
class SearchPage(Generic[T]):
    """Parsed response of a single backend fetch."""

    results: tuple[SearchResult[T], ...]
    total_results: int
    refiners: tuple[Refiner, ...] = ()
