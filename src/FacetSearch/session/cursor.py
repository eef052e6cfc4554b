"""Pagination cursor rules for a search session.

Search and refetch reset the cursor and replace results; load-more advances
it by the page size and appends.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, TypeVar

from FacetSearch.core.errors import SessionStateError

T = TypeVar("T")


class FetchMode(str, Enum):
    """How a fetched page merges into the session results."""

    REPLACE = "replace"
    APPEND = "append"


@dataclass(slots=True)
class PaginationCursor:
    """Offset of the next unfetched row for the current query lineage.

    Attributes:
        page_size: Page size of the current lineage; None before the first search.
        start_row: Start row of the last successfully applied page.
    """

    page_size: Optional[int] = None
    start_row: int = 0

    def reset(self, page_size: Optional[int] = None) -> None:
        """Rewind to the first page, optionally switching the page size."""
        if page_size is not None:
            self.page_size = page_size
        self.start_row = 0

    def next_start_row(self) -> int:
        """Return the start row of the page after the current one.

        Raises:
            SessionStateError: If no page size was ever established.
        """
        if not self.page_size:
            raise SessionStateError("Cannot load more without an established page size")
        return self.start_row + self.page_size

    def advance(self, start_row: int) -> None:
        """Commit a successfully appended page."""
        self.start_row = start_row

    def clear(self) -> None:
        self.page_size = None
        self.start_row = 0


def merge_results(current: Sequence[T], page: Sequence[T], mode: FetchMode) -> list[T]:
    """Merge a fetched page into the current results according to ``mode``."""
    if mode is FetchMode.APPEND:
        return [*current, *page]
    return list(page)


def compute_has_more(merged_length: int, total_results: int) -> bool:
    """Return whether rows remain beyond the merged result list."""
    return merged_length < total_results
