"""Base classes for output writers.

Separates command control flow from presentation so commands can be tested
without touching the console or the filesystem.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from FacetSearch.renderers.view_models import SearchView


class OutputWriter(ABC):
    """Abstract base class for command output writers."""

    @abstractmethod
    def write_search_result(self, view: SearchView) -> None:
        """Write the outcome of one search run."""

    @abstractmethod
    def write_suggestions(self, text: str, suggestions: Sequence[str]) -> None:
        """Write autocomplete suggestions for ``text``."""

    @abstractmethod
    def finalize(self, action: str) -> None:
        """Finalize output (e.g., flush accumulated results to a file).

        Args:
            action: The CLI command name (e.g., 'search').
        """


@dataclass(slots=True)
class MultiOutputWriter(OutputWriter):
    """Delegate output to multiple writers."""

    writers: Sequence[OutputWriter]

    def write_search_result(self, view: SearchView) -> None:
        for writer in self.writers:
            writer.write_search_result(view)

    def write_suggestions(self, text: str, suggestions: Sequence[str]) -> None:
        for writer in self.writers:
            writer.write_suggestions(text, suggestions)

    def finalize(self, action: str) -> None:
        for writer in self.writers:
            writer.finalize(action)
