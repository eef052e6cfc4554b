"""Console text output renderers.

Renders a ``SearchView`` into human-friendly text and logs it line by line.
"""

from __future__ import annotations

from typing import Sequence

from FacetSearch.renderers.base import OutputWriter
from FacetSearch.renderers.view_models import SearchView
from FacetSearch.utils.log import log


def render_text(view: SearchView) -> str:
    """Render a search view into a text block.

    Args:
        view: Search outcome to render.

    Returns:
        A formatted string ready to be printed.
    """
    lines: list[str] = [
        f"Query: {view.query}",
        f"Showing {len(view.results)} of {view.total_results} results" + (" (more available)" if view.has_more else ""),
    ]
    if view.applied_refinements:
        applied = "; ".join(f"{name}={', '.join(values)}" for name, values in view.applied_refinements.items())
        lines.append(f"Filters: {applied}")
    lines.append("")

    for idx, result in enumerate(view.results, start=1):
        lines.append(f"{idx}. {result.title}")
        if result.path:
            lines.append(f"   Path: {result.path}")
        extra = {
            key: value
            for key, value in result.fields.items()
            if key not in {"Title", "Path", "DocId", "Rank"} and value
        }
        for key, value in extra.items():
            lines.append(f"   {key}: {value}")

    if view.refiners:
        lines.append("")
        lines.append("Refiners:")
        for refiner in view.refiners:
            lines.append(f"  {refiner.name}")
            for entry in refiner.entries:
                marker = "*" if entry.selected else " "
                lines.append(f"   {marker} {entry.value} ({entry.count})")
    return "\n".join(lines).rstrip() + "\n"


class ConsoleOutputWriter(OutputWriter):
    """Write results to console via logging."""

    def write_search_result(self, view: SearchView) -> None:
        for line in render_text(view).splitlines():
            log.info(line)

    def write_suggestions(self, text: str, suggestions: Sequence[str]) -> None:
        if not suggestions:
            log.info("No suggestions for %r", text)
            return
        log.info("Suggestions for %r:", text)
        for suggestion in suggestions:
            log.info("  %s", suggestion)

    def finalize(self, action: str) -> None:
        """No-op for console output."""
