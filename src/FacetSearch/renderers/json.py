"""JSON output renderers.

Accumulates command results and writes them to a timestamped JSON file.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

from FacetSearch.renderers.base import OutputWriter
from FacetSearch.renderers.view_models import SearchView
from FacetSearch.utils.log import log


class JsonFileWriter(OutputWriter):
    """Accumulate results and write to a JSON file on finalize."""

    def __init__(self, base_dir: str) -> None:
        """Initialize JSON writer.

        Args:
            base_dir: Base output directory; files go to ``<base_dir>/json``.
        """
        self.output_dir = Path(base_dir) / "json"
        self.entries: list[dict[str, Any]] = []

    def write_search_result(self, view: SearchView) -> None:
        self.entries.append({"type": "search", **view.to_dict()})

    def write_suggestions(self, text: str, suggestions: Sequence[str]) -> None:
        self.entries.append({"type": "suggest", "text": text, "suggestions": list(suggestions)})

    def finalize(self, action: str) -> None:
        """Write accumulated entries to ``<action>_<timestamp>.json``.

        Args:
            action: The CLI command name (used in filename).
        """
        if not self.entries:
            return
        payload = json.dumps(self.entries, ensure_ascii=False, indent=2)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = self.output_dir / f"{action}_{timestamp}.json"
        output_path.write_text(payload, encoding="utf-8")
        log.info("JSON saved to %s", output_path)
