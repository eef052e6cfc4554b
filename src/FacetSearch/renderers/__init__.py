"""Output renderers for command results.

Provides the OutputWriter abstraction, console and JSON implementations,
and a factory that instantiates writers from configuration.
"""

from __future__ import annotations

from FacetSearch.config import AppConfig
from FacetSearch.renderers.base import MultiOutputWriter, OutputWriter
from FacetSearch.renderers.console import ConsoleOutputWriter, render_text
from FacetSearch.renderers.json import JsonFileWriter


def create_output_writer(config: AppConfig) -> OutputWriter:
    """Create output writer based on config.

    Args:
        config: Application configuration.

    Returns:
        Writer fanning out to every configured format.
    """
    writers: list[OutputWriter] = []
    if "console" in config.output.formats:
        writers.append(ConsoleOutputWriter())
    if "json" in config.output.formats:
        writers.append(JsonFileWriter(config.output.base_dir))

    if not writers:
        raise ValueError("No output writers configured")
    return MultiOutputWriter(writers)


__all__ = [
    "OutputWriter",
    "ConsoleOutputWriter",
    "JsonFileWriter",
    "MultiOutputWriter",
    "render_text",
    "create_output_writer",
]
