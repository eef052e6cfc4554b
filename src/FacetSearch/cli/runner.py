"""Command runner for coordinating CLI execution.

Manages logging configuration, component lifecycle, the event loop, and
error handling for command execution.
"""

from __future__ import annotations

import asyncio

import click

from FacetSearch.cli.commands import SearchCommand, SearchRequest, SuggestCommand
from FacetSearch.config import AppConfig
from FacetSearch.renderers import create_output_writer
from FacetSearch.session import create_search_session
from FacetSearch.sources.registry import build_backend
from FacetSearch.utils.log import configure_logging, log


class CommandRunner:
    """Orchestrates command execution with proper resource management."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def run_search(self, action: str, request: SearchRequest) -> None:
        """Execute the search command.

        Args:
            action: The CLI command name (e.g., 'search').
            request: Parsed command parameters.

        Raises:
            click.Abort: When the search fails.
        """
        self._configure_logging(action)
        self._run(
            action,
            lambda session, writer: SearchCommand(session=session, output_writer=writer, request=request),
        )

    def run_suggest(self, action: str, text: str) -> None:
        """Execute the suggest command.

        Raises:
            click.Abort: When the suggest call fails.
        """
        self._configure_logging(action)
        self._run(
            action,
            lambda session, writer: SuggestCommand(session=session, output_writer=writer, text=text),
        )

    def _configure_logging(self, action: str) -> None:
        log_path = configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
        if log_path is not None:
            log.debug("Logging to %s", log_path)

    def _run(self, action: str, make_command) -> None:
        try:
            backend = build_backend(self.config.backend.name, config=self.config)
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action.capitalize(), e)
            raise click.Abort from e

        try:
            output_writer = create_output_writer(self.config)
            session = create_search_session(self.config, backend=backend)
            command = make_command(session, output_writer)
            asyncio.run(self._execute(session, command))
            output_writer.finalize(action)
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action.capitalize(), e)
            raise click.Abort from e
        finally:
            backend.close()

    @staticmethod
    async def _execute(session, command) -> None:
        async with session:
            await command.execute()
