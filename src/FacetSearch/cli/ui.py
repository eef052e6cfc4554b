"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to their respective runners.
"""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import load_dotenv

from FacetSearch.cli.commands import SearchRequest
from FacetSearch.cli.runner import CommandRunner
from FacetSearch.config import load_config, load_config_with_defaults

DEFAULT_CONFIG_PATH = Path("config/default.yml")


def _parse_refinement(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> tuple[tuple[str, str], ...]:
    """Parse repeated ``NAME=VALUE`` options."""
    parsed: list[tuple[str, str]] = []
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name.strip() or not value.strip():
            raise click.BadParameter(f"expected NAME=VALUE, got {item!r}", ctx=ctx, param=param)
        parsed.append((name.strip(), value.strip()))
    return tuple(parsed)


@click.group(help="FacetSearch: faceted enterprise search from the terminal.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to YAML config file, merged over the default config when that exists.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from .env before reading the config, so the
    backend token can live there.
    """
    load_dotenv()
    if config_path != DEFAULT_CONFIG_PATH and DEFAULT_CONFIG_PATH.is_file():
        ctx.obj = load_config_with_defaults(config_path, default_path=DEFAULT_CONFIG_PATH)
    else:
        ctx.obj = load_config(config_path)


@cli.command("search")
@click.argument("text")
@click.option("--pages", type=click.IntRange(min=1), default=1, show_default=True, help="Pages to load.")
@click.option("--page-size", type=click.IntRange(min=1), default=None, help="Override session.page_size.")
@click.option(
    "--refine",
    "refinements",
    multiple=True,
    callback=_parse_refinement,
    metavar="NAME=VALUE",
    help="Toggle a refiner value after the first page. Repeatable.",
)
@click.option("--vertical", default=None, help="Search vertical, e.g. documents or people.")
@click.pass_context
def search_cmd(
    ctx: click.Context,
    text: str,
    pages: int,
    page_size: int | None,
    refinements: tuple[tuple[str, str], ...],
    vertical: str | None,
) -> None:
    """Search and print results and refiners."""
    cfg = ctx.obj
    request = SearchRequest(
        text=text,
        pages=pages,
        page_size=page_size,
        refinements=refinements,
        vertical=vertical or cfg.session.vertical,
    )
    CommandRunner(cfg).run_search(action=ctx.command.name, request=request)


@cli.command("suggest")
@click.argument("text")
@click.pass_context
def suggest_cmd(ctx: click.Context, text: str) -> None:
    """Print query suggestions for partial text."""
    CommandRunner(ctx.obj).run_suggest(action=ctx.command.name, text=text)
