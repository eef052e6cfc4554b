"""Backend registry and builders for search backends."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from FacetSearch.config import AppConfig
    from FacetSearch.session.controller import SearchBackend

BackendBuilder = Callable[["AppConfig"], "SearchBackend"]


def build_backend(backend_name: str, *, config: AppConfig) -> SearchBackend:
    """Build a search backend from its registered name.

    Args:
        backend_name: Backend identifier from ``backend.name``.
        config: Parsed application configuration.

    Returns:
        SearchBackend: Initialized backend for the given name.

    Raises:
        ValueError: If ``backend_name`` is not registered.
    """
    builder = _backend_builders().get(backend_name)
    if builder is None:
        raise ValueError(f"Unsupported backend in config.backend.name: {backend_name}")
    return builder(config)


def supported_backend_names() -> tuple[str, ...]:
    """Return all backend names that can be built by the registry."""
    return tuple(_backend_builders().keys())


def _backend_builders() -> dict[str, BackendBuilder]:
    return {
        "sharepoint": _build_sharepoint_backend,
    }


def _build_sharepoint_backend(config: AppConfig) -> SearchBackend:
    """Build the SharePoint REST backend."""
    from FacetSearch.sources.sharepoint.backend import SharePointSearchBackend
    from FacetSearch.sources.sharepoint.client import SharePointSearchClient

    return SharePointSearchBackend(
        client=SharePointSearchClient(
            config.backend.site_url,
            access_token=config.backend.access_token,
            timeout=config.backend.timeout,
        )
    )
