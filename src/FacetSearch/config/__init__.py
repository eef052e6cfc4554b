from __future__ import annotations

"""Public configuration API for FacetSearch."""

from FacetSearch.config.app import (
    AppConfig,
    load_config,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
)
from FacetSearch.config.backend import BackendConfig
from FacetSearch.config.output import OutputConfig
from FacetSearch.config.runtime import RuntimeConfig
from FacetSearch.config.session import SessionConfig

__all__ = [
    "RuntimeConfig",
    "BackendConfig",
    "SessionConfig",
    "OutputConfig",
    "AppConfig",
    "load_config",
    "load_config_with_defaults",
    "merge_config_dicts",
    "parse_config_dict",
]
