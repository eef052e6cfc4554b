"""Backend domain configuration (target site, credentials, timeouts)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from FacetSearch.config.common import (
    check_non_empty,
    expect_float,
    expect_str,
    get_optional_value,
    get_required_value,
    get_section,
)
from FacetSearch.sources.registry import supported_backend_names

_ALLOWED_BACKENDS = frozenset(supported_backend_names())


@dataclass(frozen=True, slots=True)
class BackendConfig:
    """Store validated search backend settings.

    The access token is read from the environment variable named by
    ``token_env``; acquiring it is the caller's job.
    """

    name: str
    site_url: str
    token_env: str
    access_token: str
    timeout: float


def load_backend(raw: Mapping[str, Any]) -> BackendConfig:
    """Load backend domain config from raw mapping.

    Args:
        raw: Root configuration mapping.

    Returns:
        Parsed backend configuration.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing.
    """
    section = get_section(raw, "backend", required=True)
    token_env = expect_str(get_optional_value(section, "token_env", "FACET_SEARCH_TOKEN"), "backend.token_env")
    return BackendConfig(
        name=expect_str(get_optional_value(section, "name", "sharepoint"), "backend.name").strip().lower(),
        site_url=expect_str(get_required_value(section, "site_url", "backend.site_url"), "backend.site_url").strip(),
        token_env=token_env,
        access_token=_load_token_from_env(token_env),
        timeout=expect_float(get_optional_value(section, "timeout", 30), "backend.timeout"),
    )


def check_backend(config: BackendConfig) -> None:
    """Validate backend domain constraints.

    Raises:
        ValueError: If values violate backend constraints.
    """
    if config.name not in _ALLOWED_BACKENDS:
        raise ValueError(f"backend.name has unknown backend: {config.name}")
    check_non_empty(config.site_url, "backend.site_url")
    if not config.site_url.startswith(("https://", "http://")):
        raise ValueError("backend.site_url must be an absolute http(s) URL")
    check_non_empty(config.token_env, "backend.token_env")
    if config.timeout <= 0:
        raise ValueError("backend.timeout must be positive")


def _load_token_from_env(token_env: str) -> str:
    return os.getenv(token_env, "").strip()
