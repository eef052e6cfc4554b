from __future__ import annotations

"""Shared helpers for reading typed values out of raw config mappings.

Every helper takes the dotted config key (``session.page_size``) so error
messages point at the exact YAML entry that is wrong.
"""

from typing import Any, Mapping


def get_section(raw: Mapping[str, Any], key: str, *, required: bool) -> Mapping[str, Any]:
    """Return a top-level section, or an empty mapping for an absent optional one.

    Raises:
        ValueError: If a required section is absent or null.
        TypeError: If the section is not a mapping.
    """
    section = raw.get(key)
    if section is None:
        if required:
            raise ValueError(f"Missing required config: {key}")
        return {}
    if not isinstance(section, Mapping):
        raise TypeError(f"{key} must be an object")
    return section


def get_required_value(section: Mapping[str, Any], field: str, config_key: str) -> Any:
    if field not in section:
        raise ValueError(f"Missing required config: {config_key}")
    return section[field]


def get_optional_value(section: Mapping[str, Any], field: str, default: Any) -> Any:
    """Return ``section[field]``; a missing key or explicit null yields ``default``."""
    value = section.get(field)
    return default if value is None else value


def _expect(value: Any, kinds: type | tuple[type, ...], config_key: str, label: str) -> Any:
    # bool is an int subclass; YAML `yes` must never pass as a number
    if isinstance(value, bool) and bool not in (kinds if isinstance(kinds, tuple) else (kinds,)):
        raise TypeError(f"{config_key} must be {label}")
    if not isinstance(value, kinds):
        raise TypeError(f"{config_key} must be {label}")
    return value


def expect_str(value: Any, config_key: str) -> str:
    return _expect(value, str, config_key, "a string")


def expect_optional_str(value: Any, config_key: str) -> str | None:
    if value is None:
        return None
    return expect_str(value, config_key)


def expect_bool(value: Any, config_key: str) -> bool:
    return _expect(value, bool, config_key, "a boolean")


def expect_int(value: Any, config_key: str) -> int:
    return _expect(value, int, config_key, "an integer")


def expect_float(value: Any, config_key: str) -> float:
    """Accept ints and floats alike and return a float."""
    return float(_expect(value, (int, float), config_key, "a number"))


def expect_str_list(value: Any, config_key: str) -> list[str]:
    """Validate a list of strings; a bare string is not accepted as a list."""
    _expect(value, list, config_key, "a list")
    for idx, item in enumerate(value):
        _expect(item, str, f"{config_key}[{idx}]", "a string")
    return list(value)


def check_non_empty(value: str, config_key: str) -> None:
    if not value.strip():
        raise ValueError(f"{config_key} must not be empty")
