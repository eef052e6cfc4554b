"""Search response parser.

Normalizes SharePoint-style postquery payloads into ``SearchPage`` records.
The parser is lenient: missing or malformed optional fields fall back to
defaults instead of raising.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar

from FacetSearch.core.errors import ResultParseError
from FacetSearch.core.models import Refiner, RefinerEntry, SearchPage, SearchResult
from FacetSearch.utils.log import log

T = TypeVar("T")

Projection = Callable[[Mapping[str, Any]], T]

_ID_KEYS = ("DocId", "Path")


def default_projection(row: Mapping[str, Any]) -> dict[str, Any]:
    """Project a row into a plain dict of its fields."""
    return dict(row)


def dataclass_projection(cls: type[T]) -> Projection[T]:
    """Build a projection that fills a dataclass from same-named row fields.

    Fields absent from the row are passed as None, so target dataclasses
    should declare them Optional.

    Raises:
        TypeError: If ``cls`` is not a dataclass.
    """
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{cls!r} is not a dataclass")
    names = tuple(item.name for item in dataclasses.fields(cls) if item.init)

    def project(row: Mapping[str, Any]) -> T:
        return cls(**{name: row.get(name) for name in names})

    project.__name__ = f"project_{cls.__name__}"
    return project


def parse_search_response(
    raw: Mapping[str, Any],
    *,
    projection: Optional[Projection[T]] = None,
    start_row: int = 0,
) -> SearchPage[T]:
    """Parse a raw backend payload into a ``SearchPage``.

    Args:
        raw: Raw postquery payload.
        projection: Row projection used to build ``SearchResult.data``.
        start_row: Absolute offset of the first row, used for fallback ids.

    Returns:
        Parsed page. ``refiners`` is empty when no facets were reported.

    Raises:
        ResultParseError: If the projection rejects a row.
    """
    project = projection or default_projection
    query_result = _mapping(_unwrap(raw).get("PrimaryQueryResult"))
    relevant = _mapping(query_result.get("RelevantResults"))

    rows = _as_list(_mapping(relevant.get("Table")).get("Rows"))
    results: list[SearchResult[T]] = []
    for offset, row in enumerate(rows):
        fields = _flatten_row(row)
        if fields is None:
            log.debug("Skipping malformed search row at position=%d", start_row + offset)
            continue
        results.append(_parse_result(fields, project, position=start_row + offset))

    refinement = _mapping(query_result.get("RefinementResults"))
    refiners = tuple(
        _parse_refiner(item) for item in _as_list(refinement.get("Refiners")) if isinstance(item, Mapping)
    )

    return SearchPage(
        results=tuple(results),
        total_results=_parse_int(relevant.get("TotalRows")) or 0,
        refiners=refiners,
    )


def parse_suggestions(payload: Mapping[str, Any] | None) -> list[str]:
    """Extract suggestion strings from a backend suggest payload."""
    if not isinstance(payload, Mapping):
        return []
    out: list[str] = []
    for item in _as_list(payload.get("queries")):
        if isinstance(item, Mapping):
            item = item.get("Query")
        text = _safe_str(item)
        if text:
            out.append(text)
    return out


def _parse_result(fields: Mapping[str, Any], project: Projection[T], *, position: int) -> SearchResult[T]:
    """Build one ``SearchResult`` from a flattened row."""
    try:
        data = project(fields)
    except (TypeError, ValueError, KeyError) as error:
        raise ResultParseError(f"Cannot project search row at position {position}: {error}") from error

    return SearchResult(
        id=_result_id(fields, position=position),
        data=data,
        raw=fields,
        rank=_parse_int(fields.get("Rank")),
    )


def _result_id(fields: Mapping[str, Any], *, position: int) -> str:
    """Return the first non-empty id field, or a deterministic fallback."""
    for key in _ID_KEYS:
        value = fields.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text

    signature = json.dumps(dict(fields), sort_keys=True, default=str)
    digest = hashlib.sha1(f"{position}|{signature}".encode("utf-8")).hexdigest()[:16]
    log.warning("Search result has no DocId or Path: position=%d fallback_id=result:%s", position, digest)
    return f"result:{digest}"


def _parse_refiner(item: Mapping[str, Any]) -> Refiner:
    """Parse one refiner payload."""
    entries: list[RefinerEntry] = []
    for entry in _as_list(item.get("Entries")):
        if not isinstance(entry, Mapping):
            continue
        entries.append(
            RefinerEntry(
                value=_safe_str(entry.get("RefinementName")),
                count=_parse_int(entry.get("RefinementCount")) or 0,
                token=_safe_str(entry.get("RefinementToken")),
            )
        )
    return Refiner(name=_safe_str(item.get("Name")), entries=tuple(entries))


def _flatten_row(row: Any) -> dict[str, Any] | None:
    """Convert a ``Cells`` key/value row or a flat row into a dict."""
    if not isinstance(row, Mapping):
        return None
    if "Cells" not in row:
        return dict(row)

    fields: dict[str, Any] = {}
    for cell in _as_list(row.get("Cells")):
        if not isinstance(cell, Mapping):
            continue
        key = _safe_str(cell.get("Key"))
        if key:
            fields[key] = cell.get("Value")
    return fields


def _unwrap(raw: Any) -> Mapping[str, Any]:
    """Strip an OData ``d``/``postquery`` envelope if present."""
    payload = _mapping(raw)
    if "d" in payload:
        payload = _mapping(payload["d"])
    if "postquery" in payload:
        payload = _mapping(payload["postquery"])
    return payload


def _as_list(value: Any) -> Sequence[Any]:
    """Return list values, unwrapping OData ``{"results": [...]}`` collections."""
    if isinstance(value, Mapping):
        value = value.get("results")
    if isinstance(value, (list, tuple)):
        return value
    return ()


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _parse_int(value: Any) -> int | None:
    """Parse the integer part of a numeric value, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return None


def _safe_str(value: Any) -> str:
    """Convert scalar value to stripped string."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""
