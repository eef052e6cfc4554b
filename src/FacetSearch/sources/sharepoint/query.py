"""SharePoint search request compiler and suggest payload helpers."""

from __future__ import annotations

from typing import Any, Mapping

from FacetSearch.core.query import QueryDescriptor


def compile_postquery_body(descriptor: QueryDescriptor) -> dict[str, Any]:
    """Compile a descriptor into a ``/_api/search/postquery`` JSON body.

    Only fields that were set on the descriptor are emitted, so server-side
    defaults stay in effect for everything else.
    """
    request: dict[str, Any] = {"Querytext": descriptor.text}
    if descriptor.query_template:
        request["QueryTemplate"] = descriptor.query_template
    if descriptor.select_properties:
        request["SelectProperties"] = list(descriptor.select_properties)
    if descriptor.refiners:
        request["Refiners"] = descriptor.refiners
    if descriptor.refinement_filters:
        request["RefinementFilters"] = list(descriptor.refinement_filters)
    if descriptor.row_limit is not None:
        request["RowLimit"] = descriptor.row_limit
    if descriptor.start_row:
        request["StartRow"] = descriptor.start_row
    if descriptor.source_id:
        request["SourceId"] = descriptor.source_id
    if descriptor.sort_list:
        request["SortList"] = [
            {"Property": sort.property, "Direction": sort.direction} for sort in descriptor.sort_list
        ]
    if descriptor.trim_duplicates is not None:
        request["TrimDuplicates"] = descriptor.trim_duplicates
    if descriptor.culture is not None:
        request["Culture"] = descriptor.culture
    return {"request": request}


def quote_querytext(text: str) -> str:
    """Quote text for the ``querytext`` URL parameter (single quotes doubled)."""
    return "'" + text.replace("'", "''") + "'"


def extract_suggest_queries(payload: Any) -> list[Any]:
    """Return the raw ``Queries`` collection of a suggest response."""
    if not isinstance(payload, Mapping):
        return []
    body = payload
    if isinstance(body.get("d"), Mapping):
        body = body["d"]
    if isinstance(body.get("suggest"), Mapping):
        body = body["suggest"]

    queries = body.get("Queries")
    if isinstance(queries, Mapping):
        queries = queries.get("results")
    return list(queries) if isinstance(queries, list) else []
