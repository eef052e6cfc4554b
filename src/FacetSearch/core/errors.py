"""Exception hierarchy for FacetSearch."""

from __future__ import annotations


class FacetSearchError(Exception):
    """Base class for all errors raised by FacetSearch."""


class SessionStateError(FacetSearchError):
    """Raised when a session operation is called in an invalid state.

    Typical cases are ``load_more``/``refetch``/``apply_refiner`` before any
    ``search`` has anchored the session to a query.
    """


class SessionClosedError(SessionStateError):
    """Raised when an operation is invoked on a closed session."""


class SearchBackendError(FacetSearchError):
    """Raised when the search backend fails (transport, HTTP status, payload)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ResultParseError(FacetSearchError):
    """Raised when a result row cannot be projected into the requested type."""
