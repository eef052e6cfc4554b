"""Toggle-semantics facet selection state."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping


class RefinementState:
    """Selected facet values keyed by facet name.

    A facet is present in the mapping only while it has at least one selected
    value. Values keep their selection order, which is also the order of the
    generated filter expressions.
    """

    __slots__ = ("_selected",)

    def __init__(self) -> None:
        self._selected: dict[str, list[str]] = {}

    @property
    def is_empty(self) -> bool:
        return not self._selected

    def toggle(self, facet_name: str, value: str) -> bool:
        """Select ``value`` under ``facet_name``, or deselect it if already selected.

        Args:
            facet_name: Managed property name of the facet.
            value: Facet value to toggle.

        Returns:
            True if the value is selected after the call, False if it was removed.
        """
        existing = self._selected.get(facet_name)
        if existing is None:
            self._selected[facet_name] = [value]
            return True

        if value in existing:
            existing.remove(value)
            if not existing:
                del self._selected[facet_name]
            return False

        existing.append(value)
        return True

    def clear(self) -> None:
        self._selected.clear()

    def selected(self, facet_name: str) -> tuple[str, ...]:
        return tuple(self._selected.get(facet_name, ()))

    def snapshot(self) -> Mapping[str, tuple[str, ...]]:
        """Return a read-only copy of the current selections."""
        return MappingProxyType({name: tuple(values) for name, values in self._selected.items()})

    def to_filter_expressions(self) -> tuple[str, ...]:
        """Translate selections into conjunctive ``<facet>:equals('<value>')`` filters.

        Single quotes inside a value are doubled so the literal stays closed.
        """
        return tuple(
            f"{facet_name}:equals('{_quote(value)}')"
            for facet_name, values in self._selected.items()
            for value in values
        )

    def __len__(self) -> int:
        return sum(len(values) for values in self._selected.values())

    def __repr__(self) -> str:
        return f"RefinementState({dict(self.snapshot())!r})"


def _quote(value: str) -> str:
    return value.replace("'", "''")
