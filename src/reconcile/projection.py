"""Projections and equivalence rules for derived fields."""

from __future__ import annotations

from typing import Any, Sequence

from core.types import Projection, StoredDocument


def collect_field(field_name: str) -> Projection:
    """Build a projection collecting one field from every match.

    Blank strings and missing values are dropped; match order is kept.

    Args:
        field_name: Source field to collect.

    Returns:
        Projection callable for ``ReconcileRequest``.
    """

    def _project(matches: Sequence[StoredDocument]) -> list[Any]:
        values: list[Any] = []
        for match in matches:
            value = match.data.get(field_name)
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            values.append(value)
        return values

    return _project


def values_equivalent(stored: object, computed: Sequence[object]) -> bool:
    """Compare derived values as sets of trimmed, non-blank strings.

    Order and surrounding whitespace are ignored, so ``["Alice", "Bob"]``
    matches ``["Bob ", "Alice"]``. A missing stored value equals an empty
    computed list.
    """
    return _normalized_set(stored) == _normalized_set(computed)


def _normalized_set(value: object) -> frozenset[str]:
    if value is None:
        return frozenset()
    items = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
    normalized: set[str] = set()
    for item in items:
        if item is None:
            continue
        text = str(item).strip()
        if text:
            normalized.add(text)
    return frozenset(normalized)
