"""Unit tests for derived-field projections."""

from __future__ import annotations

from core.types import StoredDocument
from reconcile.projection import collect_field, values_equivalent


def test_collect_field_keeps_order_and_drops_blanks() -> None:
    """Projection should collect non-blank values in match order."""
    matches = [
        StoredDocument("CL-1", {"name": "Alice"}),
        StoredDocument("CL-2", {"name": "  "}),
        StoredDocument("CL-3", {}),
        StoredDocument("CL-4", {"name": "Bob"}),
    ]

    assert collect_field("name")(matches) == ["Alice", "Bob"]


def test_values_equivalent_ignores_order_and_whitespace() -> None:
    """Derived lists compare as sets of trimmed names."""
    assert values_equivalent(["Alice", "Bob"], ["Bob", "Alice"])
    assert values_equivalent(["Alice ", "Bob"], ["Bob", "Alice", ""])
    assert not values_equivalent(["Alice"], ["Alice", "Bob"])


def test_values_equivalent_treats_missing_as_empty() -> None:
    """A missing stored field equals an empty computed list."""
    assert values_equivalent(None, [])
    assert not values_equivalent(None, ["Alice"])


def test_values_equivalent_accepts_scalar_stored_values() -> None:
    """A legacy scalar should compare as a one-item list."""
    assert values_equivalent("Alice", ["Alice"])
