"""Document key resolution transform.

This module derives a stable document key from an ordered list of
candidate fields. Records with no usable candidate are rejected with
a reason instead of being written under an empty or invented key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence


@dataclass(frozen=True)
class ResolvedId:
    """Successful key resolution."""

    key: str
    field_name: str


@dataclass(frozen=True)
class RejectedRecord:
    """Failed key resolution with the offending record attached."""

    reason: str
    record: Mapping[str, Any] = field(default_factory=dict)


IdResolution = ResolvedId | RejectedRecord


def resolve_document_id(
    record: Mapping[str, Any],
    candidate_fields: Sequence[str],
) -> IdResolution:
    """Resolve the document key for one record.

    Args:
        record: Record to inspect.
        candidate_fields: Field names in strict priority order.

    Returns:
        ``ResolvedId`` for the first non-blank candidate, else ``RejectedRecord``.
    """
    for field_name in candidate_fields:
        key = _candidate_key(record.get(field_name))
        if key:
            return ResolvedId(key=key, field_name=field_name)
    candidates = ", ".join(candidate_fields) or "<none>"
    return RejectedRecord(
        reason=f"missing identifier: no non-empty value in [{candidates}]",
        record=record,
    )


def _candidate_key(value: object) -> str | None:
    """Normalize a candidate value into a key, or None if unusable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return None
