"""Record sanitization transform.

This module normalizes export records before they are written:
timestamps are decoded into one canonical value and null sentinels
are removed so that absence, not null, marks a missing field.
It is the first transform stage of the import pipeline.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Mapping

from core.constants import DEFAULT_DATE_FIELDS, NULL_SENTINEL_STRING
from core.types import Record, Temporal
from transforms.temporal import coerce_date_string, decode_temporal


class ValueKind(Enum):
    """Structural kind of one field value."""

    ABSENT = "absent"
    TEMPORAL = "temporal"
    NESTED = "nested"
    SEQUENCE = "sequence"
    SCALAR = "scalar"


def sanitize_record(
    record: Mapping[str, Any],
    date_fields: Iterable[str] = DEFAULT_DATE_FIELDS,
) -> Record:
    """Return a sanitized copy of one record.

    Args:
        record: Raw record from an export file.
        date_fields: Field names whose plain date strings become timestamps.

    Returns:
        New record with canonical timestamps and without null fields.
    """
    return _sanitize_mapping(record, frozenset(date_fields))


def classify_value(
    field_name: str | None,
    value: object,
    date_fields: frozenset[str],
) -> tuple[ValueKind, object]:
    """Classify a raw value and decode timestamps in the same pass.

    Args:
        field_name: Owning field name, or None for sequence items.
        value: Raw value.
        date_fields: Known date field names.

    Returns:
        Value kind paired with the decoded payload for that kind.
    """
    if value is None or value == NULL_SENTINEL_STRING:
        return ValueKind.ABSENT, None
    temporal = _decode_field_temporal(field_name, value, date_fields)
    if temporal is not None:
        return ValueKind.TEMPORAL, temporal
    if isinstance(value, Mapping):
        return ValueKind.NESTED, value
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE, value
    return ValueKind.SCALAR, value


def _sanitize_mapping(record: Mapping[str, Any], date_fields: frozenset[str]) -> Record:
    sanitized: Record = {}
    for field_name, value in record.items():
        kind, payload = classify_value(field_name, value, date_fields)
        if kind is ValueKind.ABSENT:
            continue
        sanitized[field_name] = _sanitize_payload(kind, payload, date_fields)
    return sanitized


def _sanitize_sequence(values: Iterable[Any], date_fields: frozenset[str]) -> list[Any]:
    sanitized: list[Any] = []
    for value in values:
        kind, payload = classify_value(None, value, date_fields)
        if kind is ValueKind.ABSENT:
            continue
        sanitized.append(_sanitize_payload(kind, payload, date_fields))
    return sanitized


def _sanitize_payload(kind: ValueKind, payload: Any, date_fields: frozenset[str]) -> Any:
    if kind is ValueKind.TEMPORAL or kind is ValueKind.SCALAR:
        return payload
    if kind is ValueKind.NESTED:
        return _sanitize_mapping(payload, date_fields)
    if kind is ValueKind.SEQUENCE:
        return _sanitize_sequence(payload, date_fields)
    raise ValueError(f"Unhandled value kind: {kind}")


def _decode_field_temporal(
    field_name: str | None,
    value: object,
    date_fields: frozenset[str],
) -> Temporal | None:
    temporal = decode_temporal(value)
    if temporal is not None:
        return temporal
    if field_name in date_fields and isinstance(value, str):
        return coerce_date_string(value)
    return None
