"""Timestamp decoding for export values.

This module recognizes every timestamp shape found in legacy exports
and decodes it into the single canonical ``Temporal`` value. Decoding
happens once, at the sanitizer boundary, so downstream code never
inspects raw shapes again.

Recognized shapes:
- store-native ``datetime`` values (including nanosecond subclasses)
- ISO-8601 date-time strings
- ``{seconds, nanoseconds}`` pairs (and the ``_seconds`` export spelling)
- tagged ``{"type": "timestamp/1.0", seconds, nanoseconds}`` envelopes
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Mapping

from dateutil import parser as date_parser

from core.constants import TIMESTAMP_TYPE_TAG
from core.types import Temporal

_ISO_DATETIME_PATTERN = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(?::\d{2})?)"
    r"(?:\.(?P<fraction>\d{1,9}))?"
    r"(?P<zone>Z|z|[+-]\d{2}:?\d{2})?$"
)
_PAIR_KEY_SETS = (
    ("seconds", "nanoseconds"),
    ("_seconds", "_nanoseconds"),
)


def decode_temporal(value: object) -> Temporal | None:
    """Decode a structurally tagged timestamp.

    Args:
        value: Raw field value.

    Returns:
        Canonical timestamp, or None when the value is not timestamp-shaped.
    """
    if isinstance(value, Temporal):
        return value
    if isinstance(value, datetime):
        return _decode_native(value)
    if isinstance(value, str):
        return parse_iso_datetime(value)
    if isinstance(value, Mapping):
        return _decode_mapping(value)
    return None


def coerce_date_string(value: str) -> Temporal | None:
    """Parse a loose date-like string from a known date field.

    Args:
        value: Raw string such as ``2025-03-04`` or ``March 4, 2025``.

    Returns:
        Canonical timestamp, or None when the string is not a date.
    """
    exact = parse_iso_datetime(value)
    if exact is not None:
        return exact
    stripped = value.strip()
    if not stripped or stripped.isdigit():
        return None
    try:
        parsed = date_parser.parse(stripped)
        return Temporal.from_datetime(parsed)
    except (ValueError, OverflowError):
        return None


def parse_iso_datetime(value: str) -> Temporal | None:
    """Parse an ISO-8601 date-time string with nanosecond precision.

    Date-only strings are not matched here; they are handled only for
    known date fields by ``coerce_date_string``.
    """
    match = _ISO_DATETIME_PATTERN.match(value.strip())
    if match is None:
        return None
    base_text = match.group("base").replace(" ", "T")
    zone_text = match.group("zone")
    if zone_text and zone_text not in ("Z", "z"):
        base_text = f"{base_text}{_normalize_offset(zone_text)}"
    try:
        base = datetime.fromisoformat(base_text)
    except ValueError:
        # Out-of-range fields or offsets (e.g. +24:00) leave the string as text.
        return None
    if base.tzinfo is None:
        base = base.replace(tzinfo=timezone.utc)
    fraction = match.group("fraction") or ""
    nanoseconds = int(fraction.ljust(9, "0")) if fraction else 0
    try:
        return Temporal.from_datetime(base, nanoseconds=nanoseconds)
    except (ValueError, OverflowError):
        return None


def _decode_native(value: datetime) -> Temporal:
    nanosecond = getattr(value, "nanosecond", None)
    if isinstance(nanosecond, int) and nanosecond:
        return Temporal.from_datetime(value, nanoseconds=nanosecond)
    return Temporal.from_datetime(value)


def _decode_mapping(value: Mapping[Any, Any]) -> Temporal | None:
    keys = set(value.keys())
    if "type" in keys:
        if value.get("type") != TIMESTAMP_TYPE_TAG:
            return None
        keys.discard("type")
    for seconds_key, nanos_key in _PAIR_KEY_SETS:
        if keys != {seconds_key, nanos_key}:
            continue
        seconds = value[seconds_key]
        nanoseconds = value[nanos_key]
        if _is_integer(seconds) and _is_integer(nanoseconds):
            return Temporal.from_parts(int(seconds), int(nanoseconds))
    return None


def _is_integer(value: object) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _normalize_offset(zone_text: str) -> str:
    if ":" in zone_text:
        return zone_text
    return f"{zone_text[:3]}:{zone_text[3:]}"
