"""Unit tests for timestamp decoding."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from core.types import Temporal
from transforms.temporal import coerce_date_string, decode_temporal, parse_iso_datetime

_NEW_YEAR_2025 = 1735689600


class _NanosecondDatetime(datetime):
    """Stand-in for a driver datetime that carries nanoseconds."""

    nanosecond = 123456789


def test_every_timestamp_shape_decodes_to_the_same_value() -> None:
    """Native, ISO, pair, underscore-pair and envelope shapes should agree."""
    expected = Temporal(_NEW_YEAR_2025, 123_000_000)
    shapes = [
        datetime(2025, 1, 1, 0, 0, 0, 123000, tzinfo=timezone.utc),
        "2025-01-01T00:00:00.123Z",
        {"seconds": _NEW_YEAR_2025, "nanoseconds": 123_000_000},
        {"_seconds": _NEW_YEAR_2025, "_nanoseconds": 123_000_000},
        {"type": "timestamp/1.0", "seconds": _NEW_YEAR_2025, "nanoseconds": 123_000_000},
    ]

    decoded = [decode_temporal(shape) for shape in shapes]

    assert decoded == [expected] * len(shapes)


def test_decode_temporal_keeps_driver_nanoseconds() -> None:
    """Nanosecond-capable datetimes should not lose precision."""
    value = _NanosecondDatetime(2025, 1, 1, tzinfo=timezone.utc)

    assert decode_temporal(value) == Temporal(_NEW_YEAR_2025, 123456789)


def test_parse_iso_datetime_keeps_nine_fraction_digits() -> None:
    """ISO fractions should be read to the nanosecond."""
    assert parse_iso_datetime("2025-01-01T00:00:00.123456789Z") == Temporal(
        _NEW_YEAR_2025,
        123456789,
    )


@pytest.mark.parametrize(
    "raw_value",
    [
        "2025-01-01T02:00:00+02:00",
        "2025-01-01T02:00:00+0200",
        "2025-01-01 00:00:00",
        "2025-01-01T00:00",
    ],
)
def test_parse_iso_datetime_handles_offsets_and_missing_zone(raw_value: str) -> None:
    """Offsets should be applied and a missing zone read as UTC."""
    assert parse_iso_datetime(raw_value) == Temporal(_NEW_YEAR_2025, 0)


def test_decode_temporal_ignores_date_only_strings() -> None:
    """Bare dates are only coerced for known date fields."""
    assert decode_temporal("2025-01-01") is None
    assert decode_temporal("CL-2025-001") is None


@pytest.mark.parametrize(
    "value",
    [
        {"seconds": 1, "nanoseconds": 2, "extra": 3},
        {"type": "money/1.0", "seconds": 1, "nanoseconds": 2},
        {"seconds": True, "nanoseconds": 0},
        {"seconds": "1", "nanoseconds": 0},
        {"seconds": 1},
        42,
    ],
)
def test_decode_temporal_rejects_lookalikes(value: object) -> None:
    """Values that are not exactly timestamp-shaped should be left alone."""
    assert decode_temporal(value) is None


def test_coerce_date_string_parses_loose_dates() -> None:
    """Known date fields may hold loosely formatted dates."""
    expected = Temporal.from_datetime(datetime(2025, 3, 4))

    assert coerce_date_string("2025-03-04") == expected
    assert coerce_date_string("March 4, 2025") == expected


@pytest.mark.parametrize("raw_value", ["", "   ", "20250304", "not a date"])
def test_coerce_date_string_rejects_non_dates(raw_value: str) -> None:
    """Blank, purely numeric and free-text values should not become dates."""
    assert coerce_date_string(raw_value) is None


@pytest.mark.parametrize(
    "raw_value",
    ["2025-01-01T00:00+24:00", "2025-01-01T10:00+99:00", "2025-13-01T00:00:00Z"],
)
def test_parse_iso_datetime_returns_none_for_out_of_range_values(raw_value: str) -> None:
    """ISO-looking strings with impossible fields should not raise."""
    assert parse_iso_datetime(raw_value) is None
    assert decode_temporal(raw_value) is None
