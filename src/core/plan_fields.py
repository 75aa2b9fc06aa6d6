"""Type-safe field parsing helpers for migration plans.

Plan sections share these primitive readers so every validation error
names the offending field and section in the same way.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from core.errors import FerryPlanError


def expect_mapping(value: object, context: str) -> Mapping[str, object]:
    """Return ``value`` as a string-keyed mapping or raise."""
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise FerryPlanError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise FerryPlanError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def expect_sequence(value: object, context: str) -> Sequence[object]:
    """Return ``value`` as a list-like sequence or raise."""
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise FerryPlanError(f"Invalid {context}: expected list, got {type(value).__name__}.")


def required_string(mapping: Mapping[str, object], field_name: str, context: str) -> str:
    """Read a required non-blank string field."""
    value = optional_string(mapping, field_name, context)
    if value is None:
        raise FerryPlanError(f"Invalid {context}: missing required field '{field_name}'.")
    return value


def optional_string(mapping: Mapping[str, object], field_name: str, context: str) -> str | None:
    """Read an optional string field; blank strings count as absent."""
    value = mapping.get(field_name)
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    raise FerryPlanError(f"Invalid {context}: field '{field_name}' must be a string.")


def optional_int(mapping: Mapping[str, object], field_name: str, context: str) -> int | None:
    """Read an optional integer field."""
    value = mapping.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise FerryPlanError(f"Invalid {context}: field '{field_name}' must be an integer.")
    return value


def optional_bool(
    mapping: Mapping[str, object],
    field_name: str,
    context: str,
    default_value: bool,
) -> bool:
    """Read an optional boolean field."""
    value = mapping.get(field_name)
    if value is None:
        return default_value
    if isinstance(value, bool):
        return value
    raise FerryPlanError(f"Invalid {context}: field '{field_name}' must be true/false.")


def optional_string_tuple(
    mapping: Mapping[str, object],
    field_name: str,
    context: str,
) -> tuple[str, ...] | None:
    """Read an optional non-empty list of non-blank strings."""
    value = mapping.get(field_name)
    if value is None:
        return None
    rows = expect_sequence(value, f"{context} field '{field_name}'")
    names: list[str] = []
    for row in rows:
        if not isinstance(row, str) or not row.strip():
            raise FerryPlanError(
                f"Invalid {context}: field '{field_name}' must list non-empty strings."
            )
        names.append(row.strip())
    if not names:
        raise FerryPlanError(f"Invalid {context}: field '{field_name}' must not be empty.")
    return tuple(names)


def reject_unknown_keys(
    mapping: Mapping[str, object],
    allowed_keys: set[str],
    context: str,
) -> None:
    """Raise when ``mapping`` carries keys outside ``allowed_keys``."""
    unknown_keys = sorted(set(mapping) - allowed_keys)
    if unknown_keys:
        raise FerryPlanError(f"Invalid {context}: unknown fields {', '.join(unknown_keys)}.")
