"""Runtime configuration model for Ferry.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_DATE_FIELDS,
    DEFAULT_SOURCE_URI,
    DEFAULT_STORE_BACKEND,
    MAX_BATCH_SIZE,
    SUPPORTED_STORE_BACKENDS,
)
from core.errors import FerryConfigError


@dataclass(frozen=True)
class FerryConfig:
    """Validated runtime configuration.

    Attributes:
        store_backend: Document store adapter name (``firestore`` or ``memory``).
        credentials_path: Optional service-account key file for the store.
        project_id: Optional store project identifier.
        source_uri: Default export file path or ``s3://`` URI for imports.
        default_collection: Collection used when the export is a bare array.
        batch_size: Maximum operations per atomic write batch.
        date_fields: Field names whose date-like strings become timestamps.
        s3_region: Optional default AWS region for S3 operations.
        s3_profile: Optional AWS profile for boto3 session initialization.
    """

    store_backend: str
    credentials_path: Path | None
    project_id: str | None
    source_uri: str
    default_collection: str | None
    batch_size: int
    date_fields: tuple[str, ...]
    s3_region: str | None
    s3_profile: str | None

    @classmethod
    def from_env(cls) -> "FerryConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            FerryConfigError: If environment values are invalid.
        """
        store_backend = _parse_store_backend(
            os.getenv("FERRY_STORE_BACKEND", DEFAULT_STORE_BACKEND)
        )
        credentials_value = os.getenv("FERRY_CREDENTIALS_PATH") or os.getenv(
            "GOOGLE_APPLICATION_CREDENTIALS"
        )
        batch_size = parse_batch_size(os.getenv("FERRY_BATCH_SIZE", str(DEFAULT_BATCH_SIZE)))
        date_fields = _parse_date_fields(os.getenv("FERRY_DATE_FIELDS"))
        return cls(
            store_backend=store_backend,
            credentials_path=(
                Path(credentials_value).expanduser().resolve() if credentials_value else None
            ),
            project_id=os.getenv("FERRY_PROJECT_ID") or None,
            source_uri=os.getenv("FERRY_SOURCE", DEFAULT_SOURCE_URI),
            default_collection=os.getenv("FERRY_COLLECTION") or None,
            batch_size=batch_size,
            date_fields=date_fields,
            s3_region=os.getenv("FERRY_S3_REGION"),
            s3_profile=os.getenv("FERRY_S3_PROFILE"),
        )


def parse_batch_size(raw_value: str | int) -> int:
    """Parse and bound a batch size value.

    Args:
        raw_value: Raw string from environment or an integer override.

    Returns:
        Batch size within ``1..MAX_BATCH_SIZE``.

    Raises:
        FerryConfigError: If value is not an integer or out of range.
    """
    try:
        batch_size = int(raw_value)
    except ValueError as error:
        raise FerryConfigError(
            "Invalid FERRY_BATCH_SIZE value: "
            f"expected integer, got '{raw_value}'. "
            "Set FERRY_BATCH_SIZE to a numeric value."
        ) from error
    if batch_size < 1 or batch_size > MAX_BATCH_SIZE:
        raise FerryConfigError(
            f"Invalid batch size {batch_size}: expected a value between 1 and "
            f"{MAX_BATCH_SIZE}, the store's per-batch operation limit."
        )
    return batch_size


def _parse_store_backend(raw_value: str) -> str:
    backend = raw_value.strip().lower()
    if backend in SUPPORTED_STORE_BACKENDS:
        return backend
    supported_rows = ", ".join(SUPPORTED_STORE_BACKENDS)
    raise FerryConfigError(
        f"Invalid FERRY_STORE_BACKEND '{raw_value}'. Use one of: {supported_rows}."
    )


def _parse_date_fields(raw_value: str | None) -> tuple[str, ...]:
    if raw_value is None:
        return DEFAULT_DATE_FIELDS
    fields = tuple(name.strip() for name in raw_value.split(",") if name.strip())
    return fields
