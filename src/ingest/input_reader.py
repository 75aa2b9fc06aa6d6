"""Export file readers for import.

This module loads a legacy JSON export from a local path or an S3
object and normalizes it into ordered per-collection record lists.
Any parse or shape failure is fatal and raised before a write happens.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.config import FerryConfig
from core.errors import FerryInputError
from core.logging_config import get_logger
from core.s3_uri import create_s3_client, is_s3_uri, parse_s3_uri
from core.types import Record

_LOGGER = get_logger(__name__)

ExportPayload = dict[str, list[Record]]


def read_export(
    source_uri: str,
    config: FerryConfig,
    default_collection: str | None = None,
) -> ExportPayload:
    """Load an export file into collection-keyed record lists.

    Args:
        source_uri: Local file path or ``s3://bucket/key`` URI.
        config: Runtime configuration for S3 session defaults.
        default_collection: Collection for exports shaped as a bare array.

    Returns:
        Mapping of collection name to records, in file order.

    Raises:
        FerryInputError: If the file is missing, unparseable, or misshapen.
    """
    if is_s3_uri(source_uri):
        body = _read_s3_body(source_uri, config)
    else:
        body = _read_local_body(Path(source_uri).expanduser())
    payload = _parse_json(source_uri, body)
    return normalize_export(source_uri, payload, default_collection)


def normalize_export(
    source_uri: str,
    payload: object,
    default_collection: str | None,
) -> ExportPayload:
    """Normalize a parsed export into collection-keyed record lists.

    Args:
        source_uri: Source location, used in error messages.
        payload: Parsed JSON document.
        default_collection: Collection for bare-array payloads.

    Returns:
        Mapping of collection name to records.

    Raises:
        FerryInputError: If the payload shape is not supported.
    """
    if isinstance(payload, list):
        if not default_collection:
            raise FerryInputError(
                f"Export at {source_uri} is a bare array but no collection was given. "
                "Pass --collection or set FERRY_COLLECTION."
            )
        return {default_collection: _expect_records(source_uri, default_collection, payload)}
    if not isinstance(payload, dict):
        raise FerryInputError(
            f"Invalid export at {source_uri}: expected an array of records or an object "
            f"mapping collection names to arrays, got {type(payload).__name__}."
        )
    export: ExportPayload = {}
    for collection, records in payload.items():
        if not isinstance(records, list):
            _LOGGER.warning(
                "collection_not_array_skipped",
                source_uri=source_uri,
                collection=collection,
                value_type=type(records).__name__,
            )
            continue
        export[str(collection)] = _expect_records(source_uri, str(collection), records)
    return export


def _read_local_body(source_path: Path) -> str:
    if not source_path.is_file():
        raise FerryInputError(
            f"Failed to read export at {source_path}: file does not exist. "
            "Provide an existing JSON export file."
        )
    try:
        return source_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as error:
        raise FerryInputError(
            f"Failed to read export at {source_path}: {error}."
        ) from error


def _read_s3_body(source_uri: str, config: FerryConfig) -> str:
    location = parse_s3_uri(source_uri, domain="input")
    s3_client = create_s3_client(config)
    from botocore.exceptions import BotoCoreError, ClientError

    try:
        response = s3_client.get_object(Bucket=location.bucket, Key=location.key)
        return response["Body"].read().decode("utf-8")
    except (BotoCoreError, ClientError) as error:
        raise FerryInputError(
            f"Failed to download export from {source_uri}: {error}. "
            "Check the object key and AWS credentials."
        ) from error


def _parse_json(source_uri: str, body: str) -> Any:
    try:
        return json.loads(body)
    except json.JSONDecodeError as error:
        raise FerryInputError(
            f"Failed to parse export at {source_uri}: {error.msg} "
            f"(line {error.lineno}, column {error.colno}). Fix the JSON syntax and retry."
        ) from error


def _expect_records(source_uri: str, collection: str, rows: list[Any]) -> list[Record]:
    records: list[Record] = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise FerryInputError(
                f"Invalid record #{index + 1} in '{collection}' at {source_uri}: "
                f"expected JSON object, got {type(row).__name__}."
            )
        records.append(row)
    return records
