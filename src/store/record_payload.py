"""Shared JSON serialization for exported documents.

Exports use the same shape the importer reads: an object mapping each
collection name to an array of records, with the document key stored
under ``id``. Canonical timestamps are written as tagged envelopes so
an export re-imports without losing precision.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Sequence

from core.constants import EXPORT_ID_FIELD
from core.errors import FerryStoreError
from core.types import Record, StoredDocument, Temporal


def document_to_payload(document: StoredDocument) -> Record:
    """Serialize one stored document into an export record.

    The document key overrides any ``id`` field in the data so the
    record re-imports under the same key.

    Args:
        document: Stored document.

    Returns:
        JSON-safe record.
    """
    payload = {str(name): encode_value(value) for name, value in document.data.items()}
    payload[EXPORT_ID_FIELD] = document.key
    return payload


def encode_value(value: Any) -> Any:
    """Convert a stored value into a JSON-safe value."""
    if isinstance(value, Temporal):
        return value.to_envelope()
    if isinstance(value, Mapping):
        return {str(key): encode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    return value


def dump_export(collections: Mapping[str, Sequence[StoredDocument]]) -> str:
    """Render collection documents as an export file body.

    Raises:
        FerryStoreError: If a stored value has no JSON representation.
    """
    payload = {
        name: [document_to_payload(document) for document in documents]
        for name, documents in collections.items()
    }
    try:
        return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
    except (TypeError, ValueError) as error:
        raise FerryStoreError(
            f"Failed to serialize export: {error}. "
            "Remove or convert unsupported field types before exporting."
        ) from error
