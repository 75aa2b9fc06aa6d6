"""Scalar-to-array migration for link fields.

Older records hold one link key in a scalar field and further links in
a separate legacy list. Reconciliation matches links with both ``==``
and ``array-contains``, but many-to-many links only work once they live
in one array. This module folds both fields into that array and removes
the legacy field, committing ``update`` operations through the batch
writer. Documents whose link field is already an array are skipped, so
the migration can be re-run safely.
"""

from __future__ import annotations

from typing import Any

from core.errors import FerryConfigError
from core.logging_config import get_logger
from core.types import (
    DELETE_FIELD,
    LinkNormalizationReport,
    LinkNormalizationRequest,
    StoredDocument,
    WriteOperation,
    WriteReport,
)
from store.batch_writer import BatchWriter
from store.document_store import DocumentStore

_LOGGER = get_logger(__name__)


class LinkFieldNormalizer:
    """Rewrites scalar link fields as arrays through the batch writer."""

    def __init__(self, store: DocumentStore, writer: BatchWriter) -> None:
        self._store = store
        self._writer = writer

    def normalize(self, request: LinkNormalizationRequest) -> LinkNormalizationReport:
        """Migrate every document of one collection.

        Args:
            request: Collection, link and legacy field names.

        Returns:
            Migrated and skipped keys plus the batch write outcome.
            Keys in failed chunks are not counted as migrated.

        Raises:
            FerryConfigError: If the link and legacy fields are the same.
            FerryStoreError: If the collection cannot be read.
        """
        if request.link_field == request.legacy_field:
            raise FerryConfigError(
                f"Link field and legacy field are both '{request.link_field}'. "
                "Pass a different legacy field."
            )
        documents = self._store.stream(request.collection)
        operations: list[WriteOperation] = []
        skipped_keys: list[str] = []
        for document in documents:
            operation = build_link_update(request, document)
            if operation is None:
                skipped_keys.append(document.key)
                continue
            operations.append(operation)
        write_report = WriteReport() if request.dry_run else self._writer.write_all(operations)
        failed_keys = {key for failure in write_report.failures for key in failure.keys}
        report = LinkNormalizationReport(
            checked_count=len(documents),
            migrated_keys=tuple(op.key for op in operations if op.key not in failed_keys),
            skipped_keys=tuple(skipped_keys),
            write_report=write_report,
        )
        _LOGGER.info(
            "link_field_normalized",
            collection=request.collection,
            link_field=request.link_field,
            legacy_field=request.legacy_field,
            checked_count=report.checked_count,
            migrated_count=report.migrated_count,
            skipped_count=report.skipped_count,
            failed_count=report.failed_count,
            dry_run=request.dry_run,
        )
        return report


def build_link_update(
    request: LinkNormalizationRequest,
    document: StoredDocument,
) -> WriteOperation | None:
    """Return the update for one document, or None when already migrated."""
    link_value = document.data.get(request.link_field)
    if isinstance(link_value, list):
        return None
    merged = merge_link_values(link_value, document.data.get(request.legacy_field))
    return WriteOperation(
        "update",
        request.collection,
        document.key,
        {request.link_field: merged, request.legacy_field: DELETE_FIELD},
    )


def merge_link_values(link_value: object, legacy_value: object) -> list[Any]:
    """Merge a scalar link and a legacy link list into one array.

    The scalar comes first when it is a non-blank string. Legacy entries
    follow in order; empty entries and duplicates are dropped.
    """
    merged: list[Any] = []
    if isinstance(link_value, str) and link_value.strip():
        merged.append(link_value)
    if isinstance(legacy_value, list):
        for item in legacy_value:
            if item and item not in merged:
                merged.append(item)
    return merged
