"""Collection-to-collection copy under the same keys."""

from __future__ import annotations

from core.errors import FerryStoreError
from core.logging_config import get_logger
from core.types import WriteOperation, WriteReport
from store.batch_writer import BatchWriter
from store.document_store import DocumentStore

_LOGGER = get_logger(__name__)


def copy_collection(
    store: DocumentStore,
    writer: BatchWriter,
    source_collection: str,
    target_collection: str,
) -> WriteReport:
    """Copy every document of one collection into another.

    Existing target documents with the same key are overwritten; other
    target documents are left alone.

    Args:
        store: Store holding both collections.
        writer: Batch writer bound to the same store.
        source_collection: Collection to read.
        target_collection: Collection to write.

    Returns:
        Write report for the copy.

    Raises:
        FerryStoreError: If source and target are the same collection.
    """
    if source_collection == target_collection:
        raise FerryStoreError(
            f"Cannot copy '{source_collection}' onto itself. Choose a different target."
        )
    documents = store.stream(source_collection)
    operations = [
        WriteOperation("set", target_collection, document.key, dict(document.data))
        for document in documents
    ]
    report = writer.write_all(operations)
    _LOGGER.info(
        "collection_copied",
        source_collection=source_collection,
        target_collection=target_collection,
        written_count=report.written_count,
        failed_count=report.failed_count,
    )
    return report
