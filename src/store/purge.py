"""Collection purge before a full reseed.

Purging is destructive, so it only runs when a caller asks for it
explicitly; ordinary imports never purge.
"""

from __future__ import annotations

from core.logging_config import get_logger
from core.types import WriteOperation, WriteReport
from store.batch_writer import BatchWriter
from store.document_store import DocumentStore

_LOGGER = get_logger(__name__)


class PurgeCoordinator:
    """Deletes every document of a collection through the batch writer."""

    def __init__(self, store: DocumentStore, writer: BatchWriter) -> None:
        self._store = store
        self._writer = writer

    def purge(self, collection: str) -> WriteReport:
        """Delete all documents in ``collection``.

        Args:
            collection: Collection to empty.

        Returns:
            Delete report. ``written_count`` counts deleted documents; keys
            in failed chunks appear under ``failures`` and stay stored.
        """
        keys = self._store.list_keys(collection)
        if not keys:
            _LOGGER.info("purge_skipped_empty", collection=collection)
            return WriteReport()
        operations = [WriteOperation("delete", collection, key) for key in keys]
        report = self._writer.write_all(operations)
        if report.has_failures:
            _LOGGER.error(
                "purge_incomplete",
                collection=collection,
                deleted_count=report.written_count,
                failed_count=report.failed_count,
            )
        else:
            _LOGGER.info(
                "purge_completed",
                collection=collection,
                deleted_count=report.written_count,
            )
        return report

    def preview(self, collection: str) -> WriteReport:
        """Count the documents a purge would delete, without writing."""
        key_count = len(self._store.list_keys(collection))
        _LOGGER.info("purge_previewed", collection=collection, document_count=key_count)
        return WriteReport(written_count=key_count)
