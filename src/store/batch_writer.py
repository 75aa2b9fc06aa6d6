"""Bounded atomic batch writing.

This module partitions write operations into store batches of at most
``MAX_BATCH_SIZE`` operations and commits them strictly in order.
A failed commit is recorded against its chunk and the run moves on;
chunks already committed stay committed.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence

from core.config import parse_batch_size
from core.constants import DEFAULT_BATCH_SIZE
from core.errors import FerryStoreError
from core.logging_config import get_logger
from core.types import ChunkFailure, SkippedRecord, WriteOperation, WriteReport
from store.document_store import DocumentStore

_LOGGER = get_logger(__name__)


class BatchWriter:
    """Sequential chunked writer over one store handle."""

    def __init__(self, store: DocumentStore, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        self._store = store
        self._batch_size = parse_batch_size(batch_size)

    @property
    def batch_size(self) -> int:
        """Maximum operations per commit."""
        return self._batch_size

    def write_all(
        self,
        operations: Sequence[WriteOperation],
        skipped: Iterable[SkippedRecord] = (),
    ) -> WriteReport:
        """Commit operations chunk by chunk.

        Args:
            operations: Ordered writes to apply.
            skipped: Records already rejected upstream, carried into the report.

        Returns:
            Counts of written operations, commits, skips, and failed chunks.
        """
        written_count = 0
        commit_count = 0
        failures: list[ChunkFailure] = []
        for chunk_index, chunk in enumerate(partition_operations(operations, self._batch_size)):
            commit_count += 1
            try:
                self._commit_chunk(chunk)
            except FerryStoreError as error:
                failures.append(
                    ChunkFailure(
                        chunk_index=chunk_index,
                        keys=tuple(operation.key for operation in chunk),
                        reason=str(error),
                    )
                )
                _LOGGER.error(
                    "chunk_commit_failed",
                    chunk_index=chunk_index,
                    operation_count=len(chunk),
                    error=str(error),
                )
                continue
            written_count += len(chunk)
            _LOGGER.info(
                "chunk_committed",
                chunk_index=chunk_index,
                operation_count=len(chunk),
                written_count=written_count,
            )
        return WriteReport(
            written_count=written_count,
            commit_count=commit_count,
            skipped=tuple(skipped),
            failures=tuple(failures),
        )

    def _commit_chunk(self, chunk: list[WriteOperation]) -> None:
        batch = self._store.batch()
        for operation in chunk:
            if operation.kind == "set":
                batch.set(operation.collection, operation.key, operation.data or {})
            elif operation.kind == "update":
                batch.update(operation.collection, operation.key, operation.data or {})
            else:
                batch.delete(operation.collection, operation.key)
        batch.commit()


def partition_operations(
    operations: Sequence[WriteOperation],
    batch_size: int,
) -> Iterator[list[WriteOperation]]:
    """Yield ordered chunks of at most ``batch_size`` operations."""
    for start in range(0, len(operations), batch_size):
        yield list(operations[start:start + batch_size])
