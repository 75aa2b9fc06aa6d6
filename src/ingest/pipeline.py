"""Import orchestration for export-to-store migrations.

This module coordinates export loading, explicit purges, per-record
sanitization and key resolution, and chunked writes. Every purge
completes before the first import write, and each record produces
either a write operation or a skip entry; no per-record failure
escapes as an exception.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from core.config import FerryConfig
from core.logging_config import get_logger
from core.types import (
    CollectionPlan,
    ImportOptions,
    ImportReport,
    Record,
    SkippedRecord,
    WriteOperation,
    WriteReport,
)
from ingest.input_reader import ExportPayload, read_export
from store.batch_writer import BatchWriter
from store.document_store import DocumentStore
from store.memory_store import InMemoryDocumentStore
from store.purge import PurgeCoordinator
from transforms.identifier import RejectedRecord, resolve_document_id
from transforms.sanitizer import sanitize_record

_LOGGER = get_logger(__name__)

RecordOutcome = WriteOperation | SkippedRecord


class ImportPipelineRunner:
    """Runner for one purge-then-import pass over an export file."""

    def __init__(self, options: ImportOptions, config: FerryConfig, store: DocumentStore) -> None:
        self._options = options
        self._config = config
        # Dry runs write into a throwaway store; the live store is only read.
        write_store = InMemoryDocumentStore() if options.dry_run else store
        self._writer = BatchWriter(write_store, config.batch_size)
        self._purger = PurgeCoordinator(store, self._writer)

    def run(self) -> ImportReport:
        """Execute the import and return per-collection reports."""
        default_collection = self._options.default_collection or self._config.default_collection
        export = read_export(self._options.source_uri, self._config, default_collection)
        plans = build_collection_plans(export, self._options, self._config)
        _LOGGER.info(
            "import_started",
            source_uri=self._options.source_uri,
            collections=[plan.name for plan in plans],
            dry_run=self._options.dry_run,
        )
        purged = self._purge_collections(plans)
        collection_reports: dict[str, WriteReport] = {}
        for plan in plans:
            collection_reports[plan.name] = self._import_collection(plan, export[plan.name])
        report = ImportReport(collection_reports=collection_reports, purged=purged)
        _log_import_completion(self._options, report)
        return report

    def _purge_collections(self, plans: Sequence[CollectionPlan]) -> dict[str, WriteReport]:
        purged: dict[str, WriteReport] = {}
        for plan in plans:
            if not (plan.purge or self._options.purge):
                continue
            if self._options.dry_run:
                purged[plan.name] = self._purger.preview(plan.name)
            else:
                purged[plan.name] = self._purger.purge(plan.name)
        return purged

    def _import_collection(self, plan: CollectionPlan, records: Sequence[Record]) -> WriteReport:
        if not records:
            _LOGGER.warning("collection_empty", collection=plan.name)
            return WriteReport()
        operations, skipped = prepare_collection(plan, records)
        _LOGGER.info(
            "collection_prepared",
            collection=plan.name,
            record_count=len(records),
            operation_count=len(operations),
            skipped_count=len(skipped),
        )
        return self._writer.write_all(operations, skipped)


def import_export(
    options: ImportOptions,
    config: FerryConfig,
    store: DocumentStore,
) -> ImportReport:
    """Run the import pipeline against a store handle.

    Dry runs write into a throwaway in-memory store and only read
    ``store`` to count the documents a purge would delete.

    Args:
        options: Import request options.
        config: Runtime configuration.
        store: Initialized document store.

    Returns:
        Per-collection write and purge reports.

    Raises:
        FerryInputError: If the export cannot be read.
        FerryStoreError: If listing keys for a purge fails.
    """
    return ImportPipelineRunner(options, config, store).run()


def build_collection_plans(
    export: ExportPayload,
    options: ImportOptions,
    config: FerryConfig,
) -> list[CollectionPlan]:
    """Pair each exported collection with its import plan.

    Collections without a declared plan use the default identifier chain
    and the configured date fields. Declared plans with no data in the
    export are reported and skipped.
    """
    declared = {plan.name: plan for plan in options.collections}
    for name in declared:
        if name not in export:
            _LOGGER.warning("collection_missing_from_export", collection=name)
    return [
        declared.get(name) or CollectionPlan(name=name, date_fields=config.date_fields)
        for name in export
    ]


def prepare_collection(
    plan: CollectionPlan,
    records: Sequence[Mapping[str, object]],
) -> tuple[list[WriteOperation], list[SkippedRecord]]:
    """Split records into write operations and skips.

    Args:
        plan: Collection import plan.
        records: Raw export records.

    Returns:
        Ordered ``set`` operations and the records that were skipped.
    """
    operations: list[WriteOperation] = []
    skipped: list[SkippedRecord] = []
    for index, record in enumerate(records):
        outcome = prepare_record(plan, index, record)
        if isinstance(outcome, SkippedRecord):
            skipped.append(outcome)
            _LOGGER.warning(
                "record_skipped",
                collection=plan.name,
                index=index,
                reason=outcome.reason,
            )
            continue
        operations.append(outcome)
    return operations, skipped


def prepare_record(plan: CollectionPlan, index: int, record: Mapping[str, object]) -> RecordOutcome:
    """Sanitize one record and resolve its key.

    A transform error turns into a skip so it never aborts the collection.
    """
    try:
        sanitized = sanitize_record(record, plan.date_fields)
        resolution = resolve_document_id(sanitized, plan.id_fields)
    except Exception as error:
        return SkippedRecord(
            collection=plan.name,
            index=index,
            reason=f"transform failed: {error}",
            record=dict(record),
        )
    if isinstance(resolution, RejectedRecord):
        return SkippedRecord(
            collection=plan.name,
            index=index,
            reason=resolution.reason,
            record=dict(record),
        )
    return WriteOperation("set", plan.name, resolution.key, sanitized)


def _log_import_completion(options: ImportOptions, report: ImportReport) -> None:
    """Log pipeline completion with contextual metadata."""
    _LOGGER.info(
        "import_completed",
        source_uri=options.source_uri,
        written_count=report.written_count,
        skipped_count=report.skipped_count,
        failed_count=report.failed_count,
        purged=report.purged_counts,
        dry_run=options.dry_run,
    )
