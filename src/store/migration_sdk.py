"""Python SDK for migration operations.

This module exposes high-level APIs for import, purge, reconciliation,
link field migration, reference allocation, export, copy and plan
execution over one explicitly opened document store handle.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable

from core.config import FerryConfig, parse_batch_size
from core.logging_config import get_logger
from core.plan import MigrationPlan, ReconcileTask, load_migration_plan
from core.types import (
    ExportRequest,
    ImportOptions,
    ImportReport,
    LinkNormalizationReport,
    LinkNormalizationRequest,
    ReconcileReport,
    ReconcileRequest,
    SequenceScope,
    Temporal,
    WriteReport,
)
from ingest.pipeline import import_export
from reconcile.engine import ReconciliationEngine
from reconcile.projection import collect_field
from store.batch_writer import BatchWriter
from store.collection_copy import copy_collection
from store.document_store import DocumentStore
from store.exporter import CollectionExporter, ExportResult
from store.link_normalizer import LinkFieldNormalizer
from store.purge import PurgeCoordinator
from store.reference_allocator import ReferenceAllocator
from store.store_factory import open_document_store

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class PlanRunResult:
    """Outcome of one migration plan run.

    Attributes:
        import_report: Import outcome, or None when the plan imports nothing.
        reconcile_reports: Reconcile outcome per ``target.derived_field`` label.
    """

    import_report: ImportReport | None
    reconcile_reports: dict[str, ReconcileReport] = field(default_factory=dict)

    @property
    def has_failures(self) -> bool:
        """Whether any import chunk failed to commit."""
        return self.import_report is not None and self.import_report.has_failures


class FerryClient:
    """Primary SDK entry point for migration workflows."""

    def __init__(
        self,
        config: FerryConfig | None = None,
        store: DocumentStore | None = None,
        clock: Callable[[], Temporal] = Temporal.now,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            store: Optional store handle; opened from config on first use.
            clock: Source of last-modified timestamps for write-backs.
        """
        self._config = config or FerryConfig.from_env()
        self._store = store
        self._clock = clock

    @property
    def config(self) -> FerryConfig:
        """Runtime configuration used by this client."""
        return self._config

    @property
    def store(self) -> DocumentStore:
        """Store handle, opened on first access.

        Raises:
            FerryCredentialError: If credentials are missing or invalid.
        """
        if self._store is None:
            self._store = open_document_store(self._config)
        return self._store

    def with_batch_size(self, batch_size: int) -> "FerryClient":
        """Clone the client with a different write batch size."""
        updated_config = replace(self._config, batch_size=parse_batch_size(batch_size))
        return FerryClient(updated_config, self._store, self._clock)

    def import_export(self, options: ImportOptions) -> ImportReport:
        """Import an export file.

        Dry runs write into a throwaway in-memory store so counts and
        skips are reported without writing to the live store; requested
        purges are previewed by counting live keys.

        Raises:
            FerryInputError: If the export cannot be read.
            FerryStoreError: If a purge cannot list keys.
        """
        return import_export(options, self._config, self.store)

    def purge(self, collection: str) -> WriteReport:
        """Delete every document in a collection.

        Returns:
            Delete report; failed chunks leave their documents stored.
        """
        writer = BatchWriter(self.store, self._config.batch_size)
        return PurgeCoordinator(self.store, writer).purge(collection)

    def reconcile(self, request: ReconcileRequest) -> ReconcileReport:
        """Recompute a derived field and write back drifted values."""
        return ReconciliationEngine(self.store, self._clock).reconcile(request)

    def reconcile_task(self, task: ReconcileTask, dry_run: bool = False) -> ReconcileReport:
        """Run a plan reconcile task that collects one source field."""
        request = ReconcileRequest(
            target_collection=task.target_collection,
            source_collection=task.source_collection,
            link_field=task.link_field,
            derived_field=task.derived_field,
            projection=collect_field(task.source_field),
            target_key_field=task.target_key_field,
            touch_field=task.touch_field,
            dry_run=dry_run,
        )
        return self.reconcile(request)

    def normalize_links(self, request: LinkNormalizationRequest) -> LinkNormalizationReport:
        """Rewrite a scalar link field as an array, merging the legacy list."""
        writer = BatchWriter(self.store, self._config.batch_size)
        return LinkFieldNormalizer(self.store, writer).normalize(request)

    def next_reference(
        self,
        collection: str,
        scope: SequenceScope,
        field_name: str | None = None,
    ) -> str:
        """Compute the next reference number in a scope.

        The reference is not reserved; see ``store.reference_allocator``.
        """
        return ReferenceAllocator(self.store).allocate(collection, scope, field_name)

    def export(self, request: ExportRequest) -> ExportResult:
        """Dump collections to a local or S3 export file."""
        return CollectionExporter(self.store, self._config).export(request)

    def copy(self, source_collection: str, target_collection: str) -> WriteReport:
        """Copy a collection under the same document keys."""
        writer = BatchWriter(self.store, self._config.batch_size)
        return copy_collection(self.store, writer, source_collection, target_collection)

    def run_plan(self, plan_file: str, dry_run: bool = False) -> PlanRunResult:
        """Execute a YAML migration plan.

        The import (if any) runs first, then each reconcile task in order.

        Args:
            plan_file: Path to the YAML plan.
            dry_run: Import into a throwaway store and skip write-backs.

        Returns:
            Import and per-task reconcile outcomes.
        """
        plan = load_migration_plan(plan_file, self._config.date_fields)
        client = self
        if plan.defaults.batch_size is not None:
            client = self.with_batch_size(plan.defaults.batch_size)
        _LOGGER.info(
            "plan_started",
            plan_file=plan_file,
            collections=[collection.name for collection in plan.collections],
            reconcile_count=len(plan.reconcile),
            dry_run=dry_run,
        )
        import_report = None
        if plan.collections or plan.defaults.source_uri is not None:
            import_report = client.import_export(_plan_import_options(plan, client.config, dry_run))
        reconcile_reports: dict[str, ReconcileReport] = {}
        for task in plan.reconcile:
            label = f"{task.target_collection}.{task.derived_field}"
            reconcile_reports[label] = client.reconcile_task(task, dry_run=dry_run)
        return PlanRunResult(import_report=import_report, reconcile_reports=reconcile_reports)


def _plan_import_options(plan: MigrationPlan, config: FerryConfig, dry_run: bool) -> ImportOptions:
    return ImportOptions(
        source_uri=plan.defaults.source_uri or config.source_uri,
        default_collection=plan.defaults.collection or config.default_collection,
        collections=plan.collections,
        dry_run=dry_run,
    )
