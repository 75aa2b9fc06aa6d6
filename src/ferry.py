"""Public SDK surface for Ferry.

This module provides a stable import path for SDK users.
It re-exports the primary client and typed option models.
"""

from __future__ import annotations

from core.config import FerryConfig
from core.plan import MigrationPlan, ReconcileTask, load_migration_plan
from core.types import (
    CollectionPlan,
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
from reconcile.projection import collect_field
from store.exporter import ExportResult
from store.memory_store import InMemoryDocumentStore
from store.migration_sdk import FerryClient, PlanRunResult
from store.reference_allocator import next_reference
from transforms.sanitizer import sanitize_record

__all__ = [
    "CollectionPlan",
    "ExportRequest",
    "ExportResult",
    "FerryClient",
    "FerryConfig",
    "ImportOptions",
    "ImportReport",
    "InMemoryDocumentStore",
    "LinkNormalizationReport",
    "LinkNormalizationRequest",
    "MigrationPlan",
    "PlanRunResult",
    "ReconcileReport",
    "ReconcileRequest",
    "ReconcileTask",
    "SequenceScope",
    "Temporal",
    "WriteReport",
    "collect_field",
    "load_migration_plan",
    "next_reference",
    "sanitize_record",
]
