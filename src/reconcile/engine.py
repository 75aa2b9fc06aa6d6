"""Reconciliation engine for derived fields.

For each target document the engine queries the source collection for
documents linked to the target's key, recomputes the derived value,
and issues a single-document update only when the stored value has
drifted. Targets are processed one at a time; a failure on one target
is logged and the pass continues with the next.
"""

from __future__ import annotations

from typing import Any, Callable

from core.errors import FerryReconcileError
from core.logging_config import get_logger
from core.types import (
    ReconcileFailure,
    ReconcileReport,
    ReconcileRequest,
    ReconciliationDelta,
    StoredDocument,
    Temporal,
)
from reconcile.projection import values_equivalent
from store.document_store import DocumentStore

_LOGGER = get_logger(__name__)


class ReconciliationEngine:
    """Sequential derived-field reconciler over one store handle."""

    def __init__(
        self,
        store: DocumentStore,
        clock: Callable[[], Temporal] = Temporal.now,
    ) -> None:
        self._store = store
        self._clock = clock

    def reconcile(self, request: ReconcileRequest) -> ReconcileReport:
        """Run one reconciliation pass.

        Args:
            request: Target/source collections, link and derived fields.

        Returns:
            Counts of checked targets, updated keys, and isolated failures.

        Raises:
            FerryStoreError: If the target collection cannot be read at all.
        """
        targets = self._store.stream(request.target_collection)
        updated_keys: list[str] = []
        failures: list[ReconcileFailure] = []
        for target in targets:
            try:
                delta = self.compute_delta(request, target)
                if not delta.diverges:
                    continue
                self._write_back(request, target, delta)
            except Exception as error:
                failures.append(ReconcileFailure(target_key=target.key, reason=str(error)))
                _LOGGER.error(
                    "reconcile_record_failed",
                    target_collection=request.target_collection,
                    target_key=target.key,
                    error=str(error),
                )
                continue
            updated_keys.append(target.key)
        report = ReconcileReport(
            checked_count=len(targets),
            updated_keys=tuple(updated_keys),
            failures=tuple(failures),
        )
        _LOGGER.info(
            "reconcile_completed",
            target_collection=request.target_collection,
            source_collection=request.source_collection,
            derived_field=request.derived_field,
            checked_count=report.checked_count,
            updated_count=report.updated_count,
            failed_count=len(report.failures),
            dry_run=request.dry_run,
        )
        return report

    def compute_delta(
        self,
        request: ReconcileRequest,
        target: StoredDocument,
    ) -> ReconciliationDelta:
        """Recompute the derived value for one target document.

        Raises:
            FerryStoreError: If the source query fails.
            FerryReconcileError: If the projection cannot be applied.
        """
        link_key = resolve_link_key(target, request.target_key_field)
        matches = self._find_matches(request, link_key)
        try:
            computed = list(request.projection(matches))
        except Exception as error:
            raise FerryReconcileError(
                f"Projection for '{request.derived_field}' failed on "
                f"{request.target_collection}/{target.key}: {error}"
            ) from error
        stored = target.data.get(request.derived_field)
        return ReconciliationDelta(
            target_key=target.key,
            stored=stored,
            computed=computed,
            diverges=not values_equivalent(stored, computed),
        )

    def _find_matches(self, request: ReconcileRequest, link_key: str) -> list[StoredDocument]:
        matches: dict[str, StoredDocument] = {}
        for op in ("==", "array-contains"):
            for document in self._store.query(
                request.source_collection, request.link_field, op, link_key
            ):
                matches.setdefault(document.key, document)
        return [matches[key] for key in sorted(matches)]

    def _write_back(
        self,
        request: ReconcileRequest,
        target: StoredDocument,
        delta: ReconciliationDelta,
    ) -> None:
        _LOGGER.info(
            "reconcile_record_updated",
            target_collection=request.target_collection,
            target_key=target.key,
            stored=_loggable(delta.stored),
            computed=_loggable(delta.computed),
            dry_run=request.dry_run,
        )
        if request.dry_run:
            return
        fields: dict[str, Any] = {request.derived_field: delta.computed}
        if request.touch_field:
            fields[request.touch_field] = self._clock()
        self._store.update(request.target_collection, target.key, fields)


def resolve_link_key(target: StoredDocument, target_key_field: str | None) -> str:
    """Return the value source documents link to for this target.

    The named target field wins when it holds a non-blank string;
    otherwise the document key is used.
    """
    if target_key_field:
        value = target.data.get(target_key_field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return target.key


def _loggable(value: object) -> object:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return None if value is None else str(value)
