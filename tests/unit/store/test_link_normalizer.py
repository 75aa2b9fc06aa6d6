"""Unit tests for link field migration."""

from __future__ import annotations

import pytest

from core.errors import FerryConfigError, FerryStoreError
from core.types import LinkNormalizationRequest, WriteOperation
from store.batch_writer import BatchWriter
from store.link_normalizer import LinkFieldNormalizer, merge_link_values
from store.memory_store import InMemoryDocumentStore


class _RejectingStore(InMemoryDocumentStore):
    """Memory store rejecting any commit that touches one key."""

    def __init__(self, collections, rejected_key: str) -> None:
        super().__init__(collections)
        self._rejected_key = rejected_key

    def apply(self, operations: list[WriteOperation]) -> None:
        if any(operation.key == self._rejected_key for operation in operations):
            raise FerryStoreError(f"update rejected for {self._rejected_key}")
        super().apply(operations)


def _legacy_clients() -> dict[str, dict[str, object]]:
    return {
        "CL-1": {"name": "Alice", "pid": "P-1", "projects": ["P-2", "P-1", "", None]},
        "CL-2": {"name": "Bob", "pid": ["P-3"]},
        "CL-3": {"name": "Carol", "projects": ["P-4"]},
        "CL-4": {"name": "Dan", "pid": "  "},
    }


def test_normalize_rewrites_scalar_links_and_drops_legacy_list() -> None:
    """Scalar and legacy links should merge into one array."""
    store = InMemoryDocumentStore({"clients": _legacy_clients()})
    normalizer = LinkFieldNormalizer(store, BatchWriter(store))

    report = normalizer.normalize(LinkNormalizationRequest(collection="clients"))

    assert report.checked_count == 4
    assert report.migrated_keys == ("CL-1", "CL-3", "CL-4")
    assert report.skipped_keys == ("CL-2",)
    assert store.get("clients", "CL-1") == {"name": "Alice", "pid": ["P-1", "P-2"]}
    assert store.get("clients", "CL-2") == {"name": "Bob", "pid": ["P-3"]}
    assert store.get("clients", "CL-3") == {"name": "Carol", "pid": ["P-4"]}
    assert store.get("clients", "CL-4") == {"name": "Dan", "pid": []}
    assert store.commit_sizes == [3]


def test_normalize_is_a_no_op_on_a_second_run() -> None:
    """Already migrated documents should all be skipped."""
    store = InMemoryDocumentStore({"clients": _legacy_clients()})
    normalizer = LinkFieldNormalizer(store, BatchWriter(store))
    normalizer.normalize(LinkNormalizationRequest(collection="clients"))

    report = normalizer.normalize(LinkNormalizationRequest(collection="clients"))

    assert report.migrated_count == 0
    assert report.skipped_count == 4
    assert store.commit_sizes == [3]


def test_normalize_dry_run_plans_without_writing() -> None:
    """Dry runs should report planned rewrites and leave documents alone."""
    store = InMemoryDocumentStore({"clients": _legacy_clients()})

    report = LinkFieldNormalizer(store, BatchWriter(store)).normalize(
        LinkNormalizationRequest(collection="clients", dry_run=True)
    )

    assert report.migrated_keys == ("CL-1", "CL-3", "CL-4")
    assert store.get("clients", "CL-1")["pid"] == "P-1"
    assert store.commit_sizes == []


def test_normalize_reports_failed_chunks_and_keeps_going() -> None:
    """Keys in a rejected chunk should be failures, not migrations."""
    store = _RejectingStore({"clients": _legacy_clients()}, rejected_key="CL-1")

    report = LinkFieldNormalizer(store, BatchWriter(store, batch_size=1)).normalize(
        LinkNormalizationRequest(collection="clients")
    )

    assert report.migrated_keys == ("CL-3", "CL-4")
    assert report.failed_count == 1
    assert report.has_failures
    assert store.get("clients", "CL-1")["pid"] == "P-1"
    assert store.get("clients", "CL-3") == {"name": "Carol", "pid": ["P-4"]}


def test_normalize_honors_custom_field_names() -> None:
    """Other collections can migrate their own link fields."""
    store = InMemoryDocumentStore({"inquiries": {"INQ-1": {"owner": "CL-1", "owners": ["CL-2"]}}})

    LinkFieldNormalizer(store, BatchWriter(store)).normalize(
        LinkNormalizationRequest(collection="inquiries", link_field="owner", legacy_field="owners")
    )

    assert store.get("inquiries", "INQ-1") == {"owner": ["CL-1", "CL-2"]}


def test_normalize_rejects_identical_link_and_legacy_fields() -> None:
    """Merging a field into itself would delete it."""
    store = InMemoryDocumentStore()

    with pytest.raises(FerryConfigError, match="both 'pid'"):
        LinkFieldNormalizer(store, BatchWriter(store)).normalize(
            LinkNormalizationRequest(collection="clients", legacy_field="pid")
        )


def test_merge_link_values_ignores_non_list_legacy_values() -> None:
    """Only list-shaped legacy values are merged."""
    assert merge_link_values("P-1", "P-2") == ["P-1"]
    assert merge_link_values(None, None) == []
