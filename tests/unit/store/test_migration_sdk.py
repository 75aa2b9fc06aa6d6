"""Unit tests for the migration SDK client."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from core.config import FerryConfig
from core.errors import FerryConfigError
from core.types import ImportOptions, LinkNormalizationRequest, SequenceScope, Temporal
from store.memory_store import InMemoryDocumentStore
from store.migration_sdk import FerryClient
from tests.fixture_paths import fixture_path

_EXPORT = fixture_path("exports/final_data.json")
_TOUCHED_AT = Temporal(1760659200, 0)


def _config() -> FerryConfig:
    return replace(FerryConfig.from_env(), store_backend="memory", batch_size=500)


def _write_plan(tmp_path: Path) -> Path:
    plan_file = tmp_path / "plan.yaml"
    plan_file.write_text(
        "\n".join(
            [
                "version: 1",
                "defaults:",
                f"  source: {_EXPORT}",
                "  batch_size: 2",
                "collections:",
                "  - name: clients",
                "    id_fields: [clientId, id]",
                "    purge: true",
                "reconcile:",
                "  - target: projects",
                "    source: clients",
                "    link_field: pid",
                "    derived_field: clientNames",
                "    source_field: name",
                "    target_key_field: pid",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return plan_file


def test_dry_run_import_leaves_the_store_untouched() -> None:
    """Dry runs should report counts without writing."""
    store = InMemoryDocumentStore()
    client = FerryClient(_config(), store)

    report = client.import_export(ImportOptions(source_uri=str(_EXPORT), dry_run=True))

    assert report.written_count == 7
    assert store.list_keys("clients") == []


def test_store_is_opened_lazily_once(monkeypatch: pytest.MonkeyPatch) -> None:
    """The configured store should be opened on first use only."""
    opened: list[InMemoryDocumentStore] = []

    def _fake_open(config: FerryConfig) -> InMemoryDocumentStore:
        opened.append(InMemoryDocumentStore({"clients": {"CL-2025-001": {}}}))
        return opened[-1]

    monkeypatch.setattr("store.migration_sdk.open_document_store", _fake_open)
    client = FerryClient(_config())

    assert opened == []
    assert client.next_reference("clients", SequenceScope("CL", 2025)) == "CL-2025-002"
    assert client.purge("clients").written_count == 1
    assert len(opened) == 1


def test_with_batch_size_validates_and_shares_the_store() -> None:
    """Cloned clients should keep the store and validate the size."""
    store = InMemoryDocumentStore({"clients": {"CL-1": {"name": "A"}, "CL-2": {"name": "B"}}})
    client = FerryClient(_config(), store).with_batch_size(1)

    client.copy("clients", "clients_copy")

    assert store.commit_sizes == [1, 1]
    with pytest.raises(FerryConfigError):
        client.with_batch_size(0)


def test_run_plan_imports_then_reconciles(tmp_path: Path) -> None:
    """A plan should import first and then fix drifted derived fields."""
    store = InMemoryDocumentStore({"clients": {"OLD-1": {"name": "Gone"}}})
    client = FerryClient(_config(), store, clock=lambda: _TOUCHED_AT)

    result = client.run_plan(str(_write_plan(tmp_path)))

    assert result.import_report is not None
    assert result.import_report.purged_counts == {"clients": 1}
    assert result.import_report.collection_reports["clients"].commit_count == 2
    reconcile = result.reconcile_reports["projects.clientNames"]
    assert reconcile.checked_count == 3
    assert reconcile.updated_keys == ("P-2024-010", "P-2025-001")
    assert store.get("projects", "P-2025-001")["clientNames"] == ["Alice", "Bob"]
    assert store.get("projects", "P-2024-010")["updatedAt"] == _TOUCHED_AT
    assert not result.has_failures


def test_run_plan_dry_run_writes_nothing(tmp_path: Path) -> None:
    """Dry-run plans should import into a throwaway store and skip write-backs."""
    store = InMemoryDocumentStore(
        {
            "projects": {"P-1": {"pid": "P-1", "clientNames": []}},
            "clients": {"CL-1": {"name": "Alice", "pid": ["P-1"]}},
        }
    )
    client = FerryClient(_config(), store)

    result = client.run_plan(str(_write_plan(tmp_path)), dry_run=True)

    assert result.import_report is not None and result.import_report.written_count == 7
    assert result.reconcile_reports["projects.clientNames"].updated_keys == ("P-1",)
    assert store.get("projects", "P-1") == {"pid": "P-1", "clientNames": []}
    assert store.list_keys("clients") == ["CL-1"]


def test_dry_run_import_previews_purges_against_the_live_store() -> None:
    """Dry-run purges should count live documents instead of an empty store."""
    store = InMemoryDocumentStore({"clients": {"OLD-1": {}, "OLD-2": {}, "OLD-3": {}}})
    client = FerryClient(_config(), store)

    report = client.import_export(ImportOptions(source_uri=str(_EXPORT), purge=True, dry_run=True))

    assert report.purged_counts["clients"] == 3
    assert store.list_keys("clients") == ["OLD-1", "OLD-2", "OLD-3"]


def test_normalize_links_uses_the_configured_batch_size() -> None:
    """Link migrations should go through the client's batch writer."""
    store = InMemoryDocumentStore(
        {"clients": {f"CL-{index}": {"pid": f"P-{index}"} for index in range(3)}}
    )
    client = FerryClient(_config(), store).with_batch_size(2)

    report = client.normalize_links(LinkNormalizationRequest(collection="clients"))

    assert report.migrated_count == 3
    assert store.commit_sizes == [2, 1]
    assert store.get("clients", "CL-0") == {"pid": ["P-0"]}
