"""Unit tests for CLI command handling."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cli.main import main
from core.errors import FerryStoreError
from core.types import WriteOperation
from store.memory_store import InMemoryDocumentStore
from tests.fixture_paths import fixture_path

_EXPORT = str(fixture_path("exports/final_data.json"))


class _FailingCommitStore(InMemoryDocumentStore):
    """Memory store whose every commit fails."""

    def apply(self, operations: list[WriteOperation]) -> None:
        raise FerryStoreError("simulated commit failure")


class _RejectingDeleteStore(InMemoryDocumentStore):
    """Memory store whose delete commits are rejected."""

    def apply(self, operations: list[WriteOperation]) -> None:
        if any(operation.kind == "delete" for operation in operations):
            raise FerryStoreError("delete rejected")
        super().apply(operations)


@pytest.fixture(autouse=True)
def _memory_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FERRY_STORE_BACKEND", "memory")
    for name in ("FERRY_BATCH_SIZE", "FERRY_DATE_FIELDS", "FERRY_COLLECTION", "FERRY_SOURCE"):
        monkeypatch.delenv(name, raising=False)


def _use_store(monkeypatch: pytest.MonkeyPatch, store: InMemoryDocumentStore) -> None:
    monkeypatch.setattr("store.migration_sdk.open_document_store", lambda config: store)


def test_cli_import_prints_summary_and_exits_zero_with_skips(capsys) -> None:
    """Per-record skips should be reported without failing the run."""
    exit_code = main(["import", _EXPORT])
    output = capsys.readouterr().out

    assert exit_code == 0
    assert "collection=clients written=4 skipped=1 failed=0" in output
    assert "skipped collection=clients index=2 reason=missing identifier" in output
    assert "written=7 skipped=1 failed=0 purged=0" in output


def test_cli_import_uses_ferry_source_by_default(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    """Without arguments import should read FERRY_SOURCE and FERRY_COLLECTION."""
    monkeypatch.setenv("FERRY_SOURCE", str(fixture_path("exports/inquiries_array.json")))
    monkeypatch.setenv("FERRY_COLLECTION", "inquiries")

    exit_code = main(["import"])

    assert exit_code == 0
    assert "collection=inquiries written=2" in capsys.readouterr().out


def test_cli_import_exits_one_when_a_chunk_fails(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    """A failed commit should make the partial import visible."""
    _use_store(monkeypatch, _FailingCommitStore())

    exit_code = main(["import", _EXPORT])
    output = capsys.readouterr().out

    assert exit_code == 1
    assert "failed collection=clients chunk=0 operations=4" in output


def test_cli_import_reports_fatal_input_errors(tmp_path: Path, capsys) -> None:
    """Unreadable exports should exit one with an error line."""
    exit_code = main(["import", str(tmp_path / "missing.json")])

    assert exit_code == 1
    assert capsys.readouterr().out.startswith("error=")


def test_cli_rejects_invalid_batch_size(capsys) -> None:
    """Out-of-range batch sizes should be fatal configuration errors."""
    exit_code = main(["--batch-size", "501", "import", _EXPORT])

    assert exit_code == 1
    assert "Invalid batch size 501" in capsys.readouterr().out


def test_cli_purge_requires_confirmation(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    """Purge should refuse to run without --yes."""
    store = InMemoryDocumentStore({"clients": {"CL-1": {"name": "Alice"}}})
    _use_store(monkeypatch, store)

    refused = main(["purge", "clients"])
    confirmed = main(["purge", "clients", "--yes"])
    output = capsys.readouterr().out

    assert refused == 1
    assert confirmed == 0
    assert "collection=clients purged=1" in output
    assert store.list_keys("clients") == []


def test_cli_purge_exits_one_when_deletes_fail(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    """A rejected delete chunk should not be reported as a clean purge."""
    store = _RejectingDeleteStore({"clients": {"CL-1": {"name": "Alice"}}})
    _use_store(monkeypatch, store)

    exit_code = main(["purge", "clients", "--yes"])
    output = capsys.readouterr().out

    assert exit_code == 1
    assert "collection=clients purged=0 failed=1" in output
    assert "failed collection=clients chunk=0 operations=1 reason=delete rejected" in output
    assert store.list_keys("clients") == ["CL-1"]


def test_cli_import_exits_one_when_purge_fails(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys,
) -> None:
    """A failed purge should be counted in the import summary."""
    export_file = tmp_path / "export.json"
    export_file.write_text(json.dumps({"clients": [{"id": "NEW"}]}), encoding="utf-8")
    _use_store(monkeypatch, _RejectingDeleteStore({"clients": {"OLD": {}}}))

    exit_code = main(["import", str(export_file), "--purge"])
    output = capsys.readouterr().out

    assert exit_code == 1
    assert "written=1 skipped=0 failed=1 purged=0" in output


def test_cli_import_dry_run_previews_purge(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    """Dry-run purges should count live documents and delete none."""
    store = InMemoryDocumentStore({"clients": {"OLD-1": {}, "OLD-2": {}}})
    _use_store(monkeypatch, store)

    exit_code = main(["import", _EXPORT, "--purge", "--dry-run"])
    output = capsys.readouterr().out

    assert exit_code == 0
    assert "collection=clients purged=2 failed=0" in output
    assert "purged=2 dry_run=true" in output
    assert store.list_keys("clients") == ["OLD-1", "OLD-2"]


def test_cli_normalize_links_migrates_clients(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    """normalize-links should default to the client project links."""
    store = InMemoryDocumentStore(
        {
            "clients": {
                "CL-1": {"pid": "P-1", "projects": ["P-2"]},
                "CL-2": {"pid": ["P-3"]},
            }
        }
    )
    _use_store(monkeypatch, store)

    exit_code = main(["normalize-links"])
    output = capsys.readouterr().out

    assert exit_code == 0
    assert "normalize collection=clients checked=2 migrated=1 skipped=1 failed=0" in output
    assert store.get("clients", "CL-1") == {"pid": ["P-1", "P-2"]}


def test_cli_next_ref_prints_reference(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    """next-ref should print the next reference in scope."""
    store = InMemoryDocumentStore(
        {
            "clients": {
                "CL-2025-001": {},
                "CL-2025-002": {},
                "CL-2024-999": {},
            }
        }
    )
    _use_store(monkeypatch, store)

    exit_code = main(["next-ref", "--collection", "clients", "--prefix", "CL", "--year", "2025"])

    assert exit_code == 0
    assert capsys.readouterr().out.strip() == "CL-2025-003"


def test_cli_reconcile_uses_project_client_defaults(
    monkeypatch: pytest.MonkeyPatch,
    capsys,
) -> None:
    """reconcile defaults should rebuild project client names."""
    store = InMemoryDocumentStore(
        {
            "projects": {"doc-1": {"pid": "P-1", "clientNames": ["Alice"]}},
            "clients": {
                "CL-1": {"name": "Alice", "pid": ["P-1"]},
                "CL-2": {"name": "Bob", "pid": ["P-1"]},
            },
        }
    )
    _use_store(monkeypatch, store)

    exit_code = main(["reconcile"])
    output = capsys.readouterr().out

    assert exit_code == 0
    assert "reconcile=projects.clientNames checked=1 updated=1 unchanged=0 failed=0" in output
    assert store.get("projects", "doc-1")["clientNames"] == ["Alice", "Bob"]


def test_cli_export_and_copy(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys) -> None:
    """export and copy should work against the configured store."""
    store = InMemoryDocumentStore({"clients": {"CL-1": {"name": "Alice"}}})
    _use_store(monkeypatch, store)
    output_path = tmp_path / "backup.json"

    export_code = main(["export", str(output_path), "--collection", "clients"])
    copy_code = main(["copy", "clients", "clients_archive"])
    output = capsys.readouterr().out

    assert export_code == 0 and copy_code == 0
    assert json.loads(output_path.read_text(encoding="utf-8")) == {
        "clients": [{"name": "Alice", "id": "CL-1"}]
    }
    assert "collection=clients exported=1" in output
    assert store.get("clients_archive", "CL-1") == {"name": "Alice"}
