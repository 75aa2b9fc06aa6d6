"""Console summaries for CLI commands.

Lines are ``key=value`` pairs meant for people reading a terminal;
they are not a machine-readable contract.
"""

from __future__ import annotations

from core.types import ImportReport, LinkNormalizationReport, ReconcileReport, WriteReport


def print_import_report(report: ImportReport, dry_run: bool = False) -> None:
    """Print per-collection and total import counts."""
    for collection, purge_report in report.purged.items():
        print_purge_report(collection, purge_report)
    for collection, write_report in report.collection_reports.items():
        print_write_report(collection, write_report)
    print(
        f"written={report.written_count} "
        f"skipped={report.skipped_count} "
        f"failed={report.failed_count} "
        f"purged={sum(report.purged_counts.values())}"
        + (" dry_run=true" if dry_run else "")
    )


def print_purge_report(collection: str, report: WriteReport) -> None:
    """Print deleted counts for one purged collection and any failed chunks."""
    print(f"collection={collection} purged={report.written_count} failed={report.failed_count}")
    _print_chunk_failures(collection, report)


def print_write_report(collection: str, report: WriteReport) -> None:
    """Print counts for one collection followed by skip and failure reasons."""
    print(
        f"collection={collection} "
        f"written={report.written_count} "
        f"skipped={report.skipped_count} "
        f"failed={report.failed_count} "
        f"commits={report.commit_count}"
    )
    for skipped in report.skipped:
        print(
            f"skipped collection={skipped.collection} "
            f"index={skipped.index} reason={skipped.reason}"
        )
    _print_chunk_failures(collection, report)


def print_reconcile_report(label: str, report: ReconcileReport, dry_run: bool = False) -> None:
    """Print reconciliation counts and per-record failures."""
    print(
        f"reconcile={label} "
        f"checked={report.checked_count} "
        f"updated={report.updated_count} "
        f"unchanged={report.unchanged_count} "
        f"failed={len(report.failures)}"
        + (" dry_run=true" if dry_run else "")
    )
    for failure in report.failures:
        print(f"failed key={failure.target_key} reason={failure.reason}")


def _print_chunk_failures(collection: str, report: WriteReport) -> None:
    for failure in report.failures:
        print(
            f"failed collection={collection} chunk={failure.chunk_index} "
            f"operations={failure.operation_count} reason={failure.reason}"
        )


def print_link_normalization_report(
    collection: str,
    report: LinkNormalizationReport,
    dry_run: bool = False,
) -> None:
    """Print link field migration counts and any failed chunks."""
    print(
        f"normalize collection={collection} "
        f"checked={report.checked_count} "
        f"migrated={report.migrated_count} "
        f"skipped={report.skipped_count} "
        f"failed={report.failed_count}"
        + (" dry_run=true" if dry_run else "")
    )
    _print_chunk_failures(collection, report.write_report)
