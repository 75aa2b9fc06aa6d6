"""Ferry CLI entry points.
This module exposes migration commands for import, purge, reconciliation,
link field migration, reference allocation, export and copy. It maps
argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from datetime import datetime, timezone
from typing import Any, Sequence

from cli.plan_command import add_plan_command, run_plan_command
from cli.summary_output import (
    print_import_report,
    print_link_normalization_report,
    print_purge_report,
    print_reconcile_report,
    print_write_report,
)
from core.config import FerryConfig
from core.constants import DEFAULT_LEGACY_LINK_FIELD, DEFAULT_LINK_FIELD, DEFAULT_TOUCH_FIELD
from core.errors import FerryConfigError, FerryError
from core.types import (
    ExportRequest,
    ImportOptions,
    LinkNormalizationRequest,
    ReconcileRequest,
    SequenceScope,
)
from reconcile.projection import collect_field
from store.migration_sdk import FerryClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="ferry", description="Ferry document store migration CLI")
    parser.add_argument("--batch-size", type=int, help="Override FERRY_BATCH_SIZE for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_import_command(subparsers)
    _add_purge_command(subparsers)
    _add_reconcile_command(subparsers)
    _add_normalize_links_command(subparsers)
    _add_next_ref_command(subparsers)
    _add_export_command(subparsers)
    _add_copy_command(subparsers)
    add_plan_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Ferry CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code: 0 on completion (per-record skips included),
        1 on a fatal error or when any write chunk failed.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.batch_size)
        return _dispatch(client, args)
    except FerryError as error:
        print(f"error={error}")
        return 1


def _dispatch(client: FerryClient, args: argparse.Namespace) -> int:
    if args.command == "import":
        return _run_import_command(client, args)
    if args.command == "purge":
        return _run_purge_command(client, args)
    if args.command == "reconcile":
        return _run_reconcile_command(client, args)
    if args.command == "normalize-links":
        return _run_normalize_links_command(client, args)
    if args.command == "next-ref":
        return _run_next_ref_command(client, args)
    if args.command == "export":
        return _run_export_command(client, args)
    if args.command == "copy":
        return _run_copy_command(client, args)
    if args.command == "plan":
        return run_plan_command(client, args)
    raise FerryConfigError(f"Unsupported command: {args.command}")


def _build_client(batch_size: int | None) -> FerryClient:
    """Build SDK client with optional batch-size override.

    Args:
        batch_size: Optional per-command batch size.

    Returns:
        Configured SDK client.
    """
    client = FerryClient(FerryConfig.from_env())
    if batch_size is not None:
        client = client.with_batch_size(batch_size)
    return client


def _run_import_command(client: FerryClient, args: argparse.Namespace) -> int:
    """Handle import command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    options = ImportOptions(
        source_uri=args.source or client.config.source_uri,
        default_collection=args.collection,
        purge=args.purge,
        dry_run=args.dry_run,
    )
    report = client.import_export(options)
    print_import_report(report, dry_run=args.dry_run)
    return 1 if report.has_failures else 0


def _run_purge_command(client: FerryClient, args: argparse.Namespace) -> int:
    """Handle purge command."""
    if not args.yes:
        raise FerryConfigError(
            f"Refusing to purge '{args.collection}' without confirmation. "
            "Re-run with --yes to delete every document in the collection."
        )
    report = client.purge(args.collection)
    print_purge_report(args.collection, report)
    return 1 if report.has_failures else 0


def _run_reconcile_command(client: FerryClient, args: argparse.Namespace) -> int:
    """Handle reconcile command."""
    request = ReconcileRequest(
        target_collection=args.target,
        source_collection=args.source,
        link_field=args.link_field,
        derived_field=args.derived_field,
        projection=collect_field(args.source_field),
        target_key_field=args.target_key_field,
        touch_field=None if args.no_touch else args.touch_field,
        dry_run=args.dry_run,
    )
    report = client.reconcile(request)
    print_reconcile_report(f"{args.target}.{args.derived_field}", report, dry_run=args.dry_run)
    return 0


def _run_normalize_links_command(client: FerryClient, args: argparse.Namespace) -> int:
    """Handle normalize-links command."""
    request = LinkNormalizationRequest(
        collection=args.collection,
        link_field=args.link_field,
        legacy_field=args.legacy_field,
        dry_run=args.dry_run,
    )
    report = client.normalize_links(request)
    print_link_normalization_report(args.collection, report, dry_run=args.dry_run)
    return 1 if report.has_failures else 0


def _run_next_ref_command(client: FerryClient, args: argparse.Namespace) -> int:
    """Handle next-ref command."""
    year = args.year if args.year is not None else datetime.now(timezone.utc).year
    scope = SequenceScope(prefix=args.prefix, year=year)
    print(client.next_reference(args.collection, scope, args.field))
    return 0


def _run_export_command(client: FerryClient, args: argparse.Namespace) -> int:
    """Handle export command."""
    result = client.export(ExportRequest(tuple(args.collections), args.output))
    for name, count in result.document_counts.items():
        print(f"collection={name} exported={count}")
    print(f"output={result.output_uri}")
    return 0


def _run_copy_command(client: FerryClient, args: argparse.Namespace) -> int:
    """Handle copy command."""
    report = client.copy(args.source, args.target)
    print_write_report(args.target, report)
    return 1 if report.has_failures else 0


def _add_import_command(subparsers: Any) -> None:
    """Register import subcommand."""
    parser = subparsers.add_parser("import", help="Import a JSON export into the document store")
    parser.add_argument(
        "source",
        nargs="?",
        help="Export file or s3://bucket/key (defaults to FERRY_SOURCE)",
    )
    parser.add_argument("--collection", help="Collection for exports shaped as a bare array")
    parser.add_argument(
        "--purge",
        action="store_true",
        help="Delete every document of each imported collection first",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report counts without writing to the live store",
    )


def _add_purge_command(subparsers: Any) -> None:
    """Register purge subcommand."""
    parser = subparsers.add_parser("purge", help="Delete every document in a collection")
    parser.add_argument("collection", help="Collection name")
    parser.add_argument("--yes", action="store_true", help="Confirm the destructive purge")


def _add_reconcile_command(subparsers: Any) -> None:
    """Register reconcile subcommand."""
    parser = subparsers.add_parser(
        "reconcile",
        help="Recompute a derived field from linked source documents",
    )
    parser.add_argument("--target", default="projects", help="Collection holding the derived field")
    parser.add_argument("--source", default="clients", help="Authoritative source collection")
    parser.add_argument("--link-field", default="pid", help="Source field holding the target key")
    parser.add_argument("--derived-field", default="clientNames", help="Target field to recompute")
    parser.add_argument("--source-field", default="name", help="Source field collected per match")
    parser.add_argument(
        "--target-key-field",
        default="pid",
        help="Target field used as link key instead of the document key",
    )
    parser.add_argument(
        "--touch-field",
        default=DEFAULT_TOUCH_FIELD,
        help="Last-modified field set on write-back",
    )
    parser.add_argument("--no-touch", action="store_true", help="Do not set a last-modified field")
    parser.add_argument("--dry-run", action="store_true", help="Report drift without writing")


def _add_normalize_links_command(subparsers: Any) -> None:
    """Register normalize-links subcommand."""
    parser = subparsers.add_parser(
        "normalize-links",
        help="Rewrite a scalar link field as an array and drop the legacy list",
    )
    parser.add_argument("--collection", default="clients", help="Collection to migrate")
    parser.add_argument(
        "--link-field",
        default=DEFAULT_LINK_FIELD,
        help="Scalar link field rewritten as an array",
    )
    parser.add_argument(
        "--legacy-field",
        default=DEFAULT_LEGACY_LINK_FIELD,
        help="Legacy link list merged in and then removed",
    )
    parser.add_argument("--dry-run", action="store_true", help="Report rewrites without writing")


def _add_next_ref_command(subparsers: Any) -> None:
    """Register next-ref subcommand."""
    parser = subparsers.add_parser("next-ref", help="Compute the next reference number")
    parser.add_argument("--collection", required=True, help="Collection holding references")
    parser.add_argument("--prefix", required=True, help="Reference prefix, e.g. CL")
    parser.add_argument("--year", type=int, help="Reference year (defaults to current UTC year)")
    parser.add_argument("--field", help="Field holding the reference (defaults to document key)")


def _add_export_command(subparsers: Any) -> None:
    """Register export subcommand."""
    parser = subparsers.add_parser("export", help="Dump collections into an import-format file")
    parser.add_argument("output", help="Local output path or s3://bucket/key")
    parser.add_argument(
        "--collection",
        dest="collections",
        action="append",
        required=True,
        help="Collection to export (repeatable)",
    )


def _add_copy_command(subparsers: Any) -> None:
    """Register copy subcommand."""
    parser = subparsers.add_parser("copy", help="Copy a collection under the same keys")
    parser.add_argument("source", help="Source collection")
    parser.add_argument("target", help="Target collection")
