"""Migration plan CLI command wiring.

This module registers the plan subcommand and delegates execution to the
SDK so CLI and SDK runs follow the same plan semantics.
"""

from __future__ import annotations

import argparse
from typing import Any

from cli.summary_output import print_import_report, print_reconcile_report
from store.migration_sdk import FerryClient


def add_plan_command(subparsers: Any) -> None:
    """Register plan subcommand."""
    parser = subparsers.add_parser(
        "plan",
        help="Run a declarative YAML migration plan",
    )
    parser.add_argument("plan_file", help="Path to YAML migration plan")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Import into a throwaway store and skip write-backs",
    )


def run_plan_command(client: FerryClient, args: argparse.Namespace) -> int:
    """Handle plan command invocation."""
    result = client.run_plan(args.plan_file, dry_run=args.dry_run)
    if result.import_report is not None:
        print_import_report(result.import_report, dry_run=args.dry_run)
    for label, report in result.reconcile_reports.items():
        print_reconcile_report(label, report, dry_run=args.dry_run)
    return 1 if result.has_failures else 0
