"""Command line interface for batch exports."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Optional, Sequence

from fs2bq.common.logging_config import setup_logging
from fs2bq.config.settings import ConfigurationError, get_settings
from fs2bq.export import ExportOrchestrator, create_orchestrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fs2bq",
        description="Create BigQuery tables from Firestore collections and copy documents into them.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    for command, help_text, names in (
        ("create-tables", "Create one table per collection with an inferred schema", "collections"),
        ("copy", "Copy collections into their tables", "collections"),
        ("delete-tables", "Delete tables from the dataset", "tables"),
    ):
        p = sub.add_parser(command, help=help_text)
        p.add_argument("dataset", help="Target dataset ID")
        p.add_argument("names", nargs="+", metavar=names[:-1], help=f"{names.capitalize()} to process")

    p = sub.add_parser("schema", help="Print the schema inferred for a collection")
    p.add_argument("collection", help="Collection name")

    return parser


async def run_command(args: argparse.Namespace, orchestrator: ExportOrchestrator) -> int:
    """
    Execute a parsed command and print its JSON result.

    Returns:
        Process exit code (1 when any unit failed)
    """
    try:
        if args.command == "schema":
            schema = await orchestrator.infer_schema(args.collection)
            print(json.dumps(schema.to_dict(), indent=2))
            return 0

        if args.command == "create-tables":
            report = await orchestrator.create_tables(args.dataset, args.names)
        elif args.command == "copy":
            report = await orchestrator.copy_collections(args.dataset, args.names)
        else:
            report = await orchestrator.delete_tables(args.dataset, args.names)
    finally:
        await orchestrator.close()

    print(json.dumps(report.to_dict(), indent=2, default=str))
    return 0 if report.ok else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level, json_format=settings.json_logs)

    try:
        orchestrator = create_orchestrator(settings)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    return asyncio.run(run_command(args, orchestrator))


if __name__ == "__main__":
    sys.exit(main())
