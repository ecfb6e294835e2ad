#!/usr/bin/env python3
"""
Drive wizards from the command line against the configured database.

Settings come from --config, else SIRIUS_CONFIG_FILE, else the packaged
defaults. Each command runs in one transaction.

Usage:
    python3 scripts/run_wizard.py <command> [options]

Examples:
    # Create tables, then a legal workers feed for an employer
    python3 scripts/run_wizard.py init-db
    python3 scripts/run_wizard.py create --type gbhet_legal_workers --entity-id <uuid> --param year=2024 --param month=3

    # Upload, map, validate, process
    python3 scripts/run_wizard.py upload --wizard <id> --file roster.csv
    python3 scripts/run_wizard.py map --wizard <id> --column 0=ssn --column 1=firstName --column 2=lastName
    python3 scripts/run_wizard.py validate --wizard <id>
    python3 scripts/run_wizard.py process --wizard <id>

    # Reports and retention
    python3 scripts/run_wizard.py create --type report_workers_missing_birth_date
    python3 scripts/run_wizard.py report --wizard <id> --retention 7days
    python3 scripts/run_wizard.py purge --mode test
"""

from __future__ import annotations

import argparse
import json
import mimetypes
import sys
from pathlib import Path
from uuid import UUID

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

EXIT_OK = 0
EXIT_ERROR = 1


def _key_value(text: str) -> tuple[str, str]:
    key, sep, value = text.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {text!r}")
    return key, value


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create and run feed and report wizards.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", type=Path, default=None, help="Settings YAML file.")
    parser.add_argument("--db-url", default=None, help="Override database_url from settings.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create all tables.")
    sub.add_parser("types", help="List registered wizard types.")

    p = sub.add_parser("create", help="Create a wizard.")
    p.add_argument("--type", required=True, dest="wizard_type")
    p.add_argument("--entity-id", type=UUID, default=None)
    p.add_argument("--param", type=_key_value, action="append", default=[], help="KEY=VALUE")

    p = sub.add_parser("list", help="List wizards.")
    p.add_argument("--type", dest="wizard_type", default=None)
    p.add_argument("--status", default=None)

    for name in ("show", "validate", "process", "results", "advance", "retreat", "delete", "suggest"):
        p = sub.add_parser(name)
        p.add_argument("--wizard", type=UUID, required=True)
        if name == "suggest":
            p.add_argument("--user", default=None)

    p = sub.add_parser("upload", help="Upload a CSV/XLSX file to a feed wizard.")
    p.add_argument("--wizard", type=UUID, required=True)
    p.add_argument("--file", type=Path, required=True)
    p.add_argument("--user", default=None)

    p = sub.add_parser("map", help="Save the column mapping of a feed wizard.")
    p.add_argument("--wizard", type=UUID, required=True)
    p.add_argument("--column", type=_key_value, action="append", default=[], help="INDEX=FIELD")
    p.add_argument("--mode", choices=("create", "update"), default="create")
    p.add_argument("--no-headers", action="store_true")
    p.add_argument("--user", default=None)

    p = sub.add_parser("report", help="Save report inputs and generate the report.")
    p.add_argument("--wizard", type=UUID, required=True)
    p.add_argument("--set", type=_key_value, action="append", default=[], help="KEY=VALUE")
    p.add_argument("--retention", default=None)

    p = sub.add_parser("export", help="Write a report's stored results as CSV.")
    p.add_argument("--wizard", type=UUID, required=True)
    p.add_argument("--out", type=Path, default=None)

    p = sub.add_parser("purge", help="Purge expired report rows.")
    p.add_argument("--mode", choices=("live", "test"), default="live")

    return parser.parse_args(argv)


def _print(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    # Lazy imports so we fail fast on args first
    from sirius_config import get_settings
    from sirius_ingestion.domain.types import FeedMode
    from sirius_kernel.db.engine import create_tables, init_engine_from_url, session_scope
    from sirius_kernel.domain.clock import SystemClock
    from sirius_kernel.exceptions import SiriusError
    from sirius_wizards.services import FeedService, NavigationService, ReportService, RetentionService
    from sirius_wizards.storage import FilesystemObjectStorage
    from sirius_wizards.types import build_default_registry

    try:
        settings = get_settings(args.config)
        init_engine_from_url(args.db_url or settings.database_url)
    except (OSError, ValueError) as e:
        print(f"ERROR: Startup failed: {e}", file=sys.stderr)
        return EXIT_ERROR

    if args.command == "init-db":
        create_tables()
        print("Tables created.")
        return EXIT_OK

    registry = build_default_registry()
    if args.command == "types":
        _print([w.to_dict() for w in registry.get_all()])
        return EXIT_OK

    clock = SystemClock()
    storage = FilesystemObjectStorage(settings.object_storage_root)

    try:
        with session_scope() as session:
            nav = NavigationService(session, registry, clock=clock)
            feeds = FeedService(session, storage, registry, clock=clock, settings=settings)
            reports = ReportService(session, registry, clock=clock)

            if args.command == "create":
                params = {k: int(v) if v.isdigit() else v for k, v in args.param}
                _print(nav.create_wizard(args.wizard_type, args.entity_id, params).to_dict())
            elif args.command == "list":
                for w in nav.list_wizards(args.wizard_type, args.status):
                    print(f"{w.id}  {w.type:<40} {w.status:<12} {w.current_step}")
            elif args.command == "show":
                _print(nav.get_wizard(args.wizard).to_dict())
            elif args.command == "advance":
                _print(nav.advance_step(args.wizard).to_dict())
            elif args.command == "retreat":
                _print(nav.retreat_step(args.wizard).to_dict())
            elif args.command == "delete":
                print("Deleted." if nav.delete_wizard(args.wizard) else "Not found.")
            elif args.command == "upload":
                source = args.file.resolve()
                if not source.is_file():
                    print(f"ERROR: File not found: {source}", file=sys.stderr)
                    return EXIT_ERROR
                mime_type = mimetypes.guess_type(source.name)[0] or "application/octet-stream"
                stored = feeds.upload_file(
                    args.wizard, source.name, source.read_bytes(), mime_type, args.user
                )
                _print(stored.to_dict())
            elif args.command == "suggest":
                _print(feeds.suggest_column_mapping(args.wizard, args.user))
            elif args.command == "map":
                state = feeds.save_column_mapping(
                    args.wizard,
                    dict(args.column),
                    FeedMode(args.mode),
                    has_headers=not args.no_headers,
                    user_id=args.user,
                )
                _print(state.to_dict())
            elif args.command == "validate":
                results = feeds.validate_feed_data(
                    args.wizard,
                    on_progress=lambda p: print(f"  validated {p.processed}/{p.total}", file=sys.stderr),
                )
                print(f"Valid: {results.valid_rows}, Invalid: {results.invalid_rows}")
                for key, count in sorted(results.error_summary.items()):
                    print(f"  {count:>6}  {key}")
            elif args.command == "process":
                results = feeds.process_feed_data(
                    args.wizard,
                    on_progress=lambda p: print(f"  processed {p.processed}/{p.total}", file=sys.stderr),
                )
                print(
                    f"Created: {results.created_count}, Updated: {results.updated_count}, "
                    f"Failed: {results.failure_count}"
                )
                for failure in results.errors[:10]:
                    print(f"  Row {failure.row_index + 1}: {failure.message}")
                if len(results.errors) > 10:
                    print(f"  ... and {len(results.errors) - 10} more failed rows.")
            elif args.command == "report":
                reports.save_report_inputs(args.wizard, dict(args.set), args.retention)
                results = reports.generate_report(args.wizard, batch_size=settings.batch_size)
                print(f"Generated {results.record_count} records at {results.generated_at.isoformat()}")
            elif args.command == "results":
                results = reports.get_report_results(args.wizard)
                _print(results.to_dict() if results else None)
            elif args.command == "export":
                exported = reports.export_report_csv(args.wizard)
                if exported is None:
                    print("Report has not been generated.", file=sys.stderr)
                    return EXIT_ERROR
                file_name, content = exported
                target = args.out or Path(file_name)
                target.write_bytes(content)
                print(f"Wrote {target}")
            elif args.command == "purge":
                summary = RetentionService(
                    session, registry, clock=clock, settings=settings
                ).purge_expired_report_data(args.mode)
                _print(summary.to_dict())
    except SiriusError as e:
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        return EXIT_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
