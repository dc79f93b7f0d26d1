"""Command line interface for previewing and importing company spreadsheets."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from .config import ConfigurationError, ImportSettings, load_settings
from .ingestion.exporters import export_import_result, export_records, write_template
from .models import RosterEntry
from .preview import Page
from .roster import roster_from_config, roster_from_database
from .server.database import create_db_engine, init_db
from .session import ImportSession, Notification
from .submitter import BatchSubmitter, HttpImportTransport, ImportTransport, LocalImportTransport

LOGGER = logging.getLogger(__name__)


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Validate and bulk import companies from CSV or Excel spreadsheets",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    preview = subparsers.add_parser("preview", help="Validate a spreadsheet and print one page of the preview")
    preview.add_argument("input", help="Path to the input spreadsheet (CSV, XLSX or XLS)")
    preview.add_argument("--config", required=True, help="Path to the configuration file (YAML or JSON)")
    preview.add_argument("--page", type=int, default=1, help="Preview page to print (50 rows per page)")
    preview.add_argument("--output", help="Optional CSV/XLSX file receiving every validated record")

    run = subparsers.add_parser("import", help="Validate a spreadsheet and submit its valid rows")
    run.add_argument("input", help="Path to the input spreadsheet (CSV, XLSX or XLS)")
    run.add_argument("--config", required=True, help="Path to the configuration file (YAML or JSON)")
    run.add_argument("--owner-id", help="Import on behalf of this user (admins only)")
    run.add_argument("--output", help="Optional CSV/XLSX file receiving the per-row results")

    template = subparsers.add_parser("template", help="Write the import template spreadsheet")
    template.add_argument("output", help="Destination .xlsx or .csv file")

    serve = subparsers.add_parser("serve", help="Run the bulk import HTTP endpoint")
    serve.add_argument("--config", required=True, help="Path to the configuration file (YAML or JSON)")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    if args.command == "template":
        destination = write_template(args.output)
        logging.info("Template written to %s", destination.resolve())
        return 0

    try:
        settings = load_settings(args.config)
    except ConfigurationError as exc:
        logging.error("%s", exc)
        return 2

    if args.command == "serve":
        return _serve(settings, args.host, args.port)
    if args.command == "preview":
        return _preview(settings, args)
    return _import(settings, args)


def _open_database(settings: ImportSettings) -> Optional[Engine]:
    """One engine per run; an in-memory URL must not be opened twice."""

    if not settings.database_url:
        return None
    engine = create_db_engine(settings.database_url)
    init_db(engine)
    return engine


def _load_roster(settings: ImportSettings, engine: Optional[Engine] = None) -> List[RosterEntry]:
    if settings.roster:
        return roster_from_config(settings.roster)
    if engine is not None:
        with Session(engine) as session:
            return roster_from_database(session)
    logging.warning("No roster configured - every row with a manager will be rejected")
    return []


def _build_transport(settings: ImportSettings, engine: Optional[Engine] = None) -> Optional[ImportTransport]:
    if settings.endpoint_url:
        return HttpImportTransport(
            settings.endpoint_url,
            token=settings.api_token,
            timeout=settings.timeout_seconds,
        )
    if engine is not None:
        if not settings.acting_user_id:
            raise ConfigurationError("'acting_user_id' is required when importing straight into a database")
        return LocalImportTransport(lambda: Session(engine), settings.acting_user_id)
    return None


def _echo(notification: Notification) -> None:
    print(f"[{notification.level.value}] {notification.message}")


def _print_page(page: Page) -> None:
    print(f"Page {page.number}/{page.page_count} ({page.total} records)")
    for record in page.items:
        errors = "; ".join(record.errors)
        print(f"  row {record.row:>5}  {record.status.value:<5}  {record.name or '-'}  {errors}")


def _preview(settings: ImportSettings, args: argparse.Namespace) -> int:
    session = ImportSession(
        BatchSubmitter(_NullTransport()),
        _load_roster(settings, _open_database(settings)),
        notify=_echo,
    )
    if not session.load_file(args.input):
        return 1

    summary = session.summary
    print(f"Valid: {summary.valid_count}  Errors: {summary.error_count}")
    _print_page(session.preview_page(args.page))
    if args.output:
        export_records(session.records, args.output)
        logging.info("Preview written to %s", Path(args.output).resolve())
    return 0


def _import(settings: ImportSettings, args: argparse.Namespace) -> int:
    engine = _open_database(settings)
    try:
        transport = _build_transport(settings, engine)
    except ConfigurationError as exc:
        logging.error("%s", exc)
        return 2
    if transport is None:
        logging.error("Configure either 'endpoint_url' or 'database_url' to import")
        return 2

    session = ImportSession(
        BatchSubmitter(transport, default_owner_id=settings.default_owner_id),
        _load_roster(settings, engine),
        owner_id=args.owner_id,
        notify=_echo,
    )
    if not session.load_file(args.input):
        return 1

    summary = session.summary
    logging.info("Submitting %s valid records (%s rejected)", summary.valid_count, summary.error_count)
    result = session.submit()
    if result is None:
        return 1

    print(
        f"Total: {result.total}  Success: {result.success_count}  "
        f"Errors: {result.error_count}  Warnings: {result.warning_count}"
    )
    if args.output:
        export_import_result(result, args.output)
        logging.info("Results written to %s", Path(args.output).resolve())
    return 0 if result.error_count == 0 else 1


def _serve(settings: ImportSettings, host: str, port: int) -> int:
    import uvicorn

    from .server.api import create_app

    app = create_app(database_url=settings.database_url or "sqlite://")
    uvicorn.run(app, host=host, port=port)
    return 0


class _NullTransport:
    """Transport for preview runs, which never submit."""

    def send(self, payload):  # pragma: no cover - never called
        raise RuntimeError("Preview sessions do not submit")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
