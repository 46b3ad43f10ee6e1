"""Command line interface for managing spreadsheet-backed tables."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

import db
from core.errors import (
    EmptySource,
    InvalidSourceUrl,
    NotFound,
    SourceFetchError,
    TableError,
    TransientProviderError,
    ValidationError,
)
from core.logging_config import configure_logging
from core.sheets_client import GoogleSheetsClient, SheetsClientError, build_client
from core.table_service import TableService
from settings import AppSettings, default_owner, load_settings

logger = logging.getLogger(__name__)

EXIT_CONFIG = 1
EXIT_INVALID_INPUT = 2
EXIT_NOT_FOUND = 3
EXIT_SOURCE = 4
EXIT_TRANSIENT = 5


class _LazySheetsFetcher:
    """Build the Sheets client on first use so read-only commands need no credentials."""

    def __init__(self, factory: Callable[[], GoogleSheetsClient]) -> None:
        self._factory = factory
        self._client: Optional[GoogleSheetsClient] = None

    def fetch_grid(self, sheet_id: str):
        if self._client is None:
            self._client = self._factory()
        return self._client.fetch_grid(sheet_id)


def _client_factory(settings: AppSettings) -> Callable[[], GoogleSheetsClient]:
    def factory() -> GoogleSheetsClient:
        return build_client(
            Path(settings.credential_path),
            worksheet_title=settings.worksheet_title,
            timeout=settings.request_timeout_seconds,
        )

    return factory


def _exit_code_for(exc: TableError) -> int:
    if isinstance(exc, (ValidationError, InvalidSourceUrl)):
        return EXIT_INVALID_INPUT
    if isinstance(exc, NotFound):
        return EXIT_NOT_FOUND
    if isinstance(exc, TransientProviderError):
        return EXIT_TRANSIENT
    if isinstance(exc, (SourceFetchError, EmptySource)):
        return EXIT_SOURCE
    return EXIT_CONFIG


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def command_create(service: TableService, args: argparse.Namespace) -> int:
    table = service.create(args.name, args.url, args.owner)
    _print_json(table.to_json())
    return 0


def command_list(service: TableService, args: argparse.Namespace) -> int:
    _print_json([table.to_json() for table in service.list(args.owner)])
    return 0


def command_show(service: TableService, args: argparse.Namespace) -> int:
    _print_json(service.get(args.table_id, args.owner).to_json())
    return 0


def command_sync(service: TableService, args: argparse.Namespace) -> int:
    _print_json(service.sync(args.table_id, args.owner).to_json())
    return 0


def command_delete(service: TableService, args: argparse.Namespace) -> int:
    _print_json(service.delete(args.table_id, args.owner))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument("--owner", default=None, help="Owner of the tables (defaults to the current user)")

    parser = argparse.ArgumentParser(description="Google Sheets backed table manager")
    parser.add_argument("--settings", default=None, help="Path to an alternative settings.json")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_parser = subparsers.add_parser("create", parents=[parent], help="Register a Google Sheet as a table")
    create_parser.add_argument("name", help="Display name of the table")
    create_parser.add_argument("url", help="Google Sheets URL")
    create_parser.set_defaults(func=command_create)

    list_parser = subparsers.add_parser("list", parents=[parent], help="List your tables")
    list_parser.set_defaults(func=command_list)

    show_parser = subparsers.add_parser("show", parents=[parent], help="Print a stored table")
    show_parser.add_argument("table_id")
    show_parser.set_defaults(func=command_show)

    sync_parser = subparsers.add_parser("sync", parents=[parent], help="Re-fetch a table from its sheet")
    sync_parser.add_argument("table_id")
    sync_parser.set_defaults(func=command_sync)

    delete_parser = subparsers.add_parser("delete", parents=[parent], help="Delete a table")
    delete_parser.add_argument("table_id")
    delete_parser.set_defaults(func=command_delete)

    return parser


def main(argv: Optional[Sequence[str]] = None, *, service: Optional[TableService] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.owner = (args.owner or "").strip() or default_owner()

    if service is None:
        configure_logging()
        settings = load_settings(args.settings) if args.settings else load_settings()
        db.set_database_path(Path(settings.database_path))
        service = TableService(_LazySheetsFetcher(_client_factory(settings)))

    try:
        return args.func(service, args)
    except TableError as exc:
        logger.info("%s failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return _exit_code_for(exc)
    except SheetsClientError as exc:
        logger.error("Google Sheets client unavailable: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFIG


if __name__ == "__main__":
    sys.exit(main())
