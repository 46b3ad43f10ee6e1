"""Create, sync and delete tables backed by Google Sheets.

:class:`TableService` glues the pieces together: the URL helpers from
:mod:`core.source_url`, a grid fetcher such as
:class:`core.sheets_client.GoogleSheetsClient`, the normaliser from
:mod:`core.normalizer` and the SQLite registry in :mod:`db`.

Each operation performs at most one fetch followed by one write.  The fetch
and normalisation always complete before the registry is touched, so a failed
sync leaves the stored table exactly as it was.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Protocol, Sequence

import db
from core.errors import NotFound, ValidationError
from core.normalizer import NormalizedGrid, normalize_grid
from core.source_url import extract_sheet_id, looks_like_sheet_url
from core.tables import SourceReference, Table, generate_table_id, utc_now

logger = logging.getLogger(__name__)


class GridFetcher(Protocol):
    def fetch_grid(self, sheet_id: str) -> Sequence[Sequence[str]]:
        ...


def _require(value: str, field: str, message: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(field, message)
    return text


class TableService:
    """Table operations scoped to the owner passed with every call."""

    def __init__(self, fetcher: GridFetcher, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._fetcher = fetcher
        self._clock = clock

    def _load(self, sheet_id: str) -> NormalizedGrid:
        grid = self._fetcher.fetch_grid(sheet_id)
        return normalize_grid(grid)

    def create(self, name: str, source_url: str, owner: str) -> Table:
        name = _require(name, "name", "Table name is required")
        source_url = _require(source_url, "sourceUrl", "Google Sheet URL is required")
        owner = _require(owner, "owner", "Owner is required")
        if not looks_like_sheet_url(source_url):
            raise ValidationError("sourceUrl", "Please enter a valid Google Sheets URL")

        sheet_id = extract_sheet_id(source_url)
        normalized = self._load(sheet_id)

        table = Table(
            id=generate_table_id(),
            name=name,
            source=SourceReference(sheet_id=sheet_id, sheet_url=source_url),
            owner=owner,
            last_updated=self._clock(),
            columns=normalized.columns,
            data=normalized.data,
        )
        db.insert_table(table)
        logger.info(
            "Created table %s from sheet %s (%d columns, %d rows)",
            table.id,
            sheet_id,
            len(table.columns),
            len(table.data),
        )
        return table

    def get(self, table_id: str, owner: str) -> Table:
        table = db.fetch_table(table_id, owner)
        if table is None:
            raise NotFound()
        return table

    def list(self, owner: str) -> List[Table]:
        return db.fetch_tables(owner)

    def sync(self, table_id: str, owner: str) -> Table:
        table = self.get(table_id, owner)
        normalized = self._load(table.source.sheet_id)

        last_updated = self._clock()
        if not db.replace_table_contents(table.id, owner, normalized.columns, normalized.data, last_updated):
            raise NotFound()
        table.replace_contents(normalized.columns, normalized.data, last_updated)
        logger.info(
            "Synced table %s from sheet %s (%d columns, %d rows)",
            table.id,
            table.source.sheet_id,
            len(table.columns),
            len(table.data),
        )
        return table

    def delete(self, table_id: str, owner: str) -> Dict[str, str]:
        if not db.delete_table(table_id, owner):
            raise NotFound()
        logger.info("Deleted table %s", table_id)
        return {"message": "deleted"}


__all__ = ["GridFetcher", "TableService"]
