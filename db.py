"""SQLite-backed table registry for SheetTables.

Every query that reads or changes a stored table filters on both the table id
and the owner, so a table owned by somebody else looks exactly like a table
that does not exist.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from core import app_paths
from core.normalizer import Record
from core.tables import SourceReference, Table, format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Database path handling
# ---------------------------------------------------------------------------
_DEFAULT_DB_PATH = app_paths.data_path("sheettables.db").resolve()
_DB_PATH = _DEFAULT_DB_PATH

_SCHEMA_LOCK = threading.Lock()
_SCHEMA_READY = False

TABLE_COLUMN_DEFINITIONS: Dict[str, str] = {
    "id": "TEXT PRIMARY KEY",
    "name": "TEXT NOT NULL",
    "sheet_id": "TEXT NOT NULL",
    "sheet_url": "TEXT NOT NULL",
    "columns_json": "TEXT NOT NULL DEFAULT '[]'",
    "data_json": "TEXT NOT NULL DEFAULT '[]'",
    "owner": "TEXT NOT NULL",
    "last_updated": "TEXT NOT NULL",
}


# ---------------------------------------------------------------------------
# Database helpers
# ---------------------------------------------------------------------------

def set_database_path(path: Path) -> None:
    """Override the SQLite file used for storage."""

    global _DB_PATH, _SCHEMA_READY
    _DB_PATH = Path(path).resolve()
    _SCHEMA_READY = False


def _ensure_schema(conn: sqlite3.Connection) -> None:
    table_columns = ",\n        ".join(
        f"{column} {definition}" for column, definition in TABLE_COLUMN_DEFINITIONS.items()
    )
    conn.execute(f"CREATE TABLE IF NOT EXISTS tables (\n        {table_columns}\n    )")

    existing = {row[1] for row in conn.execute("PRAGMA table_info(tables)")}
    for column, definition in TABLE_COLUMN_DEFINITIONS.items():
        if column not in existing:
            conn.execute(f"ALTER TABLE tables ADD COLUMN {column} {definition}")

    conn.execute("CREATE INDEX IF NOT EXISTS idx_tables_owner ON tables(owner)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_tables_sheet_id ON tables(sheet_id)")


def _ensure_database() -> None:
    global _SCHEMA_READY
    if _SCHEMA_READY:
        return
    with _SCHEMA_LOCK:
        if _SCHEMA_READY:
            return
        if _DB_PATH.parent:
            _DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(_DB_PATH)
        try:
            _ensure_schema(conn)
            conn.commit()
        finally:
            conn.close()
        _SCHEMA_READY = True
        logger.debug("Database schema ready at %s", _DB_PATH)


def get_connection() -> sqlite3.Connection:
    _ensure_database()
    conn = sqlite3.connect(_DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def transaction() -> Iterator[sqlite3.Connection]:
    conn = get_connection()
    try:
        conn.execute("BEGIN")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------

def _dump(value: object) -> str:
    return json.dumps(value, ensure_ascii=False)


def _row_to_table(row: sqlite3.Row) -> Table:
    return Table(
        id=row["id"],
        name=row["name"],
        source=SourceReference(sheet_id=row["sheet_id"], sheet_url=row["sheet_url"]),
        owner=row["owner"],
        last_updated=parse_timestamp(row["last_updated"]),
        columns=list(json.loads(row["columns_json"])),
        data=list(json.loads(row["data_json"])),
    )


# ---------------------------------------------------------------------------
# Public operations
# ---------------------------------------------------------------------------

def initialize_database() -> None:
    _ensure_database()


def insert_table(table: Table) -> None:
    with transaction() as conn:
        conn.execute(
            """
            INSERT INTO tables (id, name, sheet_id, sheet_url, columns_json, data_json, owner, last_updated)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                table.id,
                table.name,
                table.source.sheet_id,
                table.source.sheet_url,
                _dump(table.columns),
                _dump(table.data),
                table.owner,
                format_timestamp(table.last_updated),
            ),
        )


def fetch_table(table_id: str, owner: str) -> Optional[Table]:
    with transaction() as conn:
        cursor = conn.execute(
            "SELECT * FROM tables WHERE id = ? AND owner = ?",
            (table_id, owner),
        )
        row = cursor.fetchone()
    return _row_to_table(row) if row else None


def fetch_tables(owner: str) -> List[Table]:
    with transaction() as conn:
        cursor = conn.execute(
            "SELECT * FROM tables WHERE owner = ? ORDER BY rowid",
            (owner,),
        )
        rows = cursor.fetchall()
    return [_row_to_table(row) for row in rows]


def replace_table_contents(
    table_id: str,
    owner: str,
    columns: Sequence[str],
    data: Sequence[Record],
    last_updated: datetime,
) -> bool:
    """Swap ``columns``, ``data`` and ``last_updated`` in a single statement.

    Returns ``False`` when no table matches ``(table_id, owner)``.
    """

    with transaction() as conn:
        cursor = conn.execute(
            """
            UPDATE tables
               SET columns_json = ?, data_json = ?, last_updated = ?
             WHERE id = ? AND owner = ?
            """,
            (
                _dump(list(columns)),
                _dump(list(data)),
                format_timestamp(last_updated),
                table_id,
                owner,
            ),
        )
        return cursor.rowcount > 0


def delete_table(table_id: str, owner: str) -> bool:
    with transaction() as conn:
        cursor = conn.execute(
            "DELETE FROM tables WHERE id = ? AND owner = ?",
            (table_id, owner),
        )
        return cursor.rowcount > 0


__all__ = [
    "delete_table",
    "fetch_table",
    "fetch_tables",
    "get_connection",
    "initialize_database",
    "insert_table",
    "replace_table_contents",
    "set_database_path",
    "transaction",
]
