"""Table aggregate stored for each registered spreadsheet."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

from core.normalizer import Record


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(text: str) -> datetime:
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def generate_table_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True, slots=True)
class SourceReference:
    """The spreadsheet id and the URL it was extracted from."""

    sheet_id: str
    sheet_url: str

    def to_json(self) -> Dict[str, str]:
        return {"sourceId": self.sheet_id, "sourceUrl": self.sheet_url}


@dataclass(slots=True)
class Table:
    """A spreadsheet snapshot owned by a single user.

    ``columns`` and ``data`` are only ever replaced together, by
    :meth:`replace_contents`.
    """

    id: str
    name: str
    source: SourceReference
    owner: str
    last_updated: datetime
    columns: List[str] = field(default_factory=list)
    data: List[Record] = field(default_factory=list)

    def replace_contents(self, columns: List[str], data: List[Record], last_updated: datetime) -> None:
        self.columns = list(columns)
        self.data = [dict(record) for record in data]
        self.last_updated = last_updated

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "source": self.source.to_json(),
            "columns": list(self.columns),
            "data": [dict(record) for record in self.data],
            "owner": self.owner,
            "lastUpdated": format_timestamp(self.last_updated),
        }


__all__ = [
    "SourceReference",
    "Table",
    "format_timestamp",
    "generate_table_id",
    "parse_timestamp",
    "utc_now",
]
