"""Conversion of raw spreadsheet grids into columns and sparse records.

A grid is the list of rows returned by the Sheets API: the first row holds the
headers and every following row holds string cells.  Rows may be shorter than
the header row and may be completely blank.  :func:`normalize_grid` turns such
a grid into

``columns``
    The trimmed, non-empty header labels in their original order.

``data``
    One mapping per surviving row, keyed by header label.  Blank cells and
    cells below a blank header are left out instead of being stored as ``""``.

The function is pure; it never touches the network or the database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from core.errors import EmptySource

Grid = Sequence[Sequence[Optional[str]]]
Record = Dict[str, str]


@dataclass(slots=True)
class NormalizedGrid:
    """Ordered column labels and the records built from the data rows."""

    columns: List[str] = field(default_factory=list)
    data: List[Record] = field(default_factory=list)


def _is_blank(cell: Optional[str]) -> bool:
    return not (cell or "").strip()


def _header_positions(header_row: Sequence[Optional[str]]) -> List[Tuple[int, str]]:
    positions: List[Tuple[int, str]] = []
    for index, cell in enumerate(header_row):
        label = (cell or "").strip()
        if label:
            positions.append((index, label))
    return positions


def _build_record(row: Sequence[Optional[str]], headers: Sequence[Tuple[int, str]]) -> Record:
    record: Record = {}
    for index, label in headers:
        if index >= len(row):
            break
        cell = row[index]
        if _is_blank(cell):
            continue
        # Duplicate labels share one key; the later cell wins.
        record[label] = cell  # type: ignore[assignment]
    return record


def normalize_grid(grid: Grid) -> NormalizedGrid:
    """Return the columns and records described by ``grid``.

    Raises :class:`~core.errors.EmptySource` when ``grid`` has no rows.  A grid
    with a header row but no data rows is valid and yields an empty ``data``.
    """

    if not grid:
        raise EmptySource()

    headers = _header_positions(grid[0])
    data: List[Record] = []
    for row in grid[1:]:
        if all(_is_blank(cell) for cell in row):
            continue
        record = _build_record(row, headers)
        if not record:
            continue
        data.append(record)

    return NormalizedGrid(columns=[label for _, label in headers], data=data)


__all__ = ["Grid", "NormalizedGrid", "Record", "normalize_grid"]
