"""Read-only access to a sheet grid (rows of raw cell text).

A sheet is any sequence of row sequences. Rows may have different lengths
while the host is mid-edit; anything outside a row reads as empty text.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any, Protocol

from gridcalc._utils import CellAddress, format_number

Sheet = Sequence[Sequence[str]]


class _RowSource(Protocol):
    """Anything with openpyxl's ``Worksheet.iter_rows`` signature."""

    def iter_rows(self, *args: Any, values_only: bool = ..., **kwargs: Any) -> Any: ...


def cell_text(sheet: Sheet, row: int, col: int) -> str:
    """Raw text at zero-based (row, col), or ``""`` when absent."""
    if row < 0 or col < 0 or row >= len(sheet):
        return ""
    cells = sheet[row]
    if col >= len(cells):
        return ""
    value = cells[col]
    return "" if value is None else value


def sheet_shape(sheet: Sheet) -> tuple[int, int]:
    """``(row count, widest row length)``."""
    return len(sheet), max((len(r) for r in sheet), default=0)


def iter_addresses(sheet: Sheet) -> Iterator[CellAddress]:
    """Yield the address of every present cell, row-major."""
    for r, cells in enumerate(sheet):
        for c in range(len(cells)):
            yield CellAddress(r, c)


def _cell_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return format_number(float(value))
    return str(value)


def grid_from_worksheet(ws: _RowSource) -> list[list[str]]:
    """Snapshot a worksheet's values into a sheet grid.

    Works with openpyxl worksheets (formula cells keep their ``=`` text when
    the workbook was not loaded with ``data_only=True``). Trailing empty
    cells are kept, so the grid is rectangular over the used range.
    """
    return [
        [_cell_to_text(v) for v in row]
        for row in ws.iter_rows(values_only=True)
    ]
