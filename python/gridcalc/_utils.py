"""Cell label <-> zero-based address conversion and number display."""

from __future__ import annotations

import math
import re
from typing import NamedTuple

_LABEL_RE = re.compile(r"^([A-Z]+)(\d+)$")
_LETTERS_RE = re.compile(r"^[A-Z]+$")


class CellAddress(NamedTuple):
    """Zero-based (row, col) position in a sheet."""

    row: int
    col: int


def column_index(letters: str) -> int:
    """Convert column letters to a zero-based index: ``"A"`` -> 0, ``"AA"`` -> 26."""
    canon = letters.strip().upper()
    if not _LETTERS_RE.match(canon):
        raise ValueError(f"Invalid column letters: {letters!r}")
    n = 0
    for ch in canon:
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return n - 1


def column_letter(col: int) -> str:
    """Convert a zero-based column index to letters: 0 -> ``"A"``, 27 -> ``"AB"``."""
    if col < 0:
        raise ValueError(f"Column index must be >= 0, got {col}")
    name = ""
    n = col
    while n >= 0:
        name = chr(n % 26 + ord("A")) + name
        n = n // 26 - 1
    return name


def parse_label(text: str) -> CellAddress | None:
    """Parse a label like ``"B3"`` (any case) into ``CellAddress(2, 1)``.

    Returns None when *text* is not letters followed by digits, or when the
    row number is 0.
    """
    m = _LABEL_RE.match(text.strip().upper())
    if not m:
        return None
    row = int(m.group(2)) - 1
    col = column_index(m.group(1))
    if row < 0 or col < 0:
        return None
    return CellAddress(row, col)


def format_address(address: tuple[int, int]) -> str:
    """Inverse of :func:`parse_label`: ``(4, 27)`` -> ``"AB5"``."""
    row, col = address
    if row < 0:
        raise ValueError(f"Row index must be >= 0, got {row}")
    return f"{column_letter(col)}{row + 1}"


def is_label(text: str) -> bool:
    return parse_label(text) is not None


def format_number(value: float) -> str:
    """Display text for a numeric result.

    Whole values drop the fractional part (``14.0`` -> ``"14"``), others use
    the shortest round-tripping repr (``0.30000000000000004``).
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == int(value) and abs(value) < 1e21:
        return str(int(value))
    return repr(float(value))
