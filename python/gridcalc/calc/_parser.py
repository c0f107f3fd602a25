"""Formula body tokenizer and range-call recognition."""

from __future__ import annotations

import re

from gridcalc._utils import CellAddress, parse_label

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

OPERATORS = ("+", "-", "*", "/")

_SPLIT_RE = re.compile(r"([+\-*/])")

# Decimal literal: 12, 12., 12.5, .5, 1e3. No inf/nan words, no hex.
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

# Whole-body range aggregate: SUM(A1:B2)
_LABEL = r"[A-Z]+\d+"
_RANGE_CALL_RE = re.compile(
    rf"^([A-Z][A-Z0-9_.]*)\(({_LABEL}):({_LABEL})\)$",
    re.IGNORECASE,
)


def parse_number(text: str) -> float | None:
    """Parse a decimal literal, or return None.

    Surrounding whitespace and a leading sign are accepted so that cell text
    like ``" -4.5 "`` reads as a number.
    """
    stripped = text.strip()
    if not _NUMBER_RE.match(stripped):
        return None
    return float(stripped)


def tokenize(body: str) -> list[str]:
    """Split a formula body into operands and single-char operators.

    ``"A1 + 2*B3"`` -> ``["A1", "+", "2", "*", "B3"]``.  Whitespace around
    tokens is dropped, as are empty operands between adjacent operators.
    """
    return [t for t in (part.strip() for part in _SPLIT_RE.split(body)) if t]


def match_range_call(body: str) -> tuple[str, CellAddress, CellAddress] | None:
    """If the whole *body* is ``NAME(<label>:<label>)``, return its parts.

    Returns ``(NAME, start, end)`` with the name upper-cased, or None when
    the shape doesn't match or either corner label is invalid (e.g. ``A0``).
    """
    m = _RANGE_CALL_RE.match(body.strip())
    if not m:
        return None
    start = parse_label(m.group(2))
    end = parse_label(m.group(3))
    if start is None or end is None:
        return None
    return m.group(1).upper(), start, end


def expand_range(start: CellAddress, end: CellAddress) -> list[CellAddress]:
    """Every address in the rectangle spanned by two opposite corners, row-major."""
    r_min, r_max = min(start.row, end.row), max(start.row, end.row)
    c_min, c_max = min(start.col, end.col), max(start.col, end.col)
    return [
        CellAddress(r, c)
        for r in range(r_min, r_max + 1)
        for c in range(c_min, c_max + 1)
    ]
