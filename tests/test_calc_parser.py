"""Tests for gridcalc.calc tokenizer and range-call recognition."""

from __future__ import annotations

import pytest
from gridcalc._utils import CellAddress
from gridcalc.calc._parser import expand_range, match_range_call, parse_number, tokenize


class TestTokenize:
    def test_operators_split(self) -> None:
        assert tokenize("A1+2*B3") == ["A1", "+", "2", "*", "B3"]

    def test_whitespace_trimmed(self) -> None:
        assert tokenize(" 10 - 2 / 4 ") == ["10", "-", "2", "/", "4"]

    def test_empty(self) -> None:
        assert tokenize("") == []
        assert tokenize("   ") == []

    def test_single_operand(self) -> None:
        assert tokenize("42") == ["42"]

    def test_leading_operator_kept(self) -> None:
        assert tokenize("-5") == ["-", "5"]

    def test_adjacent_operators(self) -> None:
        assert tokenize("1+*2") == ["1", "+", "*", "2"]


class TestParseNumber:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("3", 3.0), ("3.25", 3.25), ("3.", 3.0), (".5", 0.5), ("2E3", 2000.0), ("-7", -7.0)],
    )
    def test_literals(self, text: str, expected: float) -> None:
        assert parse_number(text) == expected

    @pytest.mark.parametrize("text", ["", "A1", "1.2.3", "nan", "Infinity", "0x10", "1e", "5%"])
    def test_not_numbers(self, text: str) -> None:
        assert parse_number(text) is None


class TestMatchRangeCall:
    def test_sum(self) -> None:
        assert match_range_call("SUM(A1:B2)") == ("SUM", CellAddress(0, 0), CellAddress(1, 1))

    def test_case_insensitive(self) -> None:
        assert match_range_call("sum(a1:b2)") == ("SUM", CellAddress(0, 0), CellAddress(1, 1))

    def test_whole_body_only(self) -> None:
        assert match_range_call("SUM(A1:B2)*2") is None
        assert match_range_call("1+SUM(A1:B2)") is None

    def test_requires_range(self) -> None:
        assert match_range_call("SUM(A1)") is None
        assert match_range_call("SUM(A1,B2)") is None

    def test_invalid_corner(self) -> None:
        assert match_range_call("SUM(A0:B2)") is None

    def test_other_names_recognized(self) -> None:
        assert match_range_call("AVG(C3:A1)") == ("AVG", CellAddress(2, 2), CellAddress(0, 0))


class TestExpandRange:
    def test_rectangle_row_major(self) -> None:
        cells = expand_range(CellAddress(0, 0), CellAddress(1, 1))
        assert cells == [(0, 0), (0, 1), (1, 0), (1, 1)]

    def test_reversed_corners(self) -> None:
        assert expand_range(CellAddress(1, 1), CellAddress(0, 0)) == expand_range(
            CellAddress(0, 0), CellAddress(1, 1)
        )

    def test_anti_diagonal_corners(self) -> None:
        cells = expand_range(CellAddress(2, 0), CellAddress(0, 1))
        assert len(cells) == 6
        assert cells[0] == (0, 0)
        assert cells[-1] == (2, 1)

    def test_single_cell(self) -> None:
        assert expand_range(CellAddress(3, 3), CellAddress(3, 3)) == [(3, 3)]
