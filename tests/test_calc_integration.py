"""Integration tests: public gridcalc API over whole sheets."""

from __future__ import annotations

import pytest

import gridcalc
from gridcalc import SheetEvaluator, evaluate, grid_from_worksheet, is_error_token, parse_label

# ---------------------------------------------------------------------------
# Golden sheets
# ---------------------------------------------------------------------------


def _budget_sheet() -> list[list[str]]:
    """Item rows with qty * price, a SUM total and a tax line."""
    return [
        ["Item", "Qty", "Price", "Line"],
        ["Pens", "10", "1.5", "=B2*C2"],
        ["Paper", "4", "6", "=B3*C3"],
        ["Ink", "2", "12.25", "=B4*C4"],
        ["Total", "", "", "=SUM(D2:D4)"],
        ["Tax", "", "0.25", "=D5*C6"],
        ["Grand", "", "", "=D5+D6"],
    ]


class TestPublicApi:
    def test_exports(self) -> None:
        for name in ("evaluate", "parse_label", "format_address", "SheetEvaluator", "CellError"):
            assert hasattr(gridcalc, name)

    def test_evaluator_satisfies_protocol(self) -> None:
        from gridcalc.calc import CalcEngine

        assert isinstance(SheetEvaluator([]), CalcEngine)

    def test_label_driven_evaluate(self) -> None:
        sheet = [["5", "=A1+1"]]
        addr = parse_label("B1")
        assert evaluate(sheet[addr.row][addr.col], sheet, {}, addr) == "6"


class TestBudget:
    def test_full_pass(self) -> None:
        display = SheetEvaluator(_budget_sheet()).calculate()
        assert [row[3] for row in display] == ["Line", "15", "24", "24.5", "63.5", "15.875", "79.375"]

    def test_one_cache_per_pass(self) -> None:
        sheet = _budget_sheet()
        cache: dict = {}
        grand = evaluate(sheet[6][3], sheet, cache, (6, 3))
        assert grand == "79.375"
        assert {"D2", "D3", "D4", "D5", "D6", "D7"} <= set(cache)

    def test_edit_then_new_pass(self) -> None:
        sheet = _budget_sheet()
        ev = SheetEvaluator(sheet)
        ev.calculate()
        edited = [list(r) for r in sheet]
        edited[1][1] = "20"
        ev.load(edited)
        assert ev.evaluate_cell("D5") == "78.5"

    def test_error_cells_render(self) -> None:
        sheet = _budget_sheet()
        sheet[2][2] = "n/a"
        display = SheetEvaluator(sheet).calculate()
        assert display[2][3] == "#REF!"
        # SUM skips the error line, the rest of the sheet still renders.
        assert display[4][3] == "39.5"
        assert is_error_token(display[2][3])
        assert not is_error_token(display[4][3])


class TestWorksheetSource:
    def test_openpyxl_roundtrip(self) -> None:
        openpyxl = pytest.importorskip("openpyxl")
        wb = openpyxl.Workbook()
        ws = wb.active
        ws["A1"] = 10
        ws["A2"] = 20
        ws["A3"] = "=SUM(A1:A2)"
        ws["A4"] = "=A3*2"
        ws["B1"] = "=B2"
        ws["B2"] = "=B1"
        display = SheetEvaluator(grid_from_worksheet(ws)).calculate()
        assert [row[0] for row in display] == ["10", "20", "30", "60"]
        assert display[0][1] == "#CIRC!"
        assert display[1][1] == "#CIRC!"
