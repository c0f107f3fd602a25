"""gridcalc - formula evaluation for in-memory spreadsheet grids.

Usage::

    from gridcalc import SheetEvaluator, evaluate, parse_label

    rows = [["5", "=A1+1"], ["=SUM(A1:B1)", ""]]

    # One cell
    evaluate(rows[0][1], rows, {}, parse_label("B1"))   # "6"

    # Whole grid, one shared cache for the pass
    SheetEvaluator(rows).calculate()   # [["5", "6"], ["11", ""]]
"""

from gridcalc._sheet import Sheet, cell_text, grid_from_worksheet, iter_addresses, sheet_shape
from gridcalc._utils import (
    CellAddress,
    column_index,
    column_letter,
    format_address,
    is_label,
    parse_label,
)
from gridcalc.calc import (
    CellError,
    EvaluationContext,
    FunctionRegistry,
    SheetEvaluator,
    evaluate,
    is_error_token,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CellAddress",
    "CellError",
    "EvaluationContext",
    "FunctionRegistry",
    "Sheet",
    "SheetEvaluator",
    "cell_text",
    "column_index",
    "column_letter",
    "evaluate",
    "format_address",
    "grid_from_worksheet",
    "is_error_token",
    "is_label",
    "iter_addresses",
    "parse_label",
    "sheet_shape",
]
