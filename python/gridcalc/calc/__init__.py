"""gridcalc.calc - Formula evaluation engine for sheet grids."""

from gridcalc.calc._evaluator import FORMULA_PREFIX, SheetEvaluator, evaluate, format_value
from gridcalc.calc._functions import CellError, FunctionRegistry, is_error_token
from gridcalc.calc._parser import expand_range, match_range_call, tokenize
from gridcalc.calc._protocol import CalcEngine, EvaluationContext

__all__ = [
    "CalcEngine",
    "CellError",
    "EvaluationContext",
    "FORMULA_PREFIX",
    "FunctionRegistry",
    "SheetEvaluator",
    "evaluate",
    "expand_range",
    "format_value",
    "is_error_token",
    "match_range_call",
    "tokenize",
]
