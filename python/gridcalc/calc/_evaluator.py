"""Cell evaluator with per-pass memoization and cycle detection.

A formula body is either a whole-body range aggregate (``SUM(A1:B2)``) or a
flat operator chain over numbers and cell references (``A1+2*B3``).
Multiplication and division bind tighter than addition and subtraction;
there are no parentheses and no unary signs.

Each formula cell under evaluation is a generator that yields the addresses
it reads and is sent back their values. A single driver loop keeps those
generators on an explicit stack, so reference chains of any length are
evaluated without growing the Python call stack.

Failures never raise out of :func:`evaluate`. They become
:class:`CellError` values and are displayed as ``#`` tokens.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from typing import TYPE_CHECKING, Any, Callable, Union

from gridcalc._sheet import cell_text, iter_addresses, sheet_shape
from gridcalc._utils import CellAddress, format_address, format_number, parse_label
from gridcalc.calc._functions import CellError, FunctionRegistry, to_number
from gridcalc.calc._parser import (
    OPERATORS,
    expand_range,
    match_range_call,
    parse_number,
    tokenize,
)
from gridcalc.calc._protocol import EvaluationContext, Value

if TYPE_CHECKING:
    from gridcalc._sheet import Sheet

logger = logging.getLogger(__name__)

FORMULA_PREFIX = "="


class _CycleHit:
    """A read of a cell that is still on the active path.

    ``depth`` is that cell's position on the driver stack (-1 when the caller
    put it on the path). Cells between the hit and ``label`` are on the loop.
    """

    __slots__ = ("label", "depth")

    def __init__(self, label: str, depth: int) -> None:
        self.label = label
        self.depth = depth


# What a cell generator yields, receives, and returns.
_Steps = Generator[CellAddress, Union[Value, _CycleHit], Union[Value, _CycleHit]]


class _TokenError(Exception):
    """Raised while folding an expression; carries the cell's result."""

    def __init__(self, error: CellError | _CycleHit) -> None:
        super().__init__(str(error))
        self.error = error


class _Frame:
    __slots__ = ("label", "steps")

    def __init__(self, label: str, steps: _Steps) -> None:
        self.label = label
        self.steps = steps


def format_value(value: Any) -> str:
    """Display text for a resolved value."""
    if isinstance(value, CellError):
        return str(value)
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return format_number(float(value))
    return "" if value is None else str(value)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def evaluate(
    raw_value: str,
    sheet: Sheet,
    cache: dict[str, Value],
    address: tuple[int, int],
    active_path: set[str] | None = None,
    functions: FunctionRegistry | None = None,
) -> str:
    """Display text for the cell at *address* whose raw text is *raw_value*.

    *cache* is shared by every call in one pass over *sheet* and must be
    discarded when the sheet changes. *active_path* defaults to a fresh set;
    when supplied it is left as it was found.
    """
    ctx = EvaluationContext(
        sheet=sheet,
        cache=cache,
        active_path=set() if active_path is None else active_path,
        functions=functions if functions is not None else FunctionRegistry(),
    )
    return format_value(_resolve(ctx, raw_value, CellAddress(*address)))


# ---------------------------------------------------------------------------
# Resolver / cycle guard
# ---------------------------------------------------------------------------


def _resolve(ctx: EvaluationContext, raw_value: str, address: CellAddress) -> Value:
    """Evaluate one top-level cell and everything it reads."""
    stack: list[_Frame] = []
    depth_of: dict[str, int] = {}

    value = _enter(ctx, raw_value, address, stack, depth_of)
    try:
        while stack:
            frame = stack[-1]
            try:
                request = frame.steps.send(value)
            except StopIteration as stop:
                stack.pop()
                value = _leave(ctx, frame, stop.value, depth_of)
                continue
            raw = cell_text(ctx.sheet, request.row, request.col)
            value = _enter(ctx, raw, request, stack, depth_of)
    finally:
        # Only non-empty when a BaseException escaped a cell generator.
        for frame in stack:
            ctx.active_path.discard(frame.label)
            frame.steps.close()

    if isinstance(value, _CycleHit):
        return CellError.CIRC
    return value


def _enter(
    ctx: EvaluationContext,
    raw_value: str,
    address: CellAddress,
    stack: list[_Frame],
    depth_of: dict[str, int],
) -> Value | _CycleHit | None:
    """Value of a cell if it is known now, else push its frame and return None."""
    if raw_value is None:
        return ""
    if not isinstance(raw_value, str) or not raw_value.startswith(FORMULA_PREFIX):
        return raw_value

    label = format_address(address)
    if label in ctx.active_path:
        logger.debug("Circular reference at %s", label)
        return _CycleHit(label, depth_of.get(label, -1))
    if label in ctx.cache:
        return ctx.cache[label]

    ctx.active_path.add(label)
    depth_of[label] = len(stack)
    stack.append(_Frame(label, _compute(ctx, raw_value[len(FORMULA_PREFIX):])))
    return None


def _leave(
    ctx: EvaluationContext,
    frame: _Frame,
    result: Value | _CycleHit,
    depth_of: dict[str, int],
) -> Value | _CycleHit:
    """Pop a finished cell off the active path, memoize it, and pass its value up."""
    ctx.active_path.discard(frame.label)
    depth_of.pop(frame.label, None)

    if isinstance(result, _CycleHit):
        ctx.cache[frame.label] = CellError.CIRC
        # The reader is on the loop too, unless this cell is where it closes.
        return CellError.CIRC if result.label == frame.label else result

    ctx.cache[frame.label] = result
    return result


def _compute(ctx: EvaluationContext, body: str) -> _Steps:
    """Evaluate a formula body (no leading ``=``)."""
    try:
        call = match_range_call(body)
        if call is not None:
            name, start, end = call
            func = ctx.functions.get(name)
            if func is not None:
                return (yield from _aggregate(ctx, name, func, start, end))
            logger.debug("Unsupported aggregate: %s", name)
        return (yield from _eval_chain(ctx, body))
    except _TokenError as e:
        return e.error
    except Exception as e:
        logger.debug("Error evaluating %r: %s", body, e)
        return CellError.ERROR


# ---------------------------------------------------------------------------
# Range aggregation
# ---------------------------------------------------------------------------


def _aggregate(
    ctx: EvaluationContext,
    name: str,
    func: Callable[[list[Any]], Any],
    start: CellAddress,
    end: CellAddress,
) -> _Steps:
    """Apply *func* to the resolved values of the in-bounds part of a range."""
    n_rows, n_cols = sheet_shape(ctx.sheet)
    top, bottom = min(start.row, end.row), min(max(start.row, end.row), n_rows - 1)
    left, right = min(start.col, end.col), min(max(start.col, end.col), n_cols - 1)

    values: list[Value] = []
    if top <= bottom and left <= right:
        for addr in expand_range(CellAddress(top, left), CellAddress(bottom, right)):
            if addr.col >= len(ctx.sheet[addr.row]):
                continue
            value = yield addr
            # A cell of the range still being evaluated counts as an error.
            values.append(CellError.CIRC if isinstance(value, _CycleHit) else value)

    result = func(values)
    if isinstance(result, (CellError, str)):
        return result
    if isinstance(result, bool) or not isinstance(result, (int, float)):
        raise TypeError(f"{name} returned {type(result).__name__}, not a number")
    return float(result)


# ---------------------------------------------------------------------------
# Operator chain
# ---------------------------------------------------------------------------


def _resolve_operand(ctx: EvaluationContext, token: str) -> _Steps:
    """Turn an operand token into a number, or raise :class:`_TokenError`."""
    num = parse_number(token)
    if num is not None:
        return num

    addr = parse_label(token)
    if addr is None:
        logger.debug("Unresolvable token %r", token)
        raise _TokenError(CellError.REF)

    value = yield addr
    if isinstance(value, _CycleHit):
        return value
    if isinstance(value, str) and not value.strip():
        return 0.0
    num = to_number(value)
    if num is None:
        logger.debug("Non-numeric reference %s -> %r", token, value)
        raise _TokenError(CellError.REF)
    return num


def _eval_chain(ctx: EvaluationContext, body: str) -> _Steps:
    tokens = tokenize(body)
    if not tokens:
        return 0.0

    # Operands at even positions, operators at odd ones, ending on an operand.
    if len(tokens) % 2 == 0:
        raise ValueError(f"Expression ends with an operator: {body!r}")
    for i, tok in enumerate(tokens):
        if (tok in OPERATORS) != (i % 2 == 1):
            raise ValueError(f"Misplaced operator at token {i}: {body!r}")

    values: list[Any] = []
    cycle: _CycleHit | None = None
    for i, tok in enumerate(tokens):
        if i % 2:
            values.append(tok)
            continue
        operand = yield from _resolve_operand(ctx, tok)
        if isinstance(operand, _CycleHit):
            # Keep the loop that closes furthest up the stack.
            if cycle is None or operand.depth < cycle.depth:
                cycle = operand
            operand = 0.0
        values.append(operand)
    if cycle is not None:
        raise _TokenError(cycle)

    # Pass 1: fold * and / into their left operand
    pass1: list[Any] = [values[0]]
    for i in range(1, len(values), 2):
        op, right = values[i], values[i + 1]
        if op == "*":
            pass1[-1] = pass1[-1] * right
        elif op == "/":
            if right == 0:
                logger.debug("Division by zero in %r", body)
                raise _TokenError(CellError.DIV0)
            pass1[-1] = pass1[-1] / right
        else:
            pass1.extend((op, right))

    # Pass 2: + and - left to right
    result = pass1[0]
    for i in range(1, len(pass1), 2):
        op, right = pass1[i], pass1[i + 1]
        result = result + right if op == "+" else result - right
    return result


# ---------------------------------------------------------------------------
# Whole-sheet evaluation
# ---------------------------------------------------------------------------


class SheetEvaluator:
    """Evaluates cells of one sheet snapshot, sharing a cache across calls.

    Usage::

        evaluator = SheetEvaluator(rows)
        evaluator.evaluate_cell("B1")
        display = evaluator.calculate()

    Call :meth:`load` (or :meth:`reset`) whenever the sheet content changes.
    """

    def __init__(self, sheet: Sheet, functions: FunctionRegistry | None = None) -> None:
        self._sheet = sheet
        self._functions = functions if functions is not None else FunctionRegistry()
        self._cache: dict[str, Value] = {}

    @property
    def sheet(self) -> Sheet:
        return self._sheet

    @property
    def cached_labels(self) -> frozenset[str]:
        return frozenset(self._cache)

    def load(self, sheet: Sheet) -> None:
        """Switch to a new sheet snapshot and drop memoized results."""
        self._sheet = sheet
        self._cache.clear()

    def reset(self) -> None:
        self._cache.clear()

    def evaluate_cell(self, address: CellAddress | tuple[int, int] | str) -> str:
        """Display text for one cell. Labels like ``"B1"`` are accepted."""
        if isinstance(address, str):
            parsed = parse_label(address)
            if parsed is None:
                raise ValueError(f"Invalid cell label: {address!r}")
            addr = parsed
        else:
            addr = CellAddress(*address)

        # Fresh active path per top-level call; the cache spans the pass.
        ctx = EvaluationContext(
            sheet=self._sheet,
            cache=self._cache,
            active_path=set(),
            functions=self._functions,
        )
        raw = cell_text(self._sheet, addr.row, addr.col)
        return format_value(_resolve(ctx, raw, addr))

    def calculate(self) -> list[list[str]]:
        """Display text for every cell, in the sheet's own (possibly jagged) shape."""
        display = [[""] * len(cells) for cells in self._sheet]
        for addr in iter_addresses(self._sheet):
            display[addr.row][addr.col] = self.evaluate_cell(addr)
        return display
