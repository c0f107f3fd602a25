"""Error values, numeric coercion and range-aggregate builtins."""

from __future__ import annotations

from typing import Any, Callable

from gridcalc.calc._parser import parse_number


# ---------------------------------------------------------------------------
# CellError: the fixed set of error results a formula can produce
# ---------------------------------------------------------------------------


class CellError:
    """Error result of a formula, displayed as its ``#`` token.

    There is exactly one instance per token, so results can be checked with
    ``is``. Instances also compare equal to their token text.
    """

    __slots__ = ("code",)
    _by_code: dict[str, CellError] = {}

    REF: CellError
    DIV0: CellError
    CIRC: CellError
    ERROR: CellError

    def __init__(self, code: str) -> None:
        self.code = code

    @classmethod
    def _define(cls, code: str) -> CellError:
        error = cls(code)
        cls._by_code[code] = error
        return error

    def __repr__(self) -> str:
        return f"CellError({self.code!r})"

    def __str__(self) -> str:
        return self.code

    def __eq__(self, other: object) -> bool:
        if isinstance(other, str):
            return self.code == other.upper()
        return self is other

    def __hash__(self) -> int:
        return hash(self.code)


CellError.REF = CellError._define("#REF!")
CellError.DIV0 = CellError._define("#DIV/0!")
CellError.CIRC = CellError._define("#CIRC!")
CellError.ERROR = CellError._define("#ERROR!")

ERROR_TOKENS: frozenset[str] = frozenset(CellError._by_code)


def is_error_token(text: str) -> bool:
    """True when displayed cell text is one of the engine's error tokens."""
    return isinstance(text, str) and text.startswith("#") and text.upper() in ERROR_TOKENS


def to_number(value: Any) -> float | None:
    """Coerce a resolved cell value to a float, or None if it isn't numeric.

    Errors and booleans are never numeric; text is numeric only when it is
    a plain decimal literal.
    """
    if isinstance(value, (CellError, bool)) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return parse_number(value)
    return None


# ---------------------------------------------------------------------------
# Builtin range aggregates. Each takes the resolved values of every cell in
# the range, row-major.
# ---------------------------------------------------------------------------


def _coerce_numeric(values: list[Any]) -> list[float]:
    """Keep only the numeric values; text, blanks and errors are skipped."""
    result: list[float] = []
    for v in values:
        num = to_number(v)
        if num is not None:
            result.append(num)
    return result


def _builtin_sum(values: list[Any]) -> float:
    return sum(_coerce_numeric(values))


_BUILTINS: dict[str, Callable[[list[Any]], Any]] = {
    "SUM": _builtin_sum,
}


class FunctionRegistry:
    """Registry of range-aggregate implementations.

    Starts with builtins and can be extended with custom aggregates that
    take a list of resolved cell values.
    """

    def __init__(self) -> None:
        self._functions: dict[str, Callable[[list[Any]], Any]] = dict(_BUILTINS)

    def register(self, name: str, func: Callable[[list[Any]], Any]) -> None:
        self._functions[name.upper()] = func

    def get(self, name: str) -> Callable[[list[Any]], Any] | None:
        return self._functions.get(name.upper())

    def has(self, name: str) -> bool:
        return name.upper() in self._functions

    @property
    def supported_functions(self) -> frozenset[str]:
        return frozenset(self._functions.keys())
