"""CalcEngine protocol and per-pass evaluation state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, Union, runtime_checkable

from gridcalc.calc._functions import CellError, FunctionRegistry

if TYPE_CHECKING:
    from gridcalc._sheet import Sheet
    from gridcalc._utils import CellAddress

# A resolved cell: number, error, or literal text.
Value = Union[float, CellError, str]


@dataclass
class EvaluationContext:
    """State for one evaluation pass over a sheet snapshot.

    ``cache`` memoizes formula results by label for the whole pass.
    ``active_path`` holds the labels still being evaluated in the current
    top-level call chain; it must be empty again when that call returns.
    """

    sheet: Sheet
    cache: dict[str, Value] = field(default_factory=dict)
    active_path: set[str] = field(default_factory=set)
    functions: FunctionRegistry = field(default_factory=FunctionRegistry)


@runtime_checkable
class CalcEngine(Protocol):
    """Protocol for sheet evaluation engines."""

    def evaluate_cell(self, address: CellAddress | str) -> str:
        """Display text for one cell, sharing the pass cache."""
        ...

    def calculate(self) -> list[list[str]]:
        """Display text for every cell in the sheet, same shape as the sheet."""
        ...

    def load(self, sheet: Sheet) -> None:
        """Switch to a new sheet snapshot and discard memoized results."""
        ...

    def reset(self) -> None:
        """Discard memoized results (the sheet changed in place)."""
        ...
