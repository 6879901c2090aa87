import math
import numbers
from dataclasses import dataclass
from datetime import date
from typing import Any, Union


@dataclass(frozen=True)
class NumberCell:
    value: float


@dataclass(frozen=True)
class TextCell:
    value: str


@dataclass(frozen=True)
class DateCell:
    value: date             # date or datetime


@dataclass(frozen=True)
class EmptyCell:
    pass


Cell = Union[NumberCell, TextCell, DateCell, EmptyCell]

EMPTY = EmptyCell()


def to_cell(raw: Any) -> Cell:
    """Classify a raw spreadsheet value. Already-classified cells pass through."""
    if isinstance(raw, (NumberCell, TextCell, DateCell, EmptyCell)):
        return raw
    if raw is None:
        return EMPTY
    if isinstance(raw, bool):
        return TextCell(str(raw))
    if isinstance(raw, numbers.Real):
        number = float(raw)
        if math.isnan(number):
            return EMPTY
        return NumberCell(number)
    if isinstance(raw, date):
        return DateCell(raw)
    return TextCell(str(raw))


def is_blank(cell: Cell) -> bool:
    if isinstance(cell, EmptyCell):
        return True
    if isinstance(cell, TextCell):
        return not cell.value.strip()
    return False


def cell_text(cell: Cell) -> str:
    """Display text of a cell; numbers print without a trailing '.0'."""
    if isinstance(cell, TextCell):
        return cell.value.strip()
    if isinstance(cell, NumberCell):
        if cell.value.is_integer():
            return str(int(cell.value))
        return str(cell.value)
    if isinstance(cell, DateCell):
        return cell.value.isoformat()
    return ""
