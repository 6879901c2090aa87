from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class ParsedMovement:
    operation_date: Optional[date]
    concept: str
    amount: float               # unsigned magnitude
    balance: Optional[float] = None


@dataclass(frozen=True)
class StatementColumns:
    date: int
    concept: int
    amount: int
    balance: Optional[int] = None


@dataclass
class StatementImport:
    movements: list[ParsedMovement] = field(default_factory=list)
    ending_balance: Optional[float] = None
    header_row: Optional[int] = None
    columns: Optional[StatementColumns] = None
    diagnostic: Optional[str] = None

    @property
    def total_amount(self) -> float:
        return round(sum(m.amount for m in self.movements), 2)
