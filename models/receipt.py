from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ParsedReceiptProduct:
    description: str
    quantity: int
    unit_price: float
    amount: float


@dataclass
class ParsedReceipt:
    purchased_at: Optional[datetime] = None
    products: list[ParsedReceiptProduct] = field(default_factory=list)
    total: Optional[float] = None
    store: Optional[str] = None

    @property
    def products_total(self) -> float:
        return round(sum(p.amount for p in self.products), 2)
