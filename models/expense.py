import math
from dataclasses import dataclass, field
from typing import Optional

from models.category import Category


@dataclass
class Expense:
    id: int
    amount: float
    description: str
    category_id: int
    persona: str            # 'Ana' | 'Valen'
    date: str               # 'YYYY-MM-DDTHH:MM:SS'
    created_at: str = ""
    active: bool = True
    category: Optional[Category] = None


@dataclass
class ExpenseDraft:
    """Creation/update payload for an expense."""
    amount: float
    description: str
    category_id: int
    persona: str
    date: Optional[str] = None      # ISO date or datetime; None means now


@dataclass
class ExpenseFilter:
    persona: Optional[str] = None
    category_id: Optional[int] = None
    date_from: Optional[str] = None     # 'YYYY-MM-DD', inclusive
    date_to: Optional[str] = None       # 'YYYY-MM-DD', inclusive
    amount_min: Optional[float] = None
    amount_max: Optional[float] = None
    description: Optional[str] = None   # case-sensitive substring
    page: int = 1
    page_size: int = 20


@dataclass
class Page:
    items: list = field(default_factory=list)
    total_items: int = 0
    page: int = 1
    page_size: int = 20

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_items / self.page_size)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


@dataclass
class BulkCreateResult:
    attempted: int
    created: list = field(default_factory=list)
    error: Optional[str] = None

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def ok(self) -> bool:
        return self.error is None and self.created_count == self.attempted
