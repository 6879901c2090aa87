from dataclasses import dataclass, field
from typing import Optional


@dataclass
class CategoryStatistics:
    category_id: int
    category_name: str
    category_color: str
    total: float = 0.0
    count: int = 0
    average: float = 0.0
    percentage: float = 0.0


@dataclass
class PersonaStatistics:
    persona: str
    total: float = 0.0
    count: int = 0
    average: float = 0.0
    percentage: float = 0.0
    first_expense: Optional[str] = None
    last_expense: Optional[str] = None


@dataclass
class ExpenseStatistics:
    total: float = 0.0
    count: int = 0
    average: float = 0.0
    total_ana: float = 0.0
    total_valen: float = 0.0
    by_category: list[CategoryStatistics] = field(default_factory=list)
    by_persona: list[PersonaStatistics] = field(default_factory=list)
