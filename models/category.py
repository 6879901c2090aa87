from dataclasses import dataclass
from typing import Optional


@dataclass
class Category:
    id: int
    name: str
    color: str = "#3b82f6"      # '#RRGGBB'
    description: Optional[str] = None
    active: bool = True
    created_at: str = ""
