from typing import Optional

from pydantic import BaseModel, Field

from models.expense import ExpenseDraft


class CategoryIn(BaseModel):
    name: str
    color: str = Field(..., description="#RRGGBB")
    description: Optional[str] = None


class CategoryUpdate(CategoryIn):
    active: bool = True


class ExpenseIn(BaseModel):
    amount: float
    description: str
    category_id: int
    persona: str = Field(..., description="Ana | Valen")
    date: Optional[str] = Field(None, description="YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS")

    def to_draft(self) -> ExpenseDraft:
        return ExpenseDraft(
            amount=self.amount,
            description=self.description,
            category_id=self.category_id,
            persona=self.persona,
            date=self.date,
        )


class ExpenseUpdate(ExpenseIn):
    active: bool = True


class BalanceIn(BaseModel):
    amount: float
    recorded_at: Optional[str] = None
