"""
Expense schemas.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from recurring_engine.schemas.recurring import CategorySnapshot, normalize_amount


class ExpenseSnapshot(BaseModel):
    """Values copied from a pattern onto one generated expense."""
    amount: str
    category: CategorySnapshot
    date: date
    note: str = ""

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, value: Any) -> str:
        return normalize_amount(value)


class ExpenseResponse(BaseModel):
    id: str
    amount: str
    category: CategorySnapshot
    date: date
    note: str
    recurring_expense_id: Optional[str]
    created_at: datetime
    updated_at: datetime

    @field_validator("note", mode="before")
    @classmethod
    def note_default(cls, value: Any) -> Any:
        return "" if value is None else value

    class Config:
        from_attributes = True
