"""
Pydantic schemas package.
"""

from recurring_engine.schemas.recurring import (
    CategorySnapshot,
    DailySchedule,
    WeeklySchedule,
    MonthlySchedule,
    YearlySchedule,
    Schedule,
    build_schedule,
    normalize_amount,
    RecurringExpenseCreate,
    RecurringExpenseUpdate,
    RecurringExpenseResponse,
)
from recurring_engine.schemas.expense import ExpenseSnapshot, ExpenseResponse
from recurring_engine.schemas.generation import PatternOutcome, GenerationReport

__all__ = [
    "CategorySnapshot",
    "DailySchedule",
    "WeeklySchedule",
    "MonthlySchedule",
    "YearlySchedule",
    "Schedule",
    "build_schedule",
    "normalize_amount",
    "RecurringExpenseCreate",
    "RecurringExpenseUpdate",
    "RecurringExpenseResponse",
    "ExpenseSnapshot",
    "ExpenseResponse",
    "PatternOutcome",
    "GenerationReport",
]
