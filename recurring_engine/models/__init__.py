"""
Database models package.
"""

from recurring_engine.models.recurring import RecurringExpense, Frequency
from recurring_engine.models.expense import Expense

__all__ = [
    "RecurringExpense",
    "Frequency",
    "Expense",
]
