"""Expense store: persistence for generated expenses."""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recurring_engine.errors import map_storage_error
from recurring_engine.models.expense import Expense
from recurring_engine.schemas.expense import ExpenseSnapshot

logger = logging.getLogger(__name__)


def create_expense(
    db: Session,
    snapshot: ExpenseSnapshot,
    recurring_expense_id: Optional[str] = None,
    commit: bool = True
) -> Expense:
    """
    Insert an expense copied from ``snapshot``.

    With ``commit=False`` the row is only flushed, so the caller can group
    several writes into one transaction.
    """
    expense = Expense(
        amount=snapshot.amount,
        date=snapshot.date,
        note=snapshot.note or None,
        recurring_expense_id=recurring_expense_id,
    )
    expense.category = snapshot.category
    db.add(expense)

    try:
        if commit:
            db.commit()
        else:
            db.flush()
    except SQLAlchemyError as e:
        if commit:
            db.rollback()
        raise map_storage_error(e, "create_expense") from e

    if commit:
        db.refresh(expense)
    return expense


def get_expenses_for_pattern(db: Session, recurring_expense_id: str) -> List[Expense]:
    """Expenses generated by a recurring expense, oldest first."""
    return db.query(Expense).filter(
        Expense.recurring_expense_id == recurring_expense_id
    ).order_by(Expense.date).all()


def count_expenses_for_pattern(db: Session, recurring_expense_id: str) -> int:
    return db.query(Expense).filter(
        Expense.recurring_expense_id == recurring_expense_id
    ).count()


def delete_expenses_by_pattern(
    db: Session,
    recurring_expense_id: str,
    commit: bool = True
) -> int:
    """Delete every expense linked to a recurring expense. Returns the number removed."""
    if not recurring_expense_id or not recurring_expense_id.strip():
        raise ValueError("Recurring expense ID is required")

    try:
        deleted = db.query(Expense).filter(
            Expense.recurring_expense_id == recurring_expense_id
        ).delete(synchronize_session=False)
        if commit:
            db.commit()
    except SQLAlchemyError as e:
        if commit:
            db.rollback()
        raise map_storage_error(e, "delete_expenses_by_pattern") from e

    logger.info("Deleted %d expenses generated by %s", deleted, recurring_expense_id)
    return deleted
