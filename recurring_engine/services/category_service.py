"""Service for propagating category edits onto denormalized snapshots."""

import logging
from datetime import datetime
from typing import Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recurring_engine.errors import map_storage_error
from recurring_engine.models.expense import Expense
from recurring_engine.models.recurring import RecurringExpense
from recurring_engine.schemas.recurring import CategorySnapshot

logger = logging.getLogger(__name__)


def cascade_category_snapshot(
    db: Session,
    category: CategorySnapshot,
    include_expenses: bool = True
) -> Tuple[int, int]:
    """
    Rewrite the copied name, icon and color wherever ``category.id`` is referenced.

    Snapshots are never refreshed implicitly; this is the explicit routine a
    category editor calls. Patterns and expenses are updated in one
    transaction. Returns (patterns_updated, expenses_updated).
    """
    now = datetime.utcnow()
    values = {
        "category_name": category.name,
        "category_icon": category.icon,
        "category_color": category.color,
        "updated_at": now,
    }

    try:
        patterns = db.query(RecurringExpense).filter(
            RecurringExpense.category_id == category.id
        ).update(values, synchronize_session="fetch")

        expenses = 0
        if include_expenses:
            expenses = db.query(Expense).filter(
                Expense.category_id == category.id
            ).update(values, synchronize_session="fetch")

        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_storage_error(e, "cascade_category_snapshot") from e

    logger.info(
        "Category %s snapshot refreshed on %d recurring expenses and %d expenses",
        category.id, patterns, expenses
    )
    return patterns, expenses
