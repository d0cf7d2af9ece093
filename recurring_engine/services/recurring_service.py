"""Pattern store: creation, validation and lifecycle of recurring expenses."""

import enum
import logging
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recurring_engine.errors import (
    RecurrenceValidationError,
    RecurringExpenseNotFoundError,
    StorageError,
    map_storage_error,
)
from recurring_engine.models.recurring import RecurringExpense
from recurring_engine.schemas.recurring import RecurringExpenseCreate, RecurringExpenseUpdate
from recurring_engine.services import expense_service
from recurring_engine.services.occurrence import DateLike, to_date

logger = logging.getLogger(__name__)


class DeleteMode(str, enum.Enum):
    """How to treat generated expenses when deleting a recurring expense."""
    detach = "detach"    # Keep expenses, their recurring_expense_id becomes a historical tag
    cascade = "cascade"  # Remove expenses generated by the pattern too


def _validation_error(error: ValidationError) -> RecurrenceValidationError:
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        messages.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return RecurrenceValidationError("; ".join(messages))


def _commit(db: Session, operation: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_storage_error(e, operation) from e


def _require(db: Session, recurring_expense_id: str) -> RecurringExpense:
    if not recurring_expense_id or not recurring_expense_id.strip():
        raise RecurrenceValidationError("Recurring expense ID is required")
    recurring = get_recurring_expense(db, recurring_expense_id)
    if not recurring:
        raise RecurringExpenseNotFoundError(recurring_expense_id)
    return recurring


def create_recurring_expense(
    db: Session,
    data: Union[RecurringExpenseCreate, Dict[str, Any]]
) -> RecurringExpense:
    """
    Validate and store a new recurring expense.
    Raises RecurrenceValidationError for malformed input.
    """
    if not isinstance(data, RecurringExpenseCreate):
        try:
            data = RecurringExpenseCreate.model_validate(data)
        except ValidationError as e:
            raise _validation_error(e) from e

    recurring = RecurringExpense(
        id=str(uuid.uuid4()),
        amount=data.amount,
        note=data.note or None,
        start_date=data.start_date,
        end_date=data.end_date,
        last_generated_date=None,
        is_active=True,
    )
    recurring.category = data.category
    recurring.schedule = data.schedule

    db.add(recurring)
    _commit(db, "create_recurring_expense")
    db.refresh(recurring)

    logger.info(
        "Created recurring expense %s (%s, starts %s)",
        recurring.id, recurring.frequency.value, recurring.start_date
    )
    return recurring


def get_recurring_expense(db: Session, recurring_expense_id: str) -> Optional[RecurringExpense]:
    return db.query(RecurringExpense).filter(
        RecurringExpense.id == recurring_expense_id
    ).first()


def get_recurring_expenses(
    db: Session,
    include_inactive: bool = False
) -> List[RecurringExpense]:
    """Recurring expenses, newest first."""
    query = db.query(RecurringExpense)

    if not include_inactive:
        query = query.filter(RecurringExpense.is_active == True)

    return query.order_by(RecurringExpense.created_at.desc(), RecurringExpense.id).all()


def list_active_patterns(db: Session) -> List[RecurringExpense]:
    """Patterns eligible for generation."""
    return get_recurring_expenses(db, include_inactive=False)


def update_recurring_expense(
    db: Session,
    recurring_expense_id: str,
    data: Union[RecurringExpenseUpdate, Dict[str, Any]]
) -> RecurringExpense:
    """
    Merge a partial update into a recurring expense and re-validate the result.

    The generation marker is kept: editing a schedule does not regenerate or
    remove expenses already produced.
    """
    recurring = _require(db, recurring_expense_id)

    try:
        if not isinstance(data, RecurringExpenseUpdate):
            data = RecurringExpenseUpdate.model_validate(data)
        changes = data.model_dump(exclude_unset=True)

        merged: Dict[str, Any] = {
            "amount": recurring.amount,
            "category": recurring.category.model_dump(),
            "note": recurring.note or "",
            "start_date": recurring.start_date,
            "end_date": recurring.end_date,
        }
        if "schedule" not in changes:
            merged["schedule"] = recurring.schedule.model_dump()
        merged.update(changes)

        validated = RecurringExpenseCreate.model_validate(merged)
    except ValidationError as e:
        raise _validation_error(e) from e

    recurring.amount = validated.amount
    recurring.category = validated.category
    recurring.note = validated.note or None
    recurring.schedule = validated.schedule
    recurring.start_date = validated.start_date
    recurring.end_date = validated.end_date
    recurring.updated_at = datetime.utcnow()

    _commit(db, "update_recurring_expense")
    db.refresh(recurring)
    return recurring


def update_last_generated_date(
    db: Session,
    recurring_expense_id: str,
    generated_date: date,
    commit: bool = True
) -> None:
    """
    Move the high-water mark. With ``commit=False`` the change joins the
    caller's transaction.
    """
    if not recurring_expense_id or not recurring_expense_id.strip():
        raise RecurrenceValidationError("Recurring expense ID is required")

    try:
        updated = db.query(RecurringExpense).filter(
            RecurringExpense.id == recurring_expense_id
        ).update(
            {
                RecurringExpense.last_generated_date: generated_date,
                RecurringExpense.updated_at: datetime.utcnow(),
            },
            synchronize_session="fetch"
        )
        if commit:
            db.commit()
    except SQLAlchemyError as e:
        if commit:
            db.rollback()
        raise map_storage_error(e, "update_last_generated_date") from e

    if not updated:
        raise RecurringExpenseNotFoundError(recurring_expense_id)


def set_recurring_expense_active(
    db: Session,
    recurring_expense_id: str,
    is_active: bool
) -> RecurringExpense:
    """
    Pause or resume a recurring expense.

    Generated expenses and the generation marker are left alone. Resuming
    therefore catches up every occurrence missed while paused on the next
    run; call resume_from() instead to skip that backlog.
    """
    recurring = _require(db, recurring_expense_id)
    recurring.is_active = is_active
    recurring.updated_at = datetime.utcnow()
    _commit(db, "set_recurring_expense_active")
    db.refresh(recurring)

    logger.info(
        "Recurring expense %s %s", recurring_expense_id,
        "activated" if is_active else "deactivated"
    )
    return recurring


def resume_from(
    db: Session,
    recurring_expense_id: str,
    as_of_date: DateLike
) -> RecurringExpense:
    """
    Reactivate a recurring expense without catching up the paused period.

    The marker moves forward to ``as_of_date`` (never backwards), so the first
    expense generated afterwards is the first occurrence after that date.
    """
    as_of_date = to_date(as_of_date)
    recurring = _require(db, recurring_expense_id)
    if recurring.last_generated_date is None or recurring.last_generated_date < as_of_date:
        recurring.last_generated_date = as_of_date
    recurring.is_active = True
    recurring.updated_at = datetime.utcnow()
    _commit(db, "resume_recurring_expense")
    db.refresh(recurring)

    logger.info(
        "Recurring expense %s resumed from %s", recurring_expense_id, recurring.last_generated_date
    )
    return recurring


def delete_recurring_expense(
    db: Session,
    recurring_expense_id: str,
    mode: Union[DeleteMode, str] = DeleteMode.detach
) -> int:
    """
    Delete a recurring expense.

    In cascade mode its generated expenses are removed in the same
    transaction. Returns the number of expenses deleted (always 0 when
    detaching).
    """
    mode = DeleteMode(mode)
    recurring = _require(db, recurring_expense_id)

    deleted = 0
    try:
        db.delete(recurring)
        db.flush()
        if mode == DeleteMode.cascade:
            deleted = expense_service.delete_expenses_by_pattern(
                db, recurring_expense_id, commit=False
            )
        db.commit()
    except StorageError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise map_storage_error(e, "delete_recurring_expense") from e

    logger.info(
        "Deleted recurring expense %s (%s, %d expenses removed)",
        recurring_expense_id, mode.value, deleted
    )
    return deleted


def count_recurring_for_category(db: Session, category_id: str, include_inactive: bool = True) -> int:
    """Number of recurring expenses whose snapshot points at a category."""
    query = db.query(RecurringExpense).filter(RecurringExpense.category_id == category_id)
    if not include_inactive:
        query = query.filter(RecurringExpense.is_active == True)
    return query.count()
