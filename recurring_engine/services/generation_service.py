"""
Generation of due recurring expenses.

The host application calls generate_due() once per activation with today's
date. Each active pattern is caught up from its high-water mark to
``as_of_date``; every pattern is committed on its own, expenses first and
marker second, so a crash or error never loses or duplicates an occurrence.
"""

import logging
import threading
from datetime import date
from typing import Any, Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recurring_engine.config import settings
from recurring_engine.errors import (
    GenerationInProgressError,
    RecurringEngineError,
    RecurringExpenseNotFoundError,
    StorageError,
)
from recurring_engine.schemas.expense import ExpenseSnapshot
from recurring_engine.schemas.generation import GenerationReport, PatternOutcome
from recurring_engine.services import expense_service, recurring_service
from recurring_engine.services.occurrence import initial_cursor, next_occurrence, to_date

logger = logging.getLogger(__name__)

# Two overlapping runs would read the same stale marker and double-generate
_run_lock = threading.Lock()


def is_generation_running() -> bool:
    return _run_lock.locked()


def generate_due(
    db: Session,
    as_of_date: date,
    patterns: Optional[Iterable[Any]] = None,
    max_occurrences: Optional[int] = None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> GenerationReport:
    """
    Materialize every occurrence due on or before ``as_of_date``.

    ``patterns`` defaults to all active recurring expenses. An explicit list
    only selects which patterns to process: each one is reloaded by id, so a
    stale or detached snapshot never rewinds the stored marker. At most
    ``max_occurrences`` (default ``settings.generation_cap``) expenses are
    created per pattern; a pattern that hits the cap is flagged and continues
    on the next run. ``should_stop`` is polled between patterns.

    Raises GenerationInProgressError if another run is in flight. Per-pattern
    failures never raise; they are recorded in the report.
    """
    if not _run_lock.acquire(blocking=False):
        raise GenerationInProgressError("A recurring expense generation run is already in progress")

    try:
        as_of_date = to_date(as_of_date)
        cap = max_occurrences if max_occurrences is not None else settings.generation_cap
        if cap < 1:
            raise ValueError("max_occurrences must be at least 1")

        if patterns is None:
            patterns = recurring_service.list_active_patterns(db)

        report = GenerationReport(as_of_date=as_of_date)

        # Ids are read before any commit expires the loaded instances
        pending = [pattern.id for pattern in patterns]

        for recurring_expense_id in pending:
            if should_stop is not None and should_stop():
                report.aborted = True
                logger.info("Generation stopped before recurring expense %s", recurring_expense_id)
                break

            report.outcomes.append(
                _generate_for_pattern(db, recurring_expense_id, as_of_date, cap)
            )

        _log_summary(report)
        return report
    finally:
        _run_lock.release()


def _generate_for_pattern(
    db: Session,
    recurring_expense_id: str,
    as_of_date: date,
    cap: int
) -> PatternOutcome:
    """Catch up one pattern inside its own transaction, starting from its stored marker."""
    outcome = PatternOutcome(recurring_expense_id=recurring_expense_id)

    generated = 0
    try:
        pattern = recurring_service.get_recurring_expense(db, recurring_expense_id)
        if pattern is None:
            raise RecurringExpenseNotFoundError(recurring_expense_id)
        if not pattern.is_active:
            outcome.skipped = True
            return outcome

        outcome.last_generated_date = pattern.last_generated_date
        snapshot_fields = {
            "amount": pattern.amount,
            "category": pattern.category,
            "note": pattern.note or "",
        }

        cursor = initial_cursor(pattern)
        while True:
            candidate = next_occurrence(pattern, cursor)
            if candidate is None or candidate > as_of_date:
                break
            if generated >= cap:
                outcome.capped = True
                break

            expense_service.create_expense(
                db,
                ExpenseSnapshot(date=candidate, **snapshot_fields),
                recurring_expense_id=recurring_expense_id,
                commit=False,
            )
            cursor = candidate
            generated += 1

        if generated:
            recurring_service.update_last_generated_date(
                db, recurring_expense_id, cursor, commit=False
            )
            db.commit()
            outcome.generated = generated
            outcome.last_generated_date = cursor
    except (SQLAlchemyError, RecurringEngineError, ValueError, OverflowError) as e:
        db.rollback()
        outcome.generated = 0
        outcome.capped = False
        outcome.error = e.user_message if isinstance(e, StorageError) else str(e)
        logger.error(
            "Failed to generate expenses for recurring expense %s: %s",
            outcome.recurring_expense_id, e
        )
        return outcome

    if outcome.capped:
        logger.warning(
            "Recurring expense %s reached the limit of %d occurrences in one run; "
            "remaining occurrences will be generated on the next run",
            outcome.recurring_expense_id, cap
        )
    return outcome


def _log_summary(report: GenerationReport) -> None:
    if report.total_generated > 0:
        logger.info(
            "Generated %d recurring expense instances as of %s",
            report.total_generated, report.as_of_date
        )
    if report.errors:
        logger.warning("%d recurring expenses failed to generate", len(report.errors))
