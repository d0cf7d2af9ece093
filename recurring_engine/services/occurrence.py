"""
Occurrence date calculations for recurring expenses.

Every function here is pure. Nothing reads the clock: the reference date is
always an argument, and datetimes are reduced to their calendar date before
any comparison.

A pattern is anything exposing ``schedule``, ``start_date``, ``end_date``,
``last_generated_date`` and ``is_active``; both the ORM model and
``RecurringExpenseResponse`` qualify.
"""

import calendar
from datetime import MAXYEAR, date, datetime, timedelta
from typing import Any, Iterator, Optional, Union

from recurring_engine.schemas.recurring import (
    DailySchedule,
    WeeklySchedule,
    MonthlySchedule,
    YearlySchedule,
    Schedule,
)


DateLike = Union[date, datetime]


def to_date(value: DateLike) -> date:
    """Drop the time of day, if any."""
    if isinstance(value, datetime):
        return value.date()
    return value


def last_day_of_month(year: int, month: int) -> int:
    """Number of days in the month (handles Feb 28/29 and 30-day months)."""
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """Date for ``day`` in the given month, pulled back to the month's last day if needed."""
    return date(year, month, min(day, last_day_of_month(year, month)))


def sunday_weekday(value: date) -> int:
    """Weekday with 0 = Sunday ... 6 = Saturday."""
    return (value.weekday() + 1) % 7


def _aligned_on_or_after(schedule: Schedule, floor: date) -> Optional[date]:
    """Earliest date >= floor that matches the schedule."""
    if isinstance(schedule, DailySchedule):
        return floor

    if isinstance(schedule, WeeklySchedule):
        days_ahead = (schedule.day_of_week - sunday_weekday(floor)) % 7
        return floor + timedelta(days=days_ahead)

    if isinstance(schedule, MonthlySchedule):
        candidate = clamp_day(floor.year, floor.month, schedule.day_of_month)
        if candidate >= floor:
            return candidate
        if floor.month == 12:
            if floor.year == MAXYEAR:
                return None
            return clamp_day(floor.year + 1, 1, schedule.day_of_month)
        return clamp_day(floor.year, floor.month + 1, schedule.day_of_month)

    if isinstance(schedule, YearlySchedule):
        candidate = clamp_day(floor.year, schedule.month_of_year, schedule.day_of_month)
        if candidate >= floor:
            return candidate
        if floor.year == MAXYEAR:
            return None
        return clamp_day(floor.year + 1, schedule.month_of_year, schedule.day_of_month)

    raise ValueError(f"Unsupported schedule: {schedule!r}")


def _candidate(pattern: Any, after_date: date) -> Optional[date]:
    start_date = to_date(pattern.start_date)
    end_date = to_date(pattern.end_date) if pattern.end_date is not None else None

    if end_date is not None and end_date < start_date:
        return None
    if after_date >= date.max:
        return None

    floor = max(after_date + timedelta(days=1), start_date)
    candidate = _aligned_on_or_after(pattern.schedule, floor)

    if candidate is None or (end_date is not None and candidate > end_date):
        return None
    return candidate


def next_occurrence(pattern: Any, after_date: DateLike) -> Optional[date]:
    """
    First occurrence strictly after ``after_date``.

    Returns None when the pattern is inactive, when its end date precedes its
    start date, or when the next occurrence would fall after the end date.
    Monthly and yearly days that don't exist in the target month resolve to
    the month's last day.
    """
    if not pattern.is_active:
        return None
    return _candidate(pattern, to_date(after_date))


def initial_cursor(pattern: Any) -> date:
    """
    The date generation resumes after: the high-water mark, or the day before
    the start date when nothing was generated yet.
    """
    if pattern.last_generated_date is not None:
        return to_date(pattern.last_generated_date)
    return to_date(pattern.start_date) - timedelta(days=1)


def has_ended(pattern: Any, after_date: Optional[DateLike] = None) -> bool:
    """True when no occurrence remains after ``after_date`` (default: the pattern's cursor).

    Ignores ``is_active``: a paused pattern has not ended.
    """
    cursor = initial_cursor(pattern) if after_date is None else to_date(after_date)
    return _candidate(pattern, cursor) is None


def upcoming_occurrence(pattern: Any) -> Optional[date]:
    """
    Next date this pattern will materialize, for display.
    May be in the past when a catch-up run is pending.
    """
    return next_occurrence(pattern, initial_cursor(pattern))


def occurrences_between(
    pattern: Any,
    after_date: DateLike,
    until: DateLike,
    limit: Optional[int] = None,
) -> Iterator[date]:
    """Yield occurrences in (after_date, until], oldest first, at most ``limit`` of them."""
    cursor = to_date(after_date)
    until = to_date(until)
    count = 0
    while limit is None or count < limit:
        candidate = next_occurrence(pattern, cursor)
        if candidate is None or candidate > until:
            return
        yield candidate
        cursor = candidate
        count += 1
