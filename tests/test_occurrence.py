"""Tests for occurrence date calculations."""

import pytest
from datetime import date, datetime

from recurring_engine.schemas.recurring import (
    DailySchedule,
    WeeklySchedule,
    MonthlySchedule,
    YearlySchedule,
)
from recurring_engine.services.occurrence import (
    clamp_day,
    has_ended,
    initial_cursor,
    last_day_of_month,
    next_occurrence,
    occurrences_between,
    sunday_weekday,
    upcoming_occurrence,
)


class TestCalendarHelpers:
    """Test month length and weekday helpers."""

    @pytest.mark.parametrize("year,month,expected", [
        (2023, 2, 28),
        (2024, 2, 29),
        (1900, 2, 28),
        (2000, 2, 29),
        (2024, 4, 30),
        (2024, 12, 31),
    ])
    def test_last_day_of_month(self, year, month, expected):
        assert last_day_of_month(year, month) == expected

    def test_clamp_day_within_month(self):
        """Existing days are unchanged."""
        assert clamp_day(2024, 3, 15) == date(2024, 3, 15)

    def test_clamp_day_past_month_end(self):
        """Missing days resolve to the month's last day."""
        assert clamp_day(2024, 4, 31) == date(2024, 4, 30)
        assert clamp_day(2023, 2, 30) == date(2023, 2, 28)

    def test_sunday_weekday(self):
        """Weekdays count from Sunday = 0."""
        assert sunday_weekday(date(2024, 1, 7)) == 0  # Sunday
        assert sunday_weekday(date(2024, 1, 1)) == 1  # Monday
        assert sunday_weekday(date(2024, 1, 6)) == 6  # Saturday


class TestDaily:
    """Test daily occurrences."""

    def test_next_day(self, build_pattern):
        """Daily should add one day."""
        pattern = build_pattern(DailySchedule(), date(2024, 1, 1))
        assert next_occurrence(pattern, date(2024, 1, 15)) == date(2024, 1, 16)

    def test_respects_start_date(self, build_pattern):
        """Nothing before the start date."""
        pattern = build_pattern(DailySchedule(), date(2024, 3, 1))
        assert next_occurrence(pattern, date(2024, 1, 15)) == date(2024, 3, 1)

    def test_first_occurrence_is_start_date(self, build_pattern):
        """The initial cursor yields the start date itself."""
        pattern = build_pattern(DailySchedule(), date(2024, 3, 1))
        assert initial_cursor(pattern) == date(2024, 2, 29)
        assert next_occurrence(pattern, initial_cursor(pattern)) == date(2024, 3, 1)

    def test_ignores_time_of_day(self, build_pattern):
        """Datetimes are compared by calendar day."""
        pattern = build_pattern(DailySchedule(), date(2024, 1, 1))
        assert next_occurrence(pattern, datetime(2024, 1, 1, 23, 59)) == date(2024, 1, 2)

    def test_year_rollover(self, build_pattern):
        pattern = build_pattern(DailySchedule(), date(2024, 1, 1))
        assert next_occurrence(pattern, date(2024, 12, 31)) == date(2025, 1, 1)


class TestWeekly:
    """Test weekly occurrences."""

    def test_aligns_to_day_of_week(self, build_pattern):
        """Monday start should move forward to Wednesday."""
        pattern = build_pattern(WeeklySchedule(day_of_week=3), date(2024, 1, 1))
        assert next_occurrence(pattern, initial_cursor(pattern)) == date(2024, 1, 3)

    def test_start_on_matching_day(self, build_pattern):
        """A start date on the right weekday is itself an occurrence."""
        pattern = build_pattern(WeeklySchedule(day_of_week=3), date(2024, 1, 3))
        assert next_occurrence(pattern, initial_cursor(pattern)) == date(2024, 1, 3)

    def test_after_occurrence_is_one_week_later(self, build_pattern):
        pattern = build_pattern(WeeklySchedule(day_of_week=3), date(2024, 1, 1))
        assert next_occurrence(pattern, date(2024, 1, 3)) == date(2024, 1, 10)

    def test_sunday(self, build_pattern):
        """Day 0 is Sunday."""
        pattern = build_pattern(WeeklySchedule(day_of_week=0), date(2024, 1, 1))
        assert next_occurrence(pattern, date(2024, 1, 1)) == date(2024, 1, 7)

    def test_every_occurrence_on_wednesday(self, build_pattern):
        """Weekday alignment holds across months."""
        pattern = build_pattern(WeeklySchedule(day_of_week=3), date(2024, 1, 1))
        dates = list(occurrences_between(pattern, initial_cursor(pattern), date(2024, 6, 30)))
        assert len(dates) == 26
        assert all(d.weekday() == 2 for d in dates)


class TestMonthly:
    """Test monthly occurrences and month-end clamping."""

    def test_normal(self, build_pattern):
        pattern = build_pattern(MonthlySchedule(day_of_month=15), date(2024, 1, 15))
        assert next_occurrence(pattern, date(2024, 1, 15)) == date(2024, 2, 15)

    def test_year_rollover(self, build_pattern):
        """December should roll to January."""
        pattern = build_pattern(MonthlySchedule(day_of_month=15), date(2024, 1, 15))
        assert next_occurrence(pattern, date(2024, 12, 15)) == date(2025, 1, 15)

    def test_start_after_day_in_month(self, build_pattern):
        """Starting past the day waits for the next month."""
        pattern = build_pattern(MonthlySchedule(day_of_month=15), date(2024, 1, 20))
        assert next_occurrence(pattern, initial_cursor(pattern)) == date(2024, 2, 15)

    def test_start_before_day_in_month(self, build_pattern):
        """Starting before the day uses the start month."""
        pattern = build_pattern(MonthlySchedule(day_of_month=15), date(2024, 1, 5))
        assert next_occurrence(pattern, initial_cursor(pattern)) == date(2024, 1, 15)

    def test_unaligned_cursor_uses_same_month(self, build_pattern):
        """A cursor before the day (e.g. after resuming) still gets that month's occurrence."""
        pattern = build_pattern(MonthlySchedule(day_of_month=15), date(2024, 1, 15))
        assert next_occurrence(pattern, date(2024, 3, 10)) == date(2024, 3, 15)

    def test_clamps_to_leap_february(self, build_pattern):
        """Day 31 in a leap February resolves to the 29th."""
        pattern = build_pattern(MonthlySchedule(day_of_month=31), date(2024, 1, 31))
        assert next_occurrence(pattern, date(2024, 1, 31)) == date(2024, 2, 29)

    def test_clamps_to_common_february(self, build_pattern):
        pattern = build_pattern(MonthlySchedule(day_of_month=30), date(2023, 1, 30))
        assert next_occurrence(pattern, date(2023, 1, 30)) == date(2023, 2, 28)

    def test_clamp_does_not_drift(self, build_pattern):
        """After a clamped month the nominal day comes back."""
        pattern = build_pattern(MonthlySchedule(day_of_month=31), date(2024, 1, 31))
        dates = list(occurrences_between(pattern, initial_cursor(pattern), date(2024, 5, 31)))
        assert dates == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
            date(2024, 4, 30),
            date(2024, 5, 31),
        ]


class TestYearly:
    """Test yearly occurrences and leap-day clamping."""

    def test_normal(self, build_pattern):
        pattern = build_pattern(YearlySchedule(month_of_year=3, day_of_month=10), date(2024, 3, 10))
        assert next_occurrence(pattern, date(2024, 3, 10)) == date(2025, 3, 10)

    def test_start_after_date_in_year(self, build_pattern):
        """Starting after this year's date waits until next year."""
        pattern = build_pattern(YearlySchedule(month_of_year=3, day_of_month=10), date(2024, 5, 1))
        assert next_occurrence(pattern, initial_cursor(pattern)) == date(2025, 3, 10)

    def test_leap_day_in_common_year(self, build_pattern):
        """Feb 29 resolves to Feb 28 in non-leap years."""
        pattern = build_pattern(YearlySchedule(month_of_year=2, day_of_month=29), date(2020, 2, 29))
        assert next_occurrence(pattern, date(2020, 2, 29)) == date(2021, 2, 28)

    def test_leap_day_sequence(self, build_pattern):
        """Feb 29 comes back in the next leap year."""
        pattern = build_pattern(YearlySchedule(month_of_year=2, day_of_month=29), date(2020, 2, 29))
        dates = list(occurrences_between(pattern, initial_cursor(pattern), date(2024, 12, 31)))
        assert dates == [
            date(2020, 2, 29),
            date(2021, 2, 28),
            date(2022, 2, 28),
            date(2023, 2, 28),
            date(2024, 2, 29),
        ]


class TestBounds:
    """Test end dates, inactive and pathological patterns."""

    def test_end_date_inclusive(self, build_pattern):
        pattern = build_pattern(DailySchedule(), date(2024, 1, 1), end_date=date(2024, 1, 5))
        assert next_occurrence(pattern, date(2024, 1, 4)) == date(2024, 1, 5)
        assert next_occurrence(pattern, date(2024, 1, 5)) is None

    def test_end_date_between_occurrences(self, build_pattern):
        """An end date that cuts off the next aligned date ends the pattern."""
        pattern = build_pattern(
            MonthlySchedule(day_of_month=15), date(2024, 1, 15), end_date=date(2024, 3, 1)
        )
        assert next_occurrence(pattern, date(2024, 2, 15)) is None

    def test_inactive_returns_none(self, build_pattern):
        pattern = build_pattern(DailySchedule(), date(2024, 1, 1), is_active=False)
        assert next_occurrence(pattern, date(2024, 1, 1)) is None

    def test_end_before_start_returns_none(self, build_pattern):
        """A pattern ending before it starts produces nothing."""
        pattern = build_pattern(DailySchedule(), date(2024, 2, 1), end_date=date(2024, 1, 1))
        assert next_occurrence(pattern, initial_cursor(pattern)) is None
        assert has_ended(pattern)

    def test_max_date(self, build_pattern):
        pattern = build_pattern(DailySchedule(), date(2024, 1, 1))
        assert next_occurrence(pattern, date.max) is None

    def test_deterministic(self, build_pattern):
        """Same input, same output."""
        pattern = build_pattern(MonthlySchedule(day_of_month=31), date(2024, 1, 31))
        first = next_occurrence(pattern, date(2024, 3, 31))
        second = next_occurrence(pattern, date(2024, 3, 31))
        assert first == second == date(2024, 4, 30)


class TestHasEnded:
    """Test end-of-pattern detection."""

    def test_not_ended(self, build_pattern):
        pattern = build_pattern(
            DailySchedule(), date(2024, 1, 1),
            end_date=date(2024, 1, 5), last_generated_date=date(2024, 1, 4)
        )
        assert has_ended(pattern) is False

    def test_ended_after_last_occurrence(self, build_pattern):
        pattern = build_pattern(
            DailySchedule(), date(2024, 1, 1),
            end_date=date(2024, 1, 5), last_generated_date=date(2024, 1, 5)
        )
        assert has_ended(pattern) is True

    def test_explicit_after_date(self, build_pattern):
        pattern = build_pattern(DailySchedule(), date(2024, 1, 1), end_date=date(2024, 1, 5))
        assert has_ended(pattern, date(2024, 1, 2)) is False
        assert has_ended(pattern, date(2024, 1, 5)) is True

    def test_paused_pattern_has_not_ended(self, build_pattern):
        pattern = build_pattern(DailySchedule(), date(2024, 1, 1), is_active=False)
        assert has_ended(pattern) is False

    def test_open_ended(self, build_pattern):
        pattern = build_pattern(WeeklySchedule(day_of_week=5), date(2024, 1, 1))
        assert has_ended(pattern, date(2090, 1, 1)) is False


class TestUpcomingOccurrence:
    """Test the display helper."""

    def test_future_start(self, build_pattern):
        """Before the start date the first aligned date is shown."""
        pattern = build_pattern(WeeklySchedule(day_of_week=5), date(2030, 1, 1))
        # 2030-01-01 is a Tuesday, the first Friday is the 4th
        assert upcoming_occurrence(pattern) == date(2030, 1, 4)

    def test_after_marker(self, build_pattern):
        pattern = build_pattern(
            MonthlySchedule(day_of_month=1), date(2024, 1, 1), last_generated_date=date(2024, 5, 1)
        )
        assert upcoming_occurrence(pattern) == date(2024, 6, 1)

    def test_ended(self, build_pattern):
        pattern = build_pattern(
            DailySchedule(), date(2024, 1, 1),
            end_date=date(2024, 1, 2), last_generated_date=date(2024, 1, 2)
        )
        assert upcoming_occurrence(pattern) is None


class TestOccurrencesBetween:
    """Test occurrence iteration."""

    def test_limit(self, build_pattern):
        pattern = build_pattern(DailySchedule(), date(2024, 1, 1))
        dates = list(occurrences_between(pattern, date(2023, 12, 31), date(2024, 12, 31), limit=3))
        assert dates == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]

    def test_until_inclusive(self, build_pattern):
        pattern = build_pattern(WeeklySchedule(day_of_week=3), date(2024, 1, 1))
        dates = list(occurrences_between(pattern, date(2023, 12, 31), date(2024, 1, 10)))
        assert dates == [date(2024, 1, 3), date(2024, 1, 10)]

    def test_empty_range(self, build_pattern):
        pattern = build_pattern(DailySchedule(), date(2024, 1, 1))
        assert list(occurrences_between(pattern, date(2024, 1, 5), date(2024, 1, 5))) == []
