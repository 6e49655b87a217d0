"""Unit tests for recurrence expansion."""
from datetime import date, datetime, time, timedelta

import pytest

from availability.models import (
    DailyOccurrence,
    MonthlyOccurrence,
    RecurringSchedule,
    SingleOccurrence,
    WeeklyOccurrence,
)
from availability.recurrence import applies_on, in_range, matching_days

# Sunday Jan 4 2026 through Saturday Jan 10 2026
WEEK = [date(2026, 1, 4) + timedelta(days=i) for i in range(7)]


def make_schedule(occurrence, start_date=date(2026, 1, 1), end_date=date(2026, 6, 1)):
    return RecurringSchedule(
        owner_id='u1',
        title='Math 101',
        start_date=start_date,
        end_date=end_date,
        start_time=time(9, 0),
        end_time=time(11, 0),
        occurrence=occurrence,
    )


class TestAppliesOn:
    """Test cases for applies_on."""

    def test_single_applies_on_start_date_only(self):
        """A single occurrence covers exactly its start date."""
        schedule = make_schedule(SingleOccurrence(), start_date=date(2026, 1, 7), end_date=None)

        assert matching_days(schedule, WEEK) == [date(2026, 1, 7)]

    def test_single_ignores_end_date(self):
        """A single occurrence applies even when end_date precedes start_date."""
        schedule = make_schedule(
            SingleOccurrence(),
            start_date=date(2026, 1, 7),
            end_date=date(2026, 1, 1)
        )

        assert applies_on(schedule, date(2026, 1, 7))

    def test_daily_within_range(self):
        """Daily schedules cover every date between the bounds inclusive."""
        schedule = make_schedule(
            DailyOccurrence(),
            start_date=date(2026, 1, 6),
            end_date=date(2026, 1, 8)
        )

        assert matching_days(schedule, WEEK) == [
            date(2026, 1, 6), date(2026, 1, 7), date(2026, 1, 8)
        ]

    def test_daily_open_ended(self):
        """A missing end_date never cuts the range."""
        schedule = make_schedule(DailyOccurrence(), start_date=date(2025, 9, 1), end_date=None)

        assert matching_days(schedule, WEEK) == WEEK

    def test_weekly_multiple_days(self):
        """Weekly schedules match each listed weekday."""
        schedule = make_schedule(WeeklyOccurrence(days=frozenset({1, 3})))

        assert matching_days(schedule, WEEK) == [date(2026, 1, 5), date(2026, 1, 7)]

    def test_weekly_sunday_and_saturday(self):
        """Weekday indices run from 0=Sunday to 6=Saturday."""
        schedule = make_schedule(WeeklyOccurrence(days=frozenset({0, 6})))

        assert matching_days(schedule, WEEK) == [date(2026, 1, 4), date(2026, 1, 10)]

    def test_weekly_before_start_date(self):
        """Matching weekdays before start_date do not apply."""
        schedule = make_schedule(
            WeeklyOccurrence(days=frozenset({1, 3})),
            start_date=date(2026, 1, 6)
        )

        assert matching_days(schedule, WEEK) == [date(2026, 1, 7)]

    def test_weekly_after_end_date(self):
        """Matching weekdays after end_date do not apply."""
        schedule = make_schedule(
            WeeklyOccurrence(days=frozenset({1, 3})),
            end_date=date(2026, 1, 6)
        )

        assert matching_days(schedule, WEEK) == [date(2026, 1, 5)]

    def test_monthly_day_of_month(self):
        """Monthly schedules match their day of the month."""
        schedule = make_schedule(MonthlyOccurrence(day_of_month=5))

        assert matching_days(schedule, WEEK) == [date(2026, 1, 5)]

    def test_monthly_day_not_in_week(self):
        """A day of month outside the week produces nothing."""
        schedule = make_schedule(MonthlyOccurrence(day_of_month=31))

        assert matching_days(schedule, WEEK) == []

    def test_unknown_occurrence_fails_closed(self):
        """Anything other than the four known patterns never applies."""
        schedule = make_schedule(object())

        assert matching_days(schedule, WEEK) == []

    def test_datetime_candidate_ignores_time(self):
        """Time-of-day noise on the candidate does not shift the comparison."""
        schedule = make_schedule(
            DailyOccurrence(),
            start_date=date(2026, 1, 5),
            end_date=date(2026, 1, 5)
        )

        assert applies_on(schedule, datetime(2026, 1, 5, 23, 59))
        assert not applies_on(schedule, datetime(2026, 1, 6, 0, 1))


class TestInRange:
    """Test cases for date range checks."""

    @pytest.mark.parametrize('candidate,expected', [
        (date(2025, 12, 31), False),
        (date(2026, 1, 1), True),
        (date(2026, 6, 1), True),
        (date(2026, 6, 2), False),
    ])
    def test_inclusive_bounds(self, candidate, expected):
        """Both bounds are inclusive."""
        schedule = make_schedule(DailyOccurrence())

        assert in_range(schedule, candidate) is expected


def test_weekly_occurrence_requires_days():
    """An empty weekday set cannot be constructed."""
    with pytest.raises(ValueError):
        WeeklyOccurrence(days=frozenset())
