"""Recurrence expansion for academic schedules."""
from datetime import date, datetime
from typing import Iterable, List

from availability.models import (
    DailyOccurrence,
    MonthlyOccurrence,
    RecurringSchedule,
    SingleOccurrence,
    WeeklyOccurrence,
)
from availability.week import weekday_index


def _day_only(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def in_range(schedule: RecurringSchedule, candidate: date) -> bool:
    """Check the candidate against the schedule's inclusive date bounds."""
    day = _day_only(candidate)
    if day < _day_only(schedule.start_date):
        return False
    if schedule.end_date is not None and day > _day_only(schedule.end_date):
        return False
    return True


def applies_on(schedule: RecurringSchedule, candidate: date) -> bool:
    """
    Decide whether a schedule occupies the candidate date.

    Args:
        schedule: Recurring schedule to test
        candidate: A date (or datetime, whose time is ignored)

    Returns:
        True if the schedule's pattern covers the date
    """
    day = _day_only(candidate)
    occurrence = schedule.occurrence

    if isinstance(occurrence, SingleOccurrence):
        # end_date is irrelevant for one-off entries
        return day == _day_only(schedule.start_date)

    if not in_range(schedule, day):
        return False

    if isinstance(occurrence, DailyOccurrence):
        return True
    if isinstance(occurrence, WeeklyOccurrence):
        return weekday_index(day) in occurrence.days
    if isinstance(occurrence, MonthlyOccurrence):
        return day.day == occurrence.day_of_month

    return False


def matching_days(schedule: RecurringSchedule, days: Iterable[date]) -> List[date]:
    """Return the subset of days the schedule applies on, in input order."""
    return [day for day in days if applies_on(schedule, day)]
