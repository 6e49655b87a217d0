"""Week window construction and display labels."""
from datetime import date, datetime, timedelta

from availability.models import WeekWindow

DAY_NAMES = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']
DEFAULT_START_HOUR = 6
DEFAULT_END_HOUR = 22  # exclusive; the last row is 9pm-10pm


def weekday_index(day: date) -> int:
    """Day of week with Sunday as 0."""
    return (day.weekday() + 1) % 7


def week_start(day: date) -> date:
    """Return the Sunday on or before the given date."""
    return day - timedelta(days=weekday_index(day))


def build_week(
    today: date,
    week_offset: int = 0,
    start_hour: int = DEFAULT_START_HOUR,
    end_hour: int = DEFAULT_END_HOUR
) -> WeekWindow:
    """
    Build the visible window for the week containing today, shifted by whole weeks.

    Args:
        today: Reference date supplied by the caller
        week_offset: Number of weeks before (negative) or after (positive)
        start_hour: First visible hour
        end_hour: Hour after the last visible row

    Returns:
        WeekWindow covering Sunday through Saturday
    """
    if isinstance(today, datetime):
        today = today.date()
    first = week_start(today) + timedelta(weeks=week_offset)
    days = tuple(first + timedelta(days=i) for i in range(7))
    return WeekWindow(days=days, hours=range(start_hour, end_hour), today=today)


def week_label(window: WeekWindow) -> str:
    """Format e.g. "Jan 19 - 25, 2026" or "Jan 26 - Feb 1, 2026"."""
    first, last = window.days[0], window.days[-1]
    if first.month == last.month:
        return f"{first:%b} {first.day} - {last.day}, {last.year}"
    return f"{first:%b} {first.day} - {last:%b} {last.day}, {last.year}"


def date_key(day: date) -> str:
    return day.strftime('%Y-%m-%d')


def parse_date_key(key: str) -> date:
    return datetime.strptime(key, '%Y-%m-%d').date()


def hour_label(hour: int) -> str:
    """Compact row label: 9a, 12p."""
    return f"{hour % 12 or 12}{'a' if hour < 12 else 'p'}"


def slot_label(day: date, hour: int) -> str:
    """Human label for a grid cell, e.g. "Mon 9:00 AM"."""
    suffix = 'AM' if hour < 12 else 'PM'
    return f"{DAY_NAMES[weekday_index(day)]} {hour % 12 or 12}:00 {suffix}"
