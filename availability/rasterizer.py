"""Rasterization of time intervals onto the hourly grid."""
import logging
from datetime import date, datetime, timedelta
from typing import Iterator, Set, Tuple

from availability.models import CalendarEvent, WeekWindow
from availability.week import date_key

logger = logging.getLogger(__name__)

Cell = Tuple[str, int]


def iter_days(first: date, last: date) -> Iterator[date]:
    """Yield each date from first to last inclusive."""
    day = first
    while day <= last:
        yield day
        day += timedelta(days=1)


def all_day_span(start: datetime, end: datetime) -> Tuple[date, date]:
    """
    Return the inclusive first and last day of an all-day event.

    An end at midnight of a later day is exclusive (seconds are ignored), so an event
    ending at 2026-01-07T00:00 occupies the 6th as its last day.
    """
    start_day = start.date()
    end_day = end.date()
    if end.hour == 0 and end.minute == 0 and end_day > start_day:
        end_day -= timedelta(days=1)
    return start_day, end_day


class SlotRasterizer:
    """Maps intervals to the set of (date_key, hour) cells they occupy."""

    def __init__(self, window: WeekWindow):
        self.window = window

    def day_hours(self, day: date, start_hour: int, end_hour: int) -> Set[Cell]:
        """
        Cells for the half-open hour range [start_hour, end_hour) on one day.

        Args:
            day: Calendar date
            start_hour: First occupied hour
            end_hour: Hour after the last occupied hour

        Returns:
            Cells clamped to the visible window; empty if nothing remains
        """
        if not self.window.contains_day(day):
            return set()

        start = max(start_hour, self.window.start_hour)
        end = min(end_hour, self.window.end_hour)
        key = date_key(day)
        return {
            (key, hour) for hour in range(start, end)
            if self.window.contains_hour(hour)
        }

    def event_cells(self, event: CalendarEvent) -> Set[Cell]:
        """Cells occupied by a calendar event, all-day or timed."""
        start = event.start_at
        end = event.effective_end
        if end < start:
            logger.debug(f"Event '{event.title}' ends before it starts; skipping")
            return set()

        if event.all_day:
            return self._all_day_cells(start, end)
        return self._timed_cells(start, end)

    def _all_day_cells(self, start: datetime, end: datetime) -> Set[Cell]:
        first, last = all_day_span(start, end)
        cells = set()
        for day in self._visible_days(first, last):
            cells |= self.day_hours(day, self.window.start_hour, self.window.end_hour)
        return cells

    def _timed_cells(self, start: datetime, end: datetime) -> Set[Cell]:
        first, last = start.date(), end.date()
        cells = set()
        for day in self._visible_days(first, last):
            start_hour = start.hour if day == first else 0
            if day == last:
                # A partial trailing hour occupies its whole cell
                end_hour = end.hour + (1 if end.minute > 0 else 0)
            else:
                end_hour = 24
            cells |= self.day_hours(day, start_hour, end_hour)
        return cells

    def _visible_days(self, first: date, last: date) -> Iterator[date]:
        lower = max(first, min(self.window.days))
        upper = min(last, max(self.window.days))
        for day in iter_days(lower, upper):
            if self.window.contains_day(day):
                yield day
