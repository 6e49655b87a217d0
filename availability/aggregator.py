"""Conflict aggregation over the visible week."""
import logging
from typing import Iterable, Optional

from availability.models import (
    CalendarEvent,
    Conflict,
    ConflictGrid,
    OrgWideSource,
    PersonalSource,
    RecurringSchedule,
    WeekWindow,
)
from availability.rasterizer import SlotRasterizer
from availability.recurrence import matching_days

logger = logging.getLogger(__name__)


class ConflictAggregator:
    """Folds schedules and calendar events into a shared conflict grid."""

    def __init__(self, window: WeekWindow):
        """
        Initialize the aggregator for one visible window.

        Args:
            window: Dates and hours the grid covers
        """
        self.window = window
        self.rasterizer = SlotRasterizer(window)

    def aggregate(
        self,
        schedules: Iterable[RecurringSchedule],
        events: Iterable[CalendarEvent],
        grid: Optional[ConflictGrid] = None
    ) -> ConflictGrid:
        """
        Populate a grid from recurring schedules, then calendar events.

        Args:
            schedules: Recurring schedules to expand over the window
            events: Calendar events already limited to the window
            grid: Existing grid to extend (a new one by default)

        Returns:
            ConflictGrid with at most one entry per identity per cell
        """
        if grid is None:
            grid = ConflictGrid()

        schedule_count = 0
        for schedule in schedules:
            self.add_schedule(grid, schedule)
            schedule_count += 1

        event_count = 0
        for event in events:
            self.add_event(grid, event)
            event_count += 1

        logger.debug(
            f"Aggregated {schedule_count} schedules and {event_count} events "
            f"into {len(grid)} occupied cells"
        )
        return grid

    def add_schedule(self, grid: ConflictGrid, schedule: RecurringSchedule) -> int:
        """Add one schedule's contributions; returns the number of new entries."""
        conflict = Conflict(
            source=PersonalSource(schedule.owner_id),
            display_name=schedule.member_name,
            title=schedule.title,
        )
        added = 0
        for day in matching_days(schedule, self.window.days):
            cells = self.rasterizer.day_hours(
                day, schedule.start_time.hour, schedule.end_hour
            )
            added += self._add_cells(grid, cells, conflict)
        return added

    def add_event(self, grid: ConflictGrid, event: CalendarEvent) -> int:
        """Add one calendar event's contributions; returns the number of new entries."""
        if event.is_org_wide:
            source = OrgWideSource(event.event_id)
        else:
            source = PersonalSource(event.owner_id)
        conflict = Conflict(source=source, display_name=event.member_name, title=event.title)
        return self._add_cells(grid, self.rasterizer.event_cells(event), conflict)

    @staticmethod
    def _add_cells(grid: ConflictGrid, cells, conflict: Conflict) -> int:
        added = 0
        for key, hour in cells:
            if grid.add(key, hour, conflict):
                added += 1
        return added


def aggregate(
    schedules: Iterable[RecurringSchedule],
    events: Iterable[CalendarEvent],
    window: WeekWindow
) -> ConflictGrid:
    """Build the conflict grid for a window in one call."""
    return ConflictAggregator(window).aggregate(schedules, events)
