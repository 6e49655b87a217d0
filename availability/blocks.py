"""Minute-precision event blocks and side-by-side overlap layout."""
from datetime import time
from typing import Dict, Iterable, List

from availability.models import (
    CalendarEvent,
    EventBlock,
    PositionedBlock,
    RecurringSchedule,
    WeekWindow,
)
from availability.rasterizer import all_day_span, iter_days
from availability.recurrence import matching_days
from availability.week import date_key

MINUTES_PER_DAY = 24 * 60


def _minute_of_day(value) -> int:
    if value == time.max:
        return MINUTES_PER_DAY
    return value.hour * 60 + value.minute


class BlockBuilder:
    """Collects clamped blocks per date key for one window."""

    def __init__(self, window: WeekWindow):
        self.window = window
        self.first_minute = window.start_hour * 60
        self.last_minute = window.end_hour * 60
        self.blocks: Dict[str, List[EventBlock]] = {}

    def add(self, key: str, block: EventBlock) -> None:
        block.start_minute = max(block.start_minute, self.first_minute)
        block.end_minute = min(block.end_minute, self.last_minute)
        if block.start_minute >= block.end_minute:
            return
        self.blocks.setdefault(key, []).append(block)

    def add_schedule(self, schedule: RecurringSchedule) -> None:
        for day in matching_days(schedule, self.window.days):
            key = date_key(day)
            self.add(key, EventBlock(
                block_id=f"sched-{schedule.schedule_id or schedule.owner_id}-{key}",
                start_minute=_minute_of_day(schedule.start_time),
                end_minute=_minute_of_day(schedule.end_time),
                title=schedule.title,
                member_name=schedule.member_name,
                user_id=schedule.owner_id,
                is_org=False,
                origin='academic',
            ))

    def add_event(self, event: CalendarEvent) -> None:
        start, end = event.start_at, event.effective_end
        if end < start:
            return

        if event.all_day:
            first, last = all_day_span(start, end)
        else:
            first, last = start.date(), end.date()

        for day in iter_days(first, last):
            if not self.window.contains_day(day):
                continue
            if event.all_day:
                start_minute, end_minute = self.first_minute, self.last_minute
            else:
                start_minute = _minute_of_day(start) if day == first else 0
                end_minute = _minute_of_day(end) if day == last else MINUTES_PER_DAY
            key = date_key(day)
            self.add(key, EventBlock(
                block_id=f"cal-{event.event_id}-{key}",
                start_minute=start_minute,
                end_minute=end_minute,
                title=event.title,
                member_name=event.member_name,
                user_id=f"org:{event.event_id}" if event.is_org_wide else event.owner_id,
                is_org=event.is_org_wide,
                origin=event.origin.value,
            ))


def compute_event_blocks(
    schedules: Iterable[RecurringSchedule],
    events: Iterable[CalendarEvent],
    window: WeekWindow
) -> Dict[str, List[EventBlock]]:
    """
    Compute event blocks for each visible day.

    Args:
        schedules: Recurring schedules
        events: Calendar events
        window: Visible dates and hours; blocks are clamped to its hours

    Returns:
        Mapping of date key to the blocks on that day
    """
    builder = BlockBuilder(window)
    for schedule in schedules:
        builder.add_schedule(schedule)
    for event in events:
        builder.add_event(event)
    return builder.blocks


def resolve_overlaps(blocks: List[EventBlock]) -> List[PositionedBlock]:
    """
    Place overlapping blocks in side-by-side columns.

    Blocks are sorted by start (longer first on ties) and split into groups
    of transitively overlapping blocks. Within a group each block takes the
    first column whose last block has already ended.
    """
    if not blocks:
        return []

    ordered = sorted(
        blocks,
        key=lambda b: (b.start_minute, -(b.end_minute - b.start_minute))
    )

    groups: List[List[EventBlock]] = []
    current: List[EventBlock] = []
    group_end = -1
    for block in ordered:
        if not current or block.start_minute < group_end:
            current.append(block)
            group_end = max(group_end, block.end_minute)
        else:
            groups.append(current)
            current = [block]
            group_end = block.end_minute
    groups.append(current)

    positioned = []
    for group in groups:
        columns: List[List[EventBlock]] = []
        for block in group:
            for column in columns:
                if column[-1].end_minute <= block.start_minute:
                    column.append(block)
                    break
            else:
                columns.append([block])

        for index, column in enumerate(columns):
            for block in column:
                positioned.append(PositionedBlock(
                    block=block, column=index, total_columns=len(columns)
                ))
    return positioned
