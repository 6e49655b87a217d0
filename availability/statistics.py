"""Summary statistics and per-cell availability."""
from typing import List, Union

from availability.models import (
    AvailabilityLevel,
    CellAvailability,
    Conflict,
    ConflictGrid,
    Mode,
    PersonalSummary,
    TeamSummary,
    WeekWindow,
)
from availability.week import date_key, slot_label

NO_BEST_TIME = '—'


def effective_busy_count(conflicts: List[Conflict], member_count: int) -> int:
    """Busy members in a cell; an org-wide entry occupies everyone."""
    if any(conflict.is_org_wide for conflict in conflicts):
        return member_count
    return len(conflicts)


def availability_level(ratio: float, total: int, mode: Mode) -> AvailabilityLevel:
    """Bucket a ratio the way the grid colors cells."""
    if total == 0:
        return AvailabilityLevel.UNKNOWN
    if Mode(mode) is Mode.PERSONAL:
        return AvailabilityLevel.FREE if ratio >= 1 else AvailabilityLevel.BUSY
    if ratio >= 1:
        return AvailabilityLevel.ALL
    if ratio >= 0.75:
        return AvailabilityLevel.MOST
    if ratio >= 0.5:
        return AvailabilityLevel.HALF
    if ratio >= 0.25:
        return AvailabilityLevel.FEW
    return AvailabilityLevel.NONE


def cell_availability(
    grid: ConflictGrid,
    key: str,
    hour: int,
    member_count: int,
    mode: Mode = Mode.TEAM
) -> CellAvailability:
    """
    Compute availability for one cell.

    Args:
        grid: Populated conflict grid
        key: Date key (YYYY-MM-DD)
        hour: Grid hour
        member_count: Organization size (1 in personal mode)
        mode: Determines the level buckets

    Returns:
        CellAvailability with available count, ratio and display level
    """
    conflicts = grid.conflicts_at(key, hour)
    busy = effective_busy_count(conflicts, member_count)
    available = max(member_count - busy, 0)
    ratio = available / member_count if member_count > 0 else 0.0
    return CellAvailability(
        available=available,
        total=member_count,
        ratio=ratio,
        level=availability_level(ratio, member_count, mode),
    )


def summarize(
    grid: ConflictGrid,
    window: WeekWindow,
    mode: Mode,
    member_count: int
) -> Union[PersonalSummary, TeamSummary]:
    """
    Fold the visible window into summary statistics.

    Personal mode counts free and busy cells. Team mode averages the
    per-cell availability ratio and reports the first cell (day-major,
    hour-minor) with the highest ratio.

    Args:
        grid: Populated conflict grid
        window: Visible dates and hours
        mode: Personal or team
        member_count: Organization size (ignored in personal mode)

    Returns:
        PersonalSummary or TeamSummary
    """
    if Mode(mode) is Mode.PERSONAL:
        return _personal_summary(grid, window)
    return _team_summary(grid, window, member_count)


def _personal_summary(grid: ConflictGrid, window: WeekWindow) -> PersonalSummary:
    free = busy = 0
    for day in window.days:
        key = date_key(day)
        for hour in window.hours:
            if grid.conflicts_at(key, hour):
                busy += 1
            else:
                free += 1
    return PersonalSummary(free_hours=free, busy_hours=busy)


def _team_summary(grid: ConflictGrid, window: WeekWindow, member_count: int) -> TeamSummary:
    ratios = []
    best_ratio = 0.0
    best_time = NO_BEST_TIME

    for day in window.days:
        key = date_key(day)
        for hour in window.hours:
            ratio = cell_availability(grid, key, hour, member_count).ratio
            ratios.append(ratio)
            if ratio > best_ratio:
                best_ratio = ratio
                best_time = slot_label(day, hour)

    average = sum(ratios) / len(ratios) if ratios else 0.0
    return TeamSummary(
        avg_availability=int(average * 100 + 0.5),
        best_time=best_time,
        team_size=member_count,
    )
