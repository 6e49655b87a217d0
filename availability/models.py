"""Data models for availability computation."""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, Union


class Mode(str, Enum):
    """Grid mode: one person's calendar or the whole organization."""
    PERSONAL = 'personal'
    TEAM = 'team'


class Origin(str, Enum):
    """Where a calendar event came from."""
    CALENDAR = 'calendar'
    SCHEDULE = 'schedule'  # organization-wide


@dataclass(frozen=True)
class SingleOccurrence:
    """Applies on the schedule's start date only."""


@dataclass(frozen=True)
class DailyOccurrence:
    """Applies on every date in the schedule's range."""


@dataclass(frozen=True)
class WeeklyOccurrence:
    """Applies on the listed weekdays (0=Sunday..6=Saturday)."""
    days: FrozenSet[int]

    def __post_init__(self):
        if not self.days:
            raise ValueError("weekly occurrence needs at least one weekday")


@dataclass(frozen=True)
class MonthlyOccurrence:
    """Applies on one day of the month."""
    day_of_month: int


Occurrence = Union[SingleOccurrence, DailyOccurrence, WeeklyOccurrence, MonthlyOccurrence]


@dataclass
class RecurringSchedule:
    """A named time commitment that repeats according to an occurrence pattern."""
    owner_id: str
    title: str
    start_date: date
    end_date: Optional[date]
    start_time: time
    end_time: time
    occurrence: Occurrence
    member_name: str = 'Unknown'
    schedule_id: Optional[str] = None

    @property
    def end_hour(self) -> int:
        """Hour after the last occupied hour; an end of time.max (24:00) is 24."""
        if self.end_time == time.max:
            return 24
        return self.end_time.hour


@dataclass
class CalendarEvent:
    """A concrete event instance with wall-clock timestamps."""
    event_id: str
    owner_id: str
    title: str
    start_at: datetime
    end_at: Optional[datetime] = None
    all_day: bool = False
    origin: Origin = Origin.CALENDAR
    member_name: str = 'Unknown'

    @property
    def is_org_wide(self) -> bool:
        return self.origin is Origin.SCHEDULE

    @property
    def effective_end(self) -> datetime:
        """End timestamp, defaulting to one hour after the start."""
        if self.end_at is None:
            return self.start_at + timedelta(hours=1)
        return self.end_at


@dataclass(frozen=True)
class PersonalSource:
    """Conflict contributed by one member."""
    owner_id: str


@dataclass(frozen=True)
class OrgWideSource:
    """Conflict contributed by an organization-wide event; occupies everyone."""
    event_id: str


ConflictSource = Union[PersonalSource, OrgWideSource]


@dataclass(frozen=True)
class Conflict:
    """One identity occupying a grid cell."""
    source: ConflictSource
    display_name: str
    title: str

    @property
    def is_org_wide(self) -> bool:
        return isinstance(self.source, OrgWideSource)


CellKey = Tuple[str, int]


class ConflictGrid:
    """Conflicts per (date_key, hour), at most one entry per source in a cell."""

    def __init__(self):
        self._cells: Dict[CellKey, List[Conflict]] = {}

    def add(self, date_key: str, hour: int, conflict: Conflict) -> bool:
        """
        Record a conflict unless the cell already holds one from the same source.

        Returns:
            True if the conflict was appended, False if it was a duplicate
        """
        entries = self._cells.setdefault((date_key, hour), [])
        if any(existing.source == conflict.source for existing in entries):
            return False
        entries.append(conflict)
        return True

    def conflicts_at(self, date_key: str, hour: int) -> List[Conflict]:
        return list(self._cells.get((date_key, hour), []))

    def cells(self) -> Dict[CellKey, List[Conflict]]:
        return {key: list(entries) for key, entries in self._cells.items()}

    def identities(self) -> Dict[CellKey, FrozenSet[ConflictSource]]:
        """Order-free view of the grid: the set of sources in each cell."""
        return {
            key: frozenset(conflict.source for conflict in entries)
            for key, entries in self._cells.items()
        }

    def __len__(self) -> int:
        return len(self._cells)


@dataclass(frozen=True)
class WeekWindow:
    """The visible rectangle: seven dates by an hour range."""
    days: Tuple[date, ...]
    hours: range
    today: Optional[date] = None

    @property
    def start_hour(self) -> int:
        return self.hours.start

    @property
    def end_hour(self) -> int:
        return self.hours.stop

    @property
    def range_start(self) -> datetime:
        return datetime.combine(self.days[0], time.min)

    @property
    def range_end(self) -> datetime:
        return datetime.combine(self.days[-1], time.max)

    def contains_day(self, day: date) -> bool:
        return day in self.days

    def contains_hour(self, hour: int) -> bool:
        return hour in self.hours

    def is_today(self, day: date) -> bool:
        return self.today is not None and day == self.today


@dataclass
class PersonalSummary:
    """Free and busy cell counts for one person."""
    free_hours: int
    busy_hours: int


@dataclass
class TeamSummary:
    """Availability statistics across an organization."""
    avg_availability: int
    best_time: str
    team_size: int


class AvailabilityLevel(str, Enum):
    """Display bucket for a cell's availability ratio."""
    FREE = 'free'
    BUSY = 'busy'
    ALL = 'all'
    MOST = 'most'
    HALF = 'half'
    FEW = 'few'
    NONE = 'none'
    UNKNOWN = 'unknown'


@dataclass
class CellAvailability:
    """Availability of one grid cell."""
    available: int
    total: int
    ratio: float
    level: AvailabilityLevel


@dataclass
class EventBlock:
    """A minute-precision block on one day of the grid."""
    block_id: str
    start_minute: int
    end_minute: int
    title: str
    member_name: str
    user_id: str
    is_org: bool
    origin: str


@dataclass
class PositionedBlock:
    """An event block placed in a side-by-side column."""
    block: EventBlock
    column: int
    total_columns: int
