"""Normalizer converting fetched rows into typed schedule and event records."""
import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from dateutil.parser import isoparse

from availability.models import (
    CalendarEvent,
    DailyOccurrence,
    Mode,
    MonthlyOccurrence,
    Occurrence,
    Origin,
    RecurringSchedule,
    SingleOccurrence,
    WeeklyOccurrence,
)

logger = logging.getLogger(__name__)

ORG_SCHEDULE_NAME = 'Org schedule'
DEFAULT_EVENT_TITLE = 'Calendar event'


class RecordNormalizer:
    """Validates raw schedule and event rows, skipping the ones that cannot be used."""

    TIMESTAMP_FORMATS = [
        '%Y-%m-%d %H:%M:%S',
        '%Y-%m-%d %H:%M',
        '%Y-%m-%d',
    ]

    def __init__(self, mode: Mode = Mode.TEAM):
        """
        Initialize the normalizer.

        Args:
            mode: Grid mode; decides the fallback display name
        """
        self.mode = Mode(mode)

    @property
    def fallback_name(self) -> str:
        return 'You' if self.mode is Mode.PERSONAL else 'Unknown'

    def normalize_schedules(self, rows: List[Dict[str, Any]]) -> List[RecurringSchedule]:
        """
        Convert schedule rows into RecurringSchedule records.

        Args:
            rows: Schedule rows as returned by the data layer

        Returns:
            List of valid RecurringSchedule objects
        """
        schedules = []
        for row in rows:
            try:
                schedule = self._normalize_schedule(row)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to normalize schedule '{row.get('title')}': {e}")
                continue
            if schedule:
                schedules.append(schedule)

        logger.info(
            f"Normalized {len(schedules)} valid schedules out of {len(rows)} total rows"
        )
        return schedules

    def normalize_events(self, rows: List[Dict[str, Any]]) -> List[CalendarEvent]:
        """
        Convert calendar event rows into CalendarEvent records.

        Args:
            rows: Event rows as returned by the calendar events API

        Returns:
            List of valid CalendarEvent objects
        """
        events = []
        for row in rows:
            try:
                event = self._normalize_event(row)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to normalize event '{row.get('id')}': {e}")
                continue
            if event:
                events.append(event)

        logger.info(f"Normalized {len(events)} valid events out of {len(rows)} total rows")
        return events

    def _normalize_schedule(self, row: Dict[str, Any]) -> Optional[RecurringSchedule]:
        occurrence = self._parse_occurrence(row)
        if occurrence is None:
            logger.warning(
                f"Schedule '{row.get('title')}' has unusable occurrence "
                f"'{row.get('occurrence_type')}'"
            )
            return None

        end_date = row.get('end_date')
        return RecurringSchedule(
            owner_id=str(row['user_id']),
            title=row.get('title') or '',
            start_date=self.parse_date(row['start_date']),
            end_date=self.parse_date(end_date) if end_date else None,
            start_time=self.parse_time(row['start_time']),
            end_time=self.parse_time(row['end_time']),
            occurrence=occurrence,
            member_name=self._member_name(row),
            schedule_id=row.get('id'),
        )

    def _normalize_event(self, row: Dict[str, Any]) -> Optional[CalendarEvent]:
        start_at = self.parse_timestamp(row.get('start_at'))
        if start_at is None:
            logger.warning(
                f"Invalid start timestamp for event '{row.get('id')}': {row.get('start_at')}"
            )
            return None

        end_at = None
        if row.get('end_at'):
            end_at = self.parse_timestamp(row['end_at'])
            if end_at is None:
                logger.warning(
                    f"Invalid end timestamp for event '{row.get('id')}': {row['end_at']}"
                )
                return None

        origin = Origin.SCHEDULE if row.get('origin') == Origin.SCHEDULE.value else Origin.CALENDAR
        is_org = origin is Origin.SCHEDULE
        if is_org:
            member_name = ORG_SCHEDULE_NAME
        else:
            member_name = self._member_name(row)

        return CalendarEvent(
            event_id=str(row['id']),
            owner_id=str(row.get('user_id') or ''),
            title=row.get('title') or (ORG_SCHEDULE_NAME if is_org else DEFAULT_EVENT_TITLE),
            start_at=start_at,
            end_at=end_at,
            all_day=bool(row.get('all_day')),
            origin=origin,
            member_name=member_name,
        )

    def _parse_occurrence(self, row: Dict[str, Any]) -> Optional[Occurrence]:
        occurrence_type = row.get('occurrence_type')

        if occurrence_type == 'single':
            return SingleOccurrence()
        if occurrence_type == 'daily':
            return DailyOccurrence()
        if occurrence_type == 'weekly':
            days = row.get('day_of_week')
            if days is None:
                return None
            if isinstance(days, (list, tuple, set, frozenset)):
                weekdays = frozenset(int(d) for d in days)
            else:
                weekdays = frozenset([int(days)])
            if not weekdays:
                return None
            return WeeklyOccurrence(days=weekdays)
        if occurrence_type == 'monthly':
            day_of_month = row.get('day_of_month')
            if day_of_month is None:
                return None
            return MonthlyOccurrence(day_of_month=int(day_of_month))

        return None

    def _member_name(self, row: Dict[str, Any]) -> str:
        users = row.get('users') or {}
        return users.get('name') or users.get('email') or self.fallback_name

    @staticmethod
    def parse_date(value: Any) -> date:
        """Parse a YYYY-MM-DD date, ignoring any time component."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        return datetime.strptime(str(value).strip()[:10], '%Y-%m-%d').date()

    @staticmethod
    def parse_time(value: Any) -> time:
        """Parse HH:MM or HH:MM:SS. "24:00" is end of day and maps to time.max."""
        if isinstance(value, time):
            return value
        parts = str(value).strip().split(':')
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 and parts[1] else 0
        if hour == 24 and minute == 0:
            return time.max
        return time(hour, minute)

    def parse_timestamp(self, value: Any) -> Optional[datetime]:
        """
        Parse a timestamp as local wall-clock time.

        Args:
            value: ISO 8601 string (offsets are dropped) or datetime

        Returns:
            Naive datetime or None if parsing fails
        """
        if isinstance(value, datetime):
            return value.replace(tzinfo=None)
        if not isinstance(value, str) or not value.strip():
            return None

        text = value.strip()
        try:
            return isoparse(text).replace(tzinfo=None)
        except (ValueError, OverflowError):
            pass

        for fmt in self.TIMESTAMP_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue

        return None
