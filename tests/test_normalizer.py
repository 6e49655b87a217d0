"""Unit tests for RecordNormalizer."""
from datetime import date, datetime, time

import pytest

from availability.models import (
    DailyOccurrence,
    Mode,
    MonthlyOccurrence,
    Origin,
    SingleOccurrence,
    WeeklyOccurrence,
)
from availability.normalizer import RecordNormalizer


@pytest.fixture
def schedule_row():
    return {
        'id': 's1',
        'user_id': 'u1',
        'title': 'Math 101',
        'start_date': '2026-01-01',
        'end_date': '2026-06-01',
        'start_time': '09:00',
        'end_time': '10:30:00',
        'occurrence_type': 'weekly',
        'day_of_week': [1, 3, 5],
        'day_of_month': None,
        'users': {'name': 'Alice', 'email': 'alice@example.com'},
    }


@pytest.fixture
def event_row():
    return {
        'id': 'cal1',
        'user_id': 'u1',
        'title': 'Team standup',
        'start_at': '2026-01-05T14:00:00',
        'end_at': '2026-01-05T14:30:00',
        'all_day': False,
        'users': {'name': None, 'email': 'alice@example.com'},
        'origin': 'calendar',
    }


class TestNormalizeSchedules:
    """Test cases for schedule rows."""

    def test_valid_weekly_schedule(self, schedule_row):
        normalizer = RecordNormalizer()

        schedules = normalizer.normalize_schedules([schedule_row])

        assert len(schedules) == 1
        schedule = schedules[0]
        assert schedule.owner_id == 'u1'
        assert schedule.schedule_id == 's1'
        assert schedule.start_date == date(2026, 1, 1)
        assert schedule.end_date == date(2026, 6, 1)
        assert schedule.start_time == time(9, 0)
        assert schedule.end_time == time(10, 30)
        assert schedule.occurrence == WeeklyOccurrence(days=frozenset({1, 3, 5}))
        assert schedule.member_name == 'Alice'

    def test_weekly_single_day_value(self, schedule_row):
        """A scalar day_of_week is accepted as a one-day set."""
        schedule_row['day_of_week'] = 2

        schedule = RecordNormalizer().normalize_schedules([schedule_row])[0]

        assert schedule.occurrence == WeeklyOccurrence(days=frozenset({2}))

    @pytest.mark.parametrize('occurrence_type,extra,expected', [
        ('single', {}, SingleOccurrence()),
        ('daily', {}, DailyOccurrence()),
        ('monthly', {'day_of_month': 15}, MonthlyOccurrence(day_of_month=15)),
    ])
    def test_other_occurrence_types(self, schedule_row, occurrence_type, extra, expected):
        schedule_row.update({'occurrence_type': occurrence_type, 'day_of_week': None}, **extra)

        schedule = RecordNormalizer().normalize_schedules([schedule_row])[0]

        assert schedule.occurrence == expected

    def test_open_ended_schedule(self, schedule_row):
        schedule_row['end_date'] = None

        assert RecordNormalizer().normalize_schedules([schedule_row])[0].end_date is None

    @pytest.mark.parametrize('changes', [
        {'occurrence_type': 'yearly'},
        {'occurrence_type': None},
        {'day_of_week': None},
        {'day_of_week': []},
        {'occurrence_type': 'monthly', 'day_of_month': None},
        {'start_date': 'not-a-date'},
        {'start_time': 'noon'},
    ])
    def test_malformed_rows_are_skipped(self, schedule_row, changes):
        """Unusable rows are dropped without affecting the rest of the batch."""
        bad_row = dict(schedule_row, **changes)

        schedules = RecordNormalizer().normalize_schedules([bad_row, schedule_row])

        assert len(schedules) == 1
        assert schedules[0].title == 'Math 101'

    def test_missing_owner_is_skipped(self, schedule_row):
        del schedule_row['user_id']

        assert RecordNormalizer().normalize_schedules([schedule_row]) == []

    def test_fallback_names_by_mode(self, schedule_row):
        schedule_row['users'] = None

        personal = RecordNormalizer(Mode.PERSONAL).normalize_schedules([schedule_row])[0]
        team = RecordNormalizer(Mode.TEAM).normalize_schedules([schedule_row])[0]

        assert personal.member_name == 'You'
        assert team.member_name == 'Unknown'


class TestNormalizeEvents:
    """Test cases for calendar event rows."""

    def test_valid_event(self, event_row):
        events = RecordNormalizer().normalize_events([event_row])

        assert len(events) == 1
        event = events[0]
        assert event.event_id == 'cal1'
        assert event.start_at == datetime(2026, 1, 5, 14, 0)
        assert event.end_at == datetime(2026, 1, 5, 14, 30)
        assert event.all_day is False
        assert event.origin is Origin.CALENDAR
        assert event.member_name == 'alice@example.com'

    def test_org_wide_event(self, event_row):
        event_row.update({'origin': 'schedule', 'title': None})

        event = RecordNormalizer().normalize_events([event_row])[0]

        assert event.is_org_wide
        assert event.member_name == 'Org schedule'
        assert event.title == 'Org schedule'

    def test_default_title(self, event_row):
        event_row['title'] = ''

        assert RecordNormalizer().normalize_events([event_row])[0].title == 'Calendar event'

    def test_missing_end_defaults_to_one_hour(self, event_row):
        event_row['end_at'] = None

        event = RecordNormalizer().normalize_events([event_row])[0]

        assert event.end_at is None
        assert event.effective_end == datetime(2026, 1, 5, 15, 0)

    def test_offsets_are_dropped(self, event_row):
        """Timestamps keep their wall-clock time."""
        event_row['start_at'] = '2026-01-05T14:00:00Z'
        event_row['end_at'] = '2026-01-05T15:00:00-05:00'

        event = RecordNormalizer().normalize_events([event_row])[0]

        assert event.start_at == datetime(2026, 1, 5, 14, 0)
        assert event.end_at == datetime(2026, 1, 5, 15, 0)

    def test_fractional_seconds_and_short_offsets(self, event_row):
        """Four-digit fractions and hour-only offsets still parse."""
        event_row['start_at'] = '2026-01-05T09:00:00.1234+00:00'
        event_row['end_at'] = '2026-01-05T10:00:00+00'

        events = RecordNormalizer().normalize_events([event_row])

        assert len(events) == 1
        assert events[0].start_at == datetime(2026, 1, 5, 9, 0, 0, 123400)
        assert events[0].end_at == datetime(2026, 1, 5, 10, 0)

    def test_space_separated_timestamp(self, event_row):
        event_row['start_at'] = '2026-01-05 14:00'

        assert RecordNormalizer().normalize_events([event_row])[0].start_at == datetime(2026, 1, 5, 14, 0)

    @pytest.mark.parametrize('changes', [
        {'start_at': 'garbage'},
        {'start_at': None},
        {'start_at': ''},
        {'end_at': 'tomorrow-ish'},
    ])
    def test_unparseable_timestamps_are_skipped(self, event_row, changes):
        bad_row = dict(event_row, id='bad', **changes)

        events = RecordNormalizer().normalize_events([bad_row, event_row])

        assert [e.event_id for e in events] == ['cal1']


class TestParseHelpers:
    """Test cases for parsing helpers."""

    def test_parse_date_strips_time(self):
        assert RecordNormalizer.parse_date('2026-01-05T10:00:00') == date(2026, 1, 5)
        assert RecordNormalizer.parse_date(datetime(2026, 1, 5, 10)) == date(2026, 1, 5)

    def test_parse_time(self):
        assert RecordNormalizer.parse_time('9:05') == time(9, 5)
        assert RecordNormalizer.parse_time('21') == time(21, 0)

    def test_parse_time_end_of_day(self):
        assert RecordNormalizer.parse_time('24:00') == time.max
        assert RecordNormalizer.parse_time('24:00:00') == time.max
        with pytest.raises(ValueError):
            RecordNormalizer.parse_time('24:30')

    def test_schedule_ending_at_midnight_is_kept(self, schedule_row):
        schedule_row['end_time'] = '24:00'

        schedules = RecordNormalizer().normalize_schedules([schedule_row])

        assert len(schedules) == 1
        assert schedules[0].end_time == time.max
        assert schedules[0].end_hour == 24

    def test_string_mode(self, schedule_row):
        schedule_row['users'] = None

        assert RecordNormalizer('personal').normalize_schedules([schedule_row])[0].member_name == 'You'

    def test_parse_timestamp_datetime(self):
        normalizer = RecordNormalizer()

        assert normalizer.parse_timestamp(datetime(2026, 1, 5, 9)) == datetime(2026, 1, 5, 9)
        assert normalizer.parse_timestamp(12345) is None
