"""AWS Lambda handler for the team availability grid."""
import json
import logging
import os
import time
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from availability.aggregator import ConflictAggregator
from availability.blocks import compute_event_blocks, resolve_overlaps
from availability.models import ConflictGrid, EventBlock, Mode, WeekWindow
from availability.normalizer import RecordNormalizer
from availability.statistics import cell_availability, summarize
from availability.week import build_week, date_key, week_label
from feeds.calendar_api import CalendarEventsClient
from storage.dynamodb_reader import DynamoDBReader

# Roughly ten years either way; keeps the window inside date.min..date.max
MAX_WEEK_OFFSET = 520


# LogRecord attributes that are not caller-supplied ``extra`` fields
_RESERVED_ATTRS = frozenset(
    logging.LogRecord('', logging.INFO, '', 0, '', (), None).__dict__
) | {'message', 'asctime'}


class JsonFormatter(logging.Formatter):
    """Renders records as one JSON object per line, merging ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage()
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """Route root logging through a single JSON stream handler at log_level."""
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def parse_request(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract grid parameters from a direct or API Gateway invocation.

    Raises:
        ValueError: If a parameter is missing or malformed
    """
    params = dict(event.get('queryStringParameters') or {})
    for key in ('organization_id', 'mode', 'week_offset', 'today', 'user_id'):
        if key in event and key not in params:
            params[key] = event[key]

    organization_id = params.get('organization_id')
    if not organization_id:
        raise ValueError("organization_id is required")

    try:
        mode = Mode(params.get('mode') or Mode.TEAM.value)
    except ValueError:
        raise ValueError(f"mode must be 'personal' or 'team', got {params.get('mode')!r}")

    user_id = params.get('user_id')
    if mode is Mode.PERSONAL and not user_id:
        raise ValueError("user_id is required in personal mode")

    try:
        week_offset = int(params.get('week_offset') or 0)
    except (TypeError, ValueError):
        raise ValueError(f"week_offset must be an integer, got {params.get('week_offset')!r}")
    if abs(week_offset) > MAX_WEEK_OFFSET:
        raise ValueError(f"week_offset must be between -{MAX_WEEK_OFFSET} and {MAX_WEEK_OFFSET}, got {week_offset}")

    today = datetime.now().date()
    if params.get('today'):
        try:
            today = datetime.strptime(params['today'], '%Y-%m-%d').date()
        except (TypeError, ValueError):
            raise ValueError(f"today must be YYYY-MM-DD, got {params.get('today')!r}")

    return {
        'organization_id': organization_id,
        'mode': mode,
        'user_id': user_id,
        'week_offset': week_offset,
        'today': today,
    }


def serialize_grid(
    grid: ConflictGrid,
    window: WeekWindow,
    mode: Mode,
    member_count: int
) -> list:
    """Render occupied cells in day-major, hour-minor order."""
    cells = []
    for day in window.days:
        key = date_key(day)
        for hour in window.hours:
            conflicts = grid.conflicts_at(key, hour)
            if not conflicts:
                continue
            availability = cell_availability(grid, key, hour, member_count, mode)
            cells.append({
                'date_key': key,
                'hour': hour,
                'available': availability.available,
                'total': availability.total,
                'level': availability.level.value,
                'conflicts': [
                    {
                        'member_name': conflict.display_name,
                        'title': conflict.title,
                        'is_org': conflict.is_org_wide
                    }
                    for conflict in conflicts
                ]
            })
    return cells


def serialize_blocks(blocks: Dict[str, List[EventBlock]]) -> Dict[str, list]:
    """Lay out each day's blocks in overlap columns, ordered by start minute."""
    serialized = {}
    for key in sorted(blocks):
        positioned = sorted(
            resolve_overlaps(blocks[key]),
            key=lambda p: (p.block.start_minute, p.column)
        )
        serialized[key] = [
            {
                'block_id': p.block.block_id,
                'start_minute': p.block.start_minute,
                'end_minute': p.block.end_minute,
                'title': p.block.title,
                'member_name': p.block.member_name,
                'is_org': p.block.is_org,
                'origin': p.block.origin,
                'column': p.column,
                'total_columns': p.total_columns
            }
            for p in positioned
        ]
    return serialized


def _error_response(status_code: int, message: str, error: Exception, start_time: float) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'body': json.dumps({
            'message': message,
            'error': str(error),
            'error_type': type(error).__name__,
            'duration_seconds': round(time.time() - start_time, 2)
        })
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler computing one week of availability.

    Args:
        event: Direct invocation payload or API Gateway proxy event
        context: Lambda context object

    Returns:
        Response dict with statusCode and the serialized grid and summary
    """
    # Read configuration from environment variables
    memberships_table = os.environ.get('MEMBERSHIPS_TABLE', 'organization-memberships')
    schedules_table = os.environ.get('SCHEDULES_TABLE', 'academic-schedules')
    events_api_url = os.environ.get('EVENTS_API_URL', 'http://localhost:3000')
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))
    start_hour = int(os.environ.get('GRID_START_HOUR', '6'))
    end_hour = int(os.environ.get('GRID_END_HOUR', '22'))

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()

    try:
        request = parse_request(event or {})
    except ValueError as e:
        logger.warning(f"Rejected availability request: {e}")
        return _error_response(400, 'Invalid request', e, start_time)

    mode = request['mode']
    organization_id = request['organization_id']
    user_id: Optional[str] = request['user_id']
    try:
        window = build_week(request['today'], request['week_offset'], start_hour, end_hour)
    except (OverflowError, ValueError) as e:
        logger.warning(f"Rejected availability request: {e}")
        return _error_response(400, 'Invalid request', e, start_time)

    logger.info(
        "Availability computation started",
        extra={
            'organization_id': organization_id,
            'mode': mode.value,
            'week_offset': request['week_offset']
        }
    )

    try:
        reader = DynamoDBReader(memberships_table, schedules_table)
        client = CalendarEventsClient(events_api_url, timeout=timeout_seconds)
        normalizer = RecordNormalizer(mode)

        try:
            if mode is Mode.TEAM:
                member_count = reader.count_active_members(organization_id)
                schedule_rows = reader.get_schedule_rows(organization_id)
            else:
                member_count = 1
                schedule_rows = reader.get_schedule_rows(organization_id, user_id=user_id)

            event_rows = client.fetch_events(
                organization_id,
                window.range_start,
                window.range_end,
                mode.value,
                user_id=user_id
            )
        except Exception as e:
            logger.error(
                f"Failed to load availability data: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return _error_response(500, 'Failed to load availability data', e, start_time)

        schedules = normalizer.normalize_schedules(schedule_rows)
        events = normalizer.normalize_events(event_rows)

        grid = ConflictAggregator(window).aggregate(schedules, events)
        summary = summarize(grid, window, mode, member_count)

        duration = time.time() - start_time
        logger.info(
            "Availability computation completed",
            extra={
                'duration_seconds': round(duration, 2),
                'schedules': len(schedules),
                'events': len(events),
                'occupied_cells': len(grid)
            }
        )

        body = {
            'mode': mode.value,
            'week_label': week_label(window),
            'days': [date_key(day) for day in window.days],
            'hours': list(window.hours),
            'today': date_key(window.today),
            'cells': serialize_grid(grid, window, mode, member_count),
            'summary': asdict(summary),
            'statistics': {
                'schedules_loaded': len(schedules),
                'events_loaded': len(events),
                'duration_seconds': round(duration, 2)
            }
        }
        if mode is Mode.PERSONAL:
            body['blocks'] = serialize_blocks(compute_event_blocks(schedules, events, window))

        return {
            'statusCode': 200,
            'body': json.dumps(body)
        }

    except Exception as e:
        logger.error(
            f"Availability computation failed: {str(e)}",
            extra={
                'duration_seconds': round(time.time() - start_time, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        return _error_response(500, 'Availability computation failed', e, start_time)
