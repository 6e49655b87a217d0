"""Client for the calendar events API."""
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class CalendarApiError(Exception):
    """Raised when the events API answers with an error status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class CalendarEventsClient:
    """Fetches calendar event rows for a date range."""

    EVENTS_PATH = '/api/calendar/events'
    DEFAULT_ERROR = 'Failed to load availability events.'

    def __init__(self, base_url: str, timeout: int = 30, max_retries: int = 3):
        """
        Initialize the events client.

        Args:
            base_url: Web application origin, e.g. https://app.example.com
            timeout: HTTP request timeout in seconds (default: 30)
            max_retries: Attempts before giving up on network errors (default: 3)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max(1, max_retries)

    def fetch_events(
        self,
        organization_id: str,
        start: datetime,
        end: datetime,
        mode: str,
        user_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Fetch event rows overlapping [start, end].

        Args:
            organization_id: Organization whose events to load
            start: Range start
            end: Range end
            mode: personal or team; personal limits rows to the caller's events
            user_id: Caller identity for personal mode

        Returns:
            List of event rows

        Raises:
            CalendarApiError: If the API returns a non-2xx status
            requests.RequestException: If all retry attempts fail
        """
        params = {
            'organizationId': organization_id,
            'start': start.isoformat(),
            'end': end.isoformat(),
            'mode': mode,
        }
        if user_id:
            params['userId'] = user_id

        response = self._get(self.base_url + self.EVENTS_PATH, params)
        data = self._json(response)

        if not response.ok:
            message = data.get('message') or self.DEFAULT_ERROR
            logger.error(f"Events API returned {response.status_code}: {message}")
            raise CalendarApiError(message, response.status_code)

        events = data.get('events') or []
        logger.info(f"Fetched {len(events)} calendar events for organization {organization_id}")
        return events

    def _get(self, url: str, params: Dict[str, str]) -> requests.Response:
        """GET with exponential backoff on network errors."""
        base_delay = 1  # seconds

        for attempt in range(self.max_retries):
            try:
                logger.info(f"Fetching calendar events (attempt {attempt + 1}/{self.max_retries})")
                return requests.get(url, params=params, timeout=self.timeout)

            except requests.RequestException as e:
                if attempt < self.max_retries - 1:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.max_retries} retry attempts failed. Last error: {e}"
                    )
                    raise

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
