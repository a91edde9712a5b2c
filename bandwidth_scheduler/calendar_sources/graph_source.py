"""Microsoft Graph calendar-view source.

Authenticates with client credentials and reads the calendar view of one
user's calendar for the monitoring window. Times are requested in UTC.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import requests

from bandwidth_scheduler.calendar_sources.transform import transform_events
from bandwidth_scheduler.core.domain.errors import ConfigError

if TYPE_CHECKING:
    from bandwidth_scheduler.config.settings import CalendarSettings
    from bandwidth_scheduler.core.domain.types import Interval, MonitoringWindow

LOGGER = logging.getLogger(__name__)

GRAPH_SCOPE = "https://graph.microsoft.com/.default"
SELECT_FIELDS = "subject,start,end,location,categories,iCalUId"
# Safety net against a paging loop.
MAX_PAGES = 50


def _utc_query_time(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class GraphCalendarSource:
    """Reads reservations from a Graph calendar."""

    def __init__(
        self,
        settings: CalendarSettings,
        session: requests.Session | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        if not settings.secret:
            raise ConfigError("calendar.secret is required for the graph source")
        self._settings = settings
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout_seconds

    def _token(self) -> str:
        url = f"{self._settings.authority_url.rstrip('/')}/{self._settings.tenant_id}/oauth2/v2.0/token"
        response = self._session.post(
            url,
            data={
                "client_id": self._settings.client_id,
                "client_secret": self._settings.secret,
                "scope": GRAPH_SCOPE,
                "grant_type": "client_credentials",
            },
            timeout=self._timeout,
        )
        response.raise_for_status()
        return str(response.json()["access_token"])

    def _calendar_view_url(self) -> str:
        base = self._settings.graph_base_url.rstrip("/")
        return (
            f"{base}/users/{self._settings.user_account}"
            f"/calendars/{self._settings.calendar_id}/calendarView"
        )

    def fetch_raw_events(self, window: MonitoringWindow) -> list[dict[str, Any]]:
        headers = {
            "Authorization": f"Bearer {self._token()}",
            "Prefer": 'outlook.timezone="UTC"',
            "Accept": "application/json",
        }
        params: dict[str, str] | None = {
            "startDateTime": _utc_query_time(window.start),
            "endDateTime": _utc_query_time(window.end),
            "$select": SELECT_FIELDS,
        }

        events: list[dict[str, Any]] = []
        url: str | None = self._calendar_view_url()
        pages = 0
        while url and pages < MAX_PAGES:
            response = self._session.get(url, params=params, headers=headers, timeout=self._timeout)
            response.raise_for_status()
            payload = response.json()

            events.extend(payload.get("value") or [])
            # nextLink already carries the query string
            url = payload.get("@odata.nextLink")
            params = None
            pages += 1

        if url:
            LOGGER.warning("Calendar view truncated after %d pages", MAX_PAGES)

        return events

    def fetch_intervals(self, window: MonitoringWindow) -> list[Interval]:
        raw_events = self.fetch_raw_events(window)
        LOGGER.info("Retrieved %d calendar event(s)", len(raw_events))
        return transform_events(raw_events)
