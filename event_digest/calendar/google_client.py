"""Google Calendar client for retrieving upcoming event instances."""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, time as time_, timedelta, timezone
from typing import Callable, List, Mapping, MutableMapping, Optional, Sequence

from google.auth.credentials import Credentials
from google.auth.exceptions import TransportError
from googleapiclient.discovery import Resource, build
from googleapiclient.errors import HttpError
from zoneinfo import ZoneInfo

from ..digest import EventInstance
from .base import EventSourceError

logger = logging.getLogger(__name__)

DECLINED = "declined"


class CalendarApiError(EventSourceError):
    """Raised when the Google Calendar API repeatedly fails."""


def instance_sort_key(event: EventInstance, tz: ZoneInfo) -> tuple[date, bool, datetime]:
    """Order by start day, then all-day before timed, then start instant."""

    if event.all_day:
        start_day = event.start.astimezone(timezone.utc).date()
        local_start = event.start.astimezone(timezone.utc).replace(tzinfo=tz)
    else:
        local_start = event.start.astimezone(tz)
        start_day = local_start.date()
    return start_day, not event.all_day, local_start


class GoogleCalendarClient:
    """Client wrapper around the Google Calendar API."""

    def __init__(
        self,
        credentials: Optional[Credentials],
        calendar_ids: Sequence[str],
        timezone: str | ZoneInfo,
        *,
        service: Optional[Resource] = None,
        max_retries: int = 3,
        retry_initial_delay: float = 1.0,
        retry_backoff: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            credentials: Google API credentials used to authenticate requests. Ignored when
                ``service`` is provided.
            calendar_ids: Google Calendar identifiers to fetch events from.
            timezone: IANA timezone name or ``ZoneInfo`` instance defining the local timezone.
            service: Pre-built Google API service (primarily for testing).
            max_retries: Maximum number of retries for API calls.
            retry_initial_delay: Base delay before the first retry (seconds).
            retry_backoff: Multiplier applied to the delay after each retry.
            sleep: Sleep function used between retries (primarily for testing).
        """
        if not calendar_ids:
            raise ValueError("At least one calendar ID must be provided.")

        self.calendar_ids: List[str] = list(calendar_ids)
        self.timezone = timezone if isinstance(timezone, ZoneInfo) else ZoneInfo(str(timezone))
        self.max_retries = max_retries
        self.retry_initial_delay = retry_initial_delay
        self.retry_backoff = retry_backoff
        self._sleep = sleep

        if service is not None:
            self._service = service
        else:
            if credentials is None:
                raise ValueError("Credentials must be provided when service is not injected.")
            self._service = build("calendar", "v3", credentials=credentials, cache_discovery=False)

    def fetch_upcoming(self, now: datetime, window: timedelta) -> List[EventInstance]:
        """Return non-declined instances from every calendar between ``now`` and ``now + window``."""
        start = self._ensure_timezone(now)
        end = start + window

        events: List[EventInstance] = []
        for calendar_id in self.calendar_ids:
            events.extend(self._fetch_events_for_calendar(calendar_id, start, end))

        events.sort(key=lambda event: instance_sort_key(event, self.timezone))
        logger.debug("Fetched %d upcoming instance(s) from %d calendar(s)", len(events), len(self.calendar_ids))
        return events

    # ------------------------------------------------------------------
    def _fetch_events_for_calendar(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
    ) -> List[EventInstance]:
        items: List[Mapping[str, object]] = []
        page_token: Optional[str] = None
        while True:
            response = self._execute_with_backoff(
                lambda token=page_token: self._list_request(calendar_id, start, end, token).execute()
            )
            if not isinstance(response, MutableMapping):
                break
            items.extend(response.get("items", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                break

        normalized: List[EventInstance] = []
        for item in items:
            if _self_declined(item):
                continue
            try:
                normalized.append(self._normalize_event(item, calendar_id))
            except CalendarApiError as exc:
                logger.warning("Skipping malformed event from calendar %s: %s", calendar_id, exc)
        return normalized

    def _list_request(self, calendar_id: str, start: datetime, end: datetime, page_token: Optional[str]):
        params = dict(
            calendarId=calendar_id,
            timeMin=start.isoformat(),
            timeMax=end.isoformat(),
            singleEvents=True,
            orderBy="startTime",
            timeZone=self._timezone_name,
        )
        if page_token:
            params["pageToken"] = page_token
        return self._service.events().list(**params)

    def _normalize_event(self, event: Mapping[str, object], calendar_id: str) -> EventInstance:
        start_info = event.get("start")
        all_day = isinstance(start_info, Mapping) and "date" in start_info and "dateTime" not in start_info
        location = event.get("location")

        return EventInstance(
            id=str(event.get("id") or ""),
            start=self._extract_time_info(start_info),
            end=self._extract_time_info(event.get("end")),
            all_day=all_day,
            title=str(event.get("summary") or ""),
            location=str(location) if location else None,
            color=_parse_color(event.get("colorId")),
            calendar_id=calendar_id,
        )

    def _extract_time_info(self, value: object) -> datetime:
        if not isinstance(value, Mapping):
            raise CalendarApiError("Event time data is missing or malformed.")

        if "dateTime" in value:
            return self._ensure_timezone(self._parse_datetime(str(value["dateTime"])))
        if "date" in value:
            try:
                dt_date = date.fromisoformat(str(value["date"]))
            except ValueError as exc:
                raise CalendarApiError(f"Unable to parse date value: {value['date']}") from exc
            # All-day boundaries stay anchored to UTC midnight.
            return datetime.combine(dt_date, time_.min, tzinfo=timezone.utc)
        raise CalendarApiError("Event time data lacks 'dateTime' or 'date'.")

    def _parse_datetime(self, value: str) -> datetime:
        cleaned = value.rstrip("Z") + ("+00:00" if value.endswith("Z") else "")
        try:
            parsed = datetime.fromisoformat(cleaned)
        except ValueError as exc:
            raise CalendarApiError(f"Unable to parse datetime value: {value}") from exc
        return parsed

    def _ensure_timezone(self, dt: datetime) -> datetime:
        if dt.tzinfo is None:
            return dt.replace(tzinfo=self.timezone)
        return dt.astimezone(self.timezone)

    @property
    def _timezone_name(self) -> str:
        return getattr(self.timezone, "key", str(self.timezone))

    def _execute_with_backoff(self, func: Callable[[], Mapping[str, object]]) -> Mapping[str, object]:
        attempt = 0
        delay = self.retry_initial_delay
        while True:
            try:
                return func()
            except (HttpError, TransportError, TimeoutError) as exc:
                attempt += 1
                if attempt > self.max_retries:
                    raise CalendarApiError("Google Calendar API request failed after retries.") from exc
                logger.warning(
                    "Google Calendar API request failed (attempt %d/%d): %s", attempt, self.max_retries, exc
                )
                self._sleep(delay)
                delay *= self.retry_backoff


def _self_declined(event: Mapping[str, object]) -> bool:
    attendees = event.get("attendees")
    if not isinstance(attendees, list):
        return False
    return any(
        isinstance(attendee, Mapping) and attendee.get("self") and attendee.get("responseStatus") == DECLINED
        for attendee in attendees
    )


def _parse_color(value: object) -> int:
    try:
        return int(str(value))
    except (TypeError, ValueError):
        return 0


__all__ = ["CalendarApiError", "GoogleCalendarClient", "instance_sort_key"]
