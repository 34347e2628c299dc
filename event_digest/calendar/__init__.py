"""Calendar integrations supplying event instances to the digest."""

from .base import EventSource, EventSourceError
from .google_client import CalendarApiError, GoogleCalendarClient, instance_sort_key

__all__ = [
    "CalendarApiError",
    "EventSource",
    "EventSourceError",
    "GoogleCalendarClient",
    "instance_sort_key",
]
