"""Interfaces for event sources feeding the digest."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Protocol

from ..digest import EventInstance


class EventSourceError(RuntimeError):
    """Raised when upcoming events cannot be loaded from a provider."""


class EventSource(Protocol):
    def fetch_upcoming(self, now: datetime, window: timedelta) -> List[EventInstance]:
        """Return instances overlapping ``[now, now + window)``.

        Results exclude declined instances and are ordered by start day,
        then all-day before timed, then start.
        """


__all__ = ["EventSource", "EventSourceError"]
