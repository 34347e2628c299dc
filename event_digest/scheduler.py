"""Debounced refresh planning on top of the digest builder."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Callable, Hashable, Optional, Sequence, Union

from .config import DEFAULT_DEBOUNCE_THRESHOLD, DEFAULT_NO_EVENTS_INTERVAL, Settings
from .digest import Digest, EventInstance, build_digest
from .timeline import elapsed, event_flip_instant, format_debug_time, shift, to_utc

LOGGER = logging.getLogger(__name__)

EventsArg = Union[
    Sequence[EventInstance],
    Callable[[], Optional[Sequence[EventInstance]]],
    None,
]

__all__ = ["EventsArg", "RefreshResult", "RefreshScheduler"]


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of a refresh that passed the debounce gate."""

    digest: Digest
    next_wake: datetime
    should_update: bool = True
    events: Optional[Sequence[EventInstance]] = None


class RefreshScheduler:
    """Compute digests and the next instant the caller must refresh again.

    The scheduler remembers when it last ran so that bursts of triggers (for
    example several clock-change notifications) collapse into one refresh.
    That state belongs to the instance; create one per running display.
    """

    def __init__(
        self,
        *,
        tz: tzinfo,
        debounce_threshold: timedelta = DEFAULT_DEBOUNCE_THRESHOLD,
        no_events_interval: timedelta = DEFAULT_NO_EVENTS_INTERVAL,
    ) -> None:
        if no_events_interval <= timedelta(0):
            raise ValueError("no_events_interval must be positive")
        self.tz = tz
        self.debounce_threshold = debounce_threshold
        self.no_events_interval = no_events_interval
        self._last_invocation: datetime | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "RefreshScheduler":
        return cls(
            tz=settings.timezone,
            debounce_threshold=settings.debounce_threshold,
            no_events_interval=settings.no_events_interval,
        )

    @property
    def last_invocation(self) -> datetime | None:
        return self._last_invocation

    def refresh(
        self,
        events: EventsArg,
        watch_id: Optional[Hashable] = None,
        *,
        now: datetime,
        consider_debounce: bool = False,
    ) -> RefreshResult | None:
        """Build a digest for ``now`` and plan the next wake-up.

        Args:
            events: Sorted event instances, or ``None`` when the event source
                could not provide any. A callable is invoked only once the
                call has passed the debounce gate and may itself return
                ``None``.
            watch_id: Identifier of the single event that changed upstream, if
                known. Used to decide whether the display needs updating.
            now: Current instant.
            consider_debounce: When ``True`` the call is ignored if it arrives
                within the debounce threshold of the previous refresh.

        Returns:
            The refresh result, or ``None`` when the call was debounced.
        """

        with self._lock:
            if consider_debounce and self._last_invocation is not None:
                delta = abs(elapsed(now, self._last_invocation))
                if delta < self.debounce_threshold:
                    LOGGER.debug("Ignoring refresh request because delta=%s", delta)
                    return None
            self._last_invocation = now

            if callable(events):
                events = events()
            if events is None:
                LOGGER.debug("No event data available; skipping digest")
                digest = Digest()
            else:
                digest = build_digest(events, watch_id, now=now, tz=self.tz)

            next_wake = self._next_wake(events, digest, now)

        should_update = True
        if watch_id is not None and digest.has_events:
            should_update = digest.watch_found
        if not should_update:
            LOGGER.debug("Changed event %r is outside the displayed window", watch_id)

        return RefreshResult(
            digest=digest,
            next_wake=next_wake,
            should_update=should_update,
            events=events,
        )

    def _next_wake(
        self,
        events: Optional[Sequence[EventInstance]],
        digest: Digest,
        now: datetime,
    ) -> datetime:
        if events is not None and digest.primary_index is not None:
            primary = events[digest.primary_index]
            wake = event_flip_instant(primary.start, primary.end, primary.all_day, self.tz)
            if to_utc(wake) > to_utc(now):
                LOGGER.debug("Scheduled next update at %s", format_debug_time(wake, now))
                return wake
            LOGGER.warning("Encountered bad trigger time %s", format_debug_time(wake, now))

        wake = shift(now, self.no_events_interval)
        LOGGER.debug("Scheduled next update at %s", format_debug_time(wake, now))
        return wake
