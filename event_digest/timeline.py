"""Helpers for placing event boundaries on a single local timeline."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo

__all__ = [
    "elapsed",
    "event_flip_instant",
    "flip_instant",
    "format_debug_time",
    "localize",
    "shift",
    "to_utc",
]


def localize(instant: datetime, is_all_day: bool, tz: tzinfo) -> datetime:
    """Return ``instant`` on the local timeline.

    Timed instants are already absolute and are returned unchanged. All-day
    boundaries are stored as midnight UTC of their calendar date, so the
    wall-clock fields are read in UTC and re-labelled with ``tz``: an all-day
    event on January 15th starts at local midnight on January 15th no matter
    which timezone the viewer is in.
    """

    if not is_all_day:
        return instant
    if instant.tzinfo is not None:
        instant = instant.astimezone(timezone.utc)
    return instant.replace(tzinfo=tz)


def flip_instant(local_start: datetime, local_end: datetime, is_all_day: bool) -> datetime:
    """Return the moment an event stops being the most relevant item.

    All-day events flip as soon as they start. Timed events flip half way
    through, so the next event takes over once the current one is half over.
    """

    if is_all_day:
        return local_start
    return shift(local_start, elapsed(local_end, local_start) / 2)


def event_flip_instant(start: datetime, end: datetime, is_all_day: bool, tz: tzinfo) -> datetime:
    local_start = localize(start, is_all_day, tz)
    local_end = localize(end, is_all_day, tz)
    return flip_instant(local_start, local_end, is_all_day)


def format_debug_time(instant: datetime, now: datetime) -> str:
    """Format ``instant`` relative to ``now`` for log output."""

    delta = elapsed(instant, now)
    clock = instant.strftime("%H:%M:%S")
    if delta > timedelta(minutes=1):
        return f"{clock} ({int(delta / timedelta(minutes=1)):+d} mins)"
    return f"{clock} ({int(delta / timedelta(seconds=1)):+d} secs)"


# Aware datetimes sharing a tzinfo subtract and compare by wall-clock fields,
# which is wrong across DST transitions. These helpers work on UTC instants.
def to_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(timezone.utc)


def elapsed(later: datetime, earlier: datetime) -> timedelta:
    """Return the real time between two instants."""

    return to_utc(later) - to_utc(earlier)


def shift(instant: datetime, delta: timedelta) -> datetime:
    """Return ``instant`` moved by ``delta`` of real time, in its own zone."""

    if instant.tzinfo is None:
        return instant + delta
    return (to_utc(instant) + delta).astimezone(instant.tzinfo)
