"""Turn a digest into the text shown on the event card."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from ..digest import Digest, EventInstance

NO_TITLE = "(No title)"


@dataclass(frozen=True)
class CardSection:
    when: str
    title: str
    color: int = 0
    where: Optional[str] = None


@dataclass(frozen=True)
class DigestCard:
    """Display-ready fields for one refresh of the card."""

    no_events: bool = False
    day_number: int = 0
    primary: Optional[CardSection] = None
    title2: Optional[str] = None
    secondary: Optional[CardSection] = None


def more_events_label(count: int) -> str:
    return f"{count} more event" if count == 1 else f"{count} more events"


def events_label(count: int) -> str:
    return f"{count} event" if count == 1 else f"{count} events"


def format_when(event: EventInstance, now: datetime, *, use_24_hour: bool = False) -> str:
    """Format the start of ``event`` the way the card shows it.

    All-day events show their calendar date. Timed events show the time of
    day, prefixed with the date when they do not start today.
    """

    if event.all_day:
        return event.start.astimezone(timezone.utc).strftime("%a, %b %d")

    start = event.start.astimezone(now.tzinfo) if now.tzinfo is not None else event.start
    if use_24_hour:
        clock = start.strftime("%H:%M")
    else:
        clock = start.strftime("%I:%M %p").lstrip("0")
    if start.date() != now.date():
        return f"{start.strftime('%a, %b %d')}, {clock}"
    return clock


def build_card(
    events: Sequence[EventInstance],
    digest: Digest,
    *,
    now: datetime,
    use_24_hour: bool = False,
) -> DigestCard:
    if digest.primary_index is None:
        return DigestCard(no_events=True, day_number=now.day)

    primary = events[digest.primary_index]
    primary_section = CardSection(
        when=format_when(primary, now, use_24_hour=use_24_hour),
        title=primary.title or NO_TITLE,
        color=primary.color,
        where=primary.location or None,
    )

    title2: Optional[str] = None
    if digest.primary_conflict_index is not None:
        if digest.primary_count > 2:
            title2 = more_events_label(digest.primary_count - 1)
        else:
            title2 = events[digest.primary_conflict_index].title or NO_TITLE

    secondary_section: Optional[CardSection] = None
    if digest.secondary_index is not None:
        secondary = events[digest.secondary_index]
        if digest.secondary_count > 1:
            secondary_title = events_label(digest.secondary_count)
        else:
            secondary_title = secondary.title or NO_TITLE
        secondary_section = CardSection(
            when=format_when(secondary, now, use_24_hour=use_24_hour),
            title=secondary_title,
            color=secondary.color,
        )

    return DigestCard(
        day_number=now.day,
        primary=primary_section,
        title2=title2,
        secondary=secondary_section,
    )


__all__ = [
    "CardSection",
    "DigestCard",
    "NO_TITLE",
    "build_card",
    "events_label",
    "format_when",
    "more_events_label",
]
