"""Select the primary and secondary event clusters for the current moment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Hashable, List, Optional, Sequence

from .timeline import flip_instant, format_debug_time, localize, to_utc

LOGGER = logging.getLogger(__name__)

# Number of distinct start-time clusters the digest reports (primary and
# secondary). Scanning stops at the first event that would open another one.
MAX_CLUSTERS = 2

__all__ = ["Digest", "EventInstance", "MAX_CLUSTERS", "build_digest"]


@dataclass(frozen=True)
class EventInstance:
    """A single occurrence of a calendar event.

    ``start`` and ``end`` of all-day instances are midnight UTC of the
    calendar dates they span; timed instances carry absolute instants.
    """

    id: Hashable
    start: datetime
    end: datetime
    all_day: bool = False
    title: str = ""
    location: Optional[str] = None
    color: int = 0
    calendar_id: Optional[str] = None


@dataclass(frozen=True)
class Digest:
    """Summary of which events to show, as indices into the scanned sequence."""

    primary_index: Optional[int] = None
    primary_conflict_index: Optional[int] = None
    primary_count: int = 0
    secondary_index: Optional[int] = None
    secondary_count: int = 0
    watch_found: bool = False

    @property
    def has_events(self) -> bool:
        return self.primary_index is not None


@dataclass
class _Cluster:
    index: int
    start: datetime
    count: int = 1
    conflict_index: Optional[int] = None


def build_digest(
    events: Sequence[EventInstance],
    watch_id: Optional[Hashable] = None,
    *,
    now: datetime,
    tz: tzinfo,
) -> Digest:
    """Scan ``events`` once and return the digest for ``now``.

    ``events`` must already be ordered by start day, then all-day before
    timed, then start. Events whose flip instant is before ``now`` are
    skipped; the scan stops at the first still-current event that does not
    share a start time with one of the first :data:`MAX_CLUSTERS` clusters.
    """

    clusters: List[_Cluster] = []
    watch_found = False

    for index, event in enumerate(events):
        local_start = localize(event.start, event.all_day, tz)
        local_end = localize(event.end, event.all_day, tz)
        flip = flip_instant(local_start, local_end, event.all_day)
        LOGGER.debug("Calculated flip time %s for event %r", format_debug_time(flip, now), event.id)
        if to_utc(flip) < to_utc(now):
            continue

        if watch_id is not None and event.id == watch_id:
            watch_found = True

        cluster = next((c for c in clusters if to_utc(c.start) == to_utc(local_start)), None)
        if cluster is not None:
            cluster.count += 1
            if cluster.conflict_index is None:
                cluster.conflict_index = index
        elif len(clusters) < MAX_CLUSTERS:
            clusters.append(_Cluster(index=index, start=local_start))
        else:
            break

    primary = clusters[0] if clusters else None
    secondary = clusters[1] if len(clusters) > 1 else None
    return Digest(
        primary_index=primary.index if primary else None,
        primary_conflict_index=primary.conflict_index if primary else None,
        primary_count=primary.count if primary else 0,
        secondary_index=secondary.index if secondary else None,
        secondary_count=secondary.count if secondary else 0,
        watch_found=watch_found,
    )
