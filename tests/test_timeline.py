from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from zoneinfo import ZoneInfo

from event_digest.timeline import elapsed, event_flip_instant, flip_instant, format_debug_time, localize, shift

LA = ZoneInfo("America/Los_Angeles")
NEW_YORK = ZoneInfo("America/New_York")


def test_localize_leaves_timed_instants_unchanged() -> None:
    instant = datetime(2024, 1, 15, 9, 0, tzinfo=LA)

    assert localize(instant, False, ZoneInfo("Asia/Tokyo")) is instant


def test_localize_moves_all_day_boundary_to_local_midnight() -> None:
    utc_midnight = datetime(2024, 1, 15, tzinfo=timezone.utc)

    local = localize(utc_midnight, True, LA)

    assert local == datetime(2024, 1, 15, 0, 0, tzinfo=LA)
    assert local.utcoffset() == timedelta(hours=-8)


def test_localize_reads_fields_in_utc_for_offset_inputs() -> None:
    # Same instant as midnight UTC, expressed with an offset.
    shifted = datetime(2024, 1, 14, 16, 0, tzinfo=LA)

    assert localize(shifted, True, LA) == datetime(2024, 1, 15, 0, 0, tzinfo=LA)


def test_timed_flip_instant_is_midpoint() -> None:
    start = datetime(2024, 1, 15, 10, 0, tzinfo=LA)
    end = datetime(2024, 1, 15, 11, 0, tzinfo=LA)

    assert flip_instant(start, end, False) == datetime(2024, 1, 15, 10, 30, tzinfo=LA)


def test_all_day_flip_instant_ignores_end() -> None:
    start = datetime(2024, 1, 15, tzinfo=timezone.utc)

    for days in (1, 3):
        flip = event_flip_instant(start, start + timedelta(days=days), True, LA)
        assert flip == datetime(2024, 1, 15, 0, 0, tzinfo=LA)


def test_flip_instant_tolerates_end_before_start() -> None:
    start = datetime(2024, 1, 15, 11, 0, tzinfo=LA)
    end = datetime(2024, 1, 15, 10, 0, tzinfo=LA)

    assert flip_instant(start, end, False) == datetime(2024, 1, 15, 10, 30, tzinfo=LA)


@pytest.mark.parametrize(
    "offset, expected",
    [
        (timedelta(minutes=90), "11:30:00 (+90 mins)"),
        (timedelta(seconds=45), "10:00:45 (+45 secs)"),
        (timedelta(minutes=-5), "09:55:00 (-300 secs)"),
    ],
)
def test_format_debug_time(offset: timedelta, expected: str) -> None:
    now = datetime(2024, 1, 15, 10, 0, tzinfo=LA)

    assert format_debug_time(now + offset, now) == expected


def test_timed_flip_instant_spanning_spring_forward_uses_real_duration() -> None:
    # 01:00 EST to 04:00 EDT is two hours of real time.
    start = datetime(2024, 3, 10, 1, 0, tzinfo=NEW_YORK)
    end = datetime(2024, 3, 10, 4, 0, tzinfo=NEW_YORK)

    flip = flip_instant(start, end, False)

    assert flip == datetime(2024, 3, 10, 7, 0, tzinfo=timezone.utc)
    assert flip.tzinfo is NEW_YORK
    assert (flip.hour, flip.minute) == (3, 0)


def test_elapsed_and_shift_across_fall_back() -> None:
    first = datetime(2024, 11, 3, 1, 30, tzinfo=NEW_YORK)
    repeated = datetime(2024, 11, 3, 1, 30, tzinfo=NEW_YORK, fold=1)

    assert elapsed(repeated, first) == timedelta(hours=1)
    assert shift(first, timedelta(hours=1)) == repeated
    assert shift(first, timedelta(hours=1)).utcoffset() == timedelta(hours=-5)
