#!/usr/bin/env python3
"""Render a sample digest card to a PNG using built-in example events."""

from __future__ import annotations

import argparse
from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from zoneinfo import ZoneInfo

from event_digest import EventInstance, RefreshScheduler
from event_digest.rendering import DigestRenderer, build_card


PREVIEWS_DIR = PROJECT_ROOT / "previews"
DEFAULT_OUTPUT = PREVIEWS_DIR / "digest_sample.png"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT,
        help="Where to write the preview file (defaults to previews/digest_sample.png).",
    )
    parser.add_argument(
        "--timezone",
        type=str,
        default="America/Los_Angeles",
        help="IANA timezone used for the sample day.",
    )
    parser.add_argument(
        "--empty",
        action="store_true",
        help="Render the card shown when no events are upcoming.",
    )
    return parser.parse_args()


def sample_events(now: datetime) -> list[EventInstance]:
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    utc_day = datetime(today.year, today.month, today.day, tzinfo=timezone.utc)
    meeting = today.replace(hour=now.hour) + timedelta(hours=1)
    return [
        EventInstance("holiday", utc_day, utc_day + timedelta(days=1), all_day=True, title="Team offsite"),
        EventInstance("standup", meeting, meeting + timedelta(minutes=30), title="Standup", location="Room 4"),
        EventInstance("review", meeting, meeting + timedelta(hours=1), title="Design review"),
        EventInstance("lunch", meeting + timedelta(hours=2), meeting + timedelta(hours=3), title="Lunch"),
    ]


def main() -> None:
    args = parse_args()
    tz = ZoneInfo(args.timezone)
    now = datetime.now(tz)
    events = [] if args.empty else sample_events(now)

    result = RefreshScheduler(tz=tz).refresh(events, now=now)
    assert result is not None
    card = build_card(events, result.digest, now=now)
    image = DigestRenderer().render(card, now)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    image.save(args.output)
    print(f"Saved preview to {args.output} (next refresh at {result.next_wake.isoformat()})")


if __name__ == "__main__":
    main()
