from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from event_digest.wakeup import WakeLoop


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.current = start
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds)

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_runs_immediately_when_no_deadline_is_set() -> None:
    clock = FakeClock(START)
    calls: list[datetime] = []

    def callback() -> datetime:
        calls.append(clock.now())
        return clock.now() + timedelta(minutes=5)

    loop = WakeLoop(callback, time_provider=clock.now, sleep_func=clock.sleep)
    loop.run(iterations=1)

    assert calls == [START]
    assert clock.sleeps == []
    assert loop.deadline == START + timedelta(minutes=5)


def test_waits_until_deadline_in_bounded_chunks() -> None:
    clock = FakeClock(START)
    calls: list[datetime] = []

    def callback() -> datetime:
        calls.append(clock.now())
        return clock.now() + timedelta(seconds=150)

    loop = WakeLoop(callback, time_provider=clock.now, sleep_func=clock.sleep, max_sleep=60.0)
    loop.run(iterations=2)

    assert calls == [START, START + timedelta(seconds=150)]
    assert clock.sleeps == [60.0, 60.0, 30.0]


def test_replaced_deadline_is_followed() -> None:
    clock = FakeClock(START)
    loop: WakeLoop

    def callback() -> datetime:
        return clock.now() + timedelta(hours=6)

    def sleep(seconds: float) -> None:
        clock.sleep(seconds)
        if len(clock.sleeps) == 1:
            # Another trigger replaces the pending deadline mid-wait.
            loop.replace_deadline(START + timedelta(seconds=90))

    loop = WakeLoop(callback, time_provider=clock.now, sleep_func=sleep, max_sleep=60.0)
    loop.replace_deadline(START + timedelta(hours=6))

    reached = loop.wait_until_deadline()

    assert reached == START + timedelta(seconds=90)
    assert clock.sleeps == [60.0, 30.0]


def test_past_deadline_returns_without_sleeping() -> None:
    clock = FakeClock(START)
    loop = WakeLoop(lambda: START, time_provider=clock.now, sleep_func=clock.sleep)
    loop.replace_deadline(START - timedelta(seconds=1))

    assert loop.wait_until_deadline() == START - timedelta(seconds=1)
    assert clock.sleeps == []


def test_wait_without_deadline_raises() -> None:
    loop = WakeLoop(lambda: START)

    with pytest.raises(RuntimeError):
        loop.wait_until_deadline()


def test_rejects_non_positive_max_sleep() -> None:
    with pytest.raises(ValueError):
        WakeLoop(lambda: START, max_sleep=0)
