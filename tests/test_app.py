from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

import pytest
from zoneinfo import ZoneInfo

from event_digest import app
from event_digest.calendar import EventSourceError
from event_digest.config import Settings
from event_digest.digest import EventInstance
from event_digest.display import MockDisplayDriver
from event_digest.wakeup import WakeLoop

TZ = ZoneInfo("Europe/London")
NOW = datetime(2024, 2, 1, 9, 0, tzinfo=TZ)


def meeting(event_id: str, hour: int) -> EventInstance:
    start = datetime(2024, 2, 1, hour, 0, tzinfo=TZ)
    return EventInstance(id=event_id, start=start, end=start + timedelta(hours=1), title=event_id)


class FakeSource:
    def __init__(self, events: list[EventInstance] | None = None, error: Exception | None = None) -> None:
        self.events = events or []
        self.error = error
        self.calls: list[tuple[datetime, timedelta]] = []

    def fetch_upcoming(self, now: datetime, window: timedelta) -> list[EventInstance]:
        self.calls.append((now, window))
        if self.error is not None:
            raise self.error
        return list(self.events)


class FakeWakeLoop:
    def __init__(self, callback: Callable[[], datetime], runs: list[dict[str, Any]]):
        self.callback = callback
        self.runs = runs
        self.deadlines: list[datetime] = []

    def replace_deadline(self, deadline: datetime) -> None:
        self.deadlines.append(deadline)

    def run(self, *, immediate: bool = False, iterations=None):
        self.runs.append({"immediate": immediate, "iterations": iterations})
        if immediate:
            self.replace_deadline(self.callback())


def make_runtime(source: FakeSource, **settings_overrides: Any):
    display = MockDisplayDriver()
    loops: list[WakeLoop] = []

    def loop_factory(callback: Callable[[], datetime]) -> WakeLoop:
        loop = WakeLoop(callback)
        loops.append(loop)
        return loop

    settings = app.AppSettings(
        once=False,
        immediate=False,
        mock_output_dir=None,
        digest=Settings(timezone=TZ, **settings_overrides),
    )
    runtime = app.AppRuntime(
        settings=settings,
        source_factory=lambda _settings: source,
        display_factory=lambda **_kwargs: display,
        wake_loop_factory=loop_factory,
        now_provider=lambda: NOW,
    )
    runtime.start()
    return runtime, display, loops[0]


def test_once_flag_triggers_single_refresh(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EVENT_DIGEST_TIMEZONE", raising=False)
    runs: list[dict[str, Any]] = []
    loops: list[FakeWakeLoop] = []
    source = FakeSource([meeting("a", 23)])
    seen_settings: list[Settings] = []

    def source_factory(settings: Settings) -> FakeSource:
        seen_settings.append(settings)
        return source

    def loop_factory(callback: Callable[[], datetime]) -> FakeWakeLoop:
        loop = FakeWakeLoop(callback, runs)
        loops.append(loop)
        return loop

    app.main(
        ["--once", "--timezone", "Europe/London", "--calendar-id", "work", "--calendar-id", "home"],
        source_factory=source_factory,
        wake_loop_factory=loop_factory,
    )

    assert runs == [{"immediate": True, "iterations": 1}]
    assert len(source.calls) == 1
    assert seen_settings[0].timezone == TZ
    assert seen_settings[0].calendar_ids == ("work", "home")
    assert loops[0].deadlines


def test_alarm_pushes_card_and_schedules_flip() -> None:
    runtime, display, loop = make_runtime(FakeSource([meeting("a", 10), meeting("b", 11)]))

    result = runtime.on_alarm()

    assert result is not None
    assert result.next_wake == datetime(2024, 2, 1, 10, 30, tzinfo=TZ)
    assert loop.deadline == result.next_wake
    assert len(display.history) == 1


def test_change_outside_card_skips_redraw_but_reschedules() -> None:
    source = FakeSource([meeting("a", 10), meeting("b", 11), meeting("c", 12)])
    runtime, display, loop = make_runtime(source)

    result = runtime.on_event_changed("c")

    assert result is not None
    assert result.should_update is False
    assert display.history == []
    assert loop.deadline == datetime(2024, 2, 1, 10, 30, tzinfo=TZ)


def test_time_change_is_debounced() -> None:
    source = FakeSource([meeting("a", 10)])
    runtime, display, _ = make_runtime(source)

    assert runtime.on_time_changed() is not None
    assert runtime.on_time_changed() is None
    assert len(source.calls) == 1
    assert len(display.history) == 1


def test_source_failure_falls_back_to_no_events() -> None:
    source = FakeSource(error=EventSourceError("calendar offline"))
    runtime, display, loop = make_runtime(source, no_events_interval=timedelta(hours=2))

    result = runtime.on_alarm()

    assert result is not None
    assert result.digest.primary_index is None
    assert loop.deadline == NOW + timedelta(hours=2)
    assert len(display.history) == 1


def test_refresh_requires_start() -> None:
    settings = app.AppSettings(once=False, immediate=False, mock_output_dir=None, digest=Settings(timezone=TZ))
    runtime = app.AppRuntime(settings=settings, source_factory=lambda _settings: FakeSource())

    with pytest.raises(RuntimeError):
        runtime.on_alarm()


def test_immediate_flag_runs_before_loop(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EVENT_DIGEST_TIMEZONE", raising=False)
    runs: list[dict[str, Any]] = []
    source = FakeSource()

    app.main(
        ["--immediate", "--timezone", "Europe/London"],
        source_factory=lambda _settings: source,
        wake_loop_factory=lambda callback: FakeWakeLoop(callback, runs),
    )

    assert runs == [{"immediate": True, "iterations": None}]
    assert len(source.calls) == 1


def test_once_and_immediate_are_mutually_exclusive() -> None:
    with pytest.raises(SystemExit):
        app.main(["--once", "--immediate"], source_factory=lambda _settings: FakeSource())


def test_helpers_raise_after_close() -> None:
    runtime, _, _ = make_runtime(FakeSource([meeting("a", 10)]))
    result = runtime.on_alarm()
    runtime.close()

    assert result is not None
    with pytest.raises(RuntimeError, match="fully started"):
        runtime._load_events(NOW)
    with pytest.raises(RuntimeError, match="fully started"):
        runtime._push_card(result, NOW)
