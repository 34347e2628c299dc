"""Command line entry point for the upcoming-event digest display."""

from __future__ import annotations

import argparse
import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Hashable, Iterable, List, Optional

import google.auth
from google.oauth2 import service_account

from .calendar import EventSource, EventSourceError, GoogleCalendarClient
from .config import Settings, load_env_file, load_settings, parse_timezone
from .digest import EventInstance
from .display import DisplayDriver, MockDisplayDriver
from .rendering import DigestRenderer, build_card
from .scheduler import RefreshResult, RefreshScheduler
from .timeline import shift
from .wakeup import WakeLoop

LOGGER = logging.getLogger(__name__)
CALENDAR_SCOPES = ("https://www.googleapis.com/auth/calendar.readonly",)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Upcoming-event digest display")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Optional path to a .env file loaded before the app starts.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single refresh immediately and exit.",
    )
    parser.add_argument(
        "--immediate",
        action="store_true",
        help="Refresh before the first wait even if a wake-up deadline is already pending.",
    )
    parser.add_argument(
        "--timezone",
        type=str,
        default=None,
        help="IANA timezone used to place all-day events (overrides EVENT_DIGEST_TIMEZONE).",
    )
    parser.add_argument(
        "--calendar-id",
        dest="calendar_ids",
        action="append",
        default=None,
        help="Calendar to include; may be repeated (overrides EVENT_DIGEST_CALENDAR_IDS).",
    )
    parser.add_argument(
        "--mock-output-dir",
        type=Path,
        default=None,
        help="Directory where the mock display writes captured frames.",
    )
    return parser


@dataclass
class AppSettings:
    once: bool
    immediate: bool
    mock_output_dir: Path | None
    digest: Settings


def create_event_source(settings: Settings) -> EventSource:
    """Build the Google Calendar source from service account or default credentials."""

    if settings.credentials_file is not None:
        credentials = service_account.Credentials.from_service_account_file(
            str(settings.credentials_file), scopes=list(CALENDAR_SCOPES)
        )
    else:
        credentials, _ = google.auth.default(scopes=list(CALENDAR_SCOPES))
    return GoogleCalendarClient(credentials, settings.calendar_ids, settings.timezone)


class AppRuntime:
    """Owns the event source, scheduler, renderer, display and wake loop.

    Three trigger paths lead to a refresh: the wake loop reaching its deadline
    (:meth:`on_alarm`), upstream calendar data changing
    (:meth:`on_event_changed`), and the system clock or timezone changing
    (:meth:`on_time_changed`). They may be called from different threads.
    """

    def __init__(
        self,
        *,
        settings: AppSettings,
        source_factory: Callable[[Settings], EventSource] = create_event_source,
        display_factory: Callable[..., DisplayDriver] = MockDisplayDriver,
        renderer: DigestRenderer | None = None,
        wake_loop_factory: Callable[[Callable[[], datetime]], WakeLoop] = WakeLoop,
        now_provider: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.source_factory = source_factory
        self.display_factory = display_factory
        self.renderer = renderer or DigestRenderer()
        self.wake_loop_factory = wake_loop_factory
        tz = settings.digest.timezone
        self.now_provider = now_provider or (lambda: datetime.now(tz=tz))
        self.logger = logger or LOGGER

        self.scheduler = RefreshScheduler.from_settings(settings.digest)
        self._source: EventSource | None = None
        self._display: DisplayDriver | None = None
        self._wake_loop: WakeLoop | None = None
        self._started = False

    def start(self) -> None:
        """Instantiate dependencies and prepare the wake loop."""

        if self._started:
            return

        try:
            self._source = self.source_factory(self.settings.digest)
            self._display = self.display_factory(
                output_dir=self.settings.mock_output_dir, logger=self.logger
            )
            self._display.initialize()
            self._wake_loop = self.wake_loop_factory(self._on_wake)
            self._started = True
        except Exception:
            self.close()
            raise

    def run(self, *, immediate: bool = False, iterations: Optional[int] = None) -> None:
        if not self._wake_loop:
            raise RuntimeError("Runtime has not been started")
        self._wake_loop.run(immediate=immediate, iterations=iterations)

    # Trigger paths ----------------------------------------------------
    def on_alarm(self) -> RefreshResult | None:
        return self._refresh(watch_id=None, consider_debounce=False)

    def on_event_changed(self, event_id: Hashable | None = None) -> RefreshResult | None:
        return self._refresh(watch_id=event_id, consider_debounce=False)

    def on_time_changed(self) -> RefreshResult | None:
        return self._refresh(watch_id=None, consider_debounce=True)

    def close(self) -> None:
        if self._display:
            try:
                self._display.sleep()
            except Exception:
                self.logger.exception("Error while putting display to sleep")
            finally:
                self._display = None

        self._source = None
        self._wake_loop = None
        self._started = False

    # Internal helpers -------------------------------------------------
    def _on_wake(self) -> datetime:
        result = self.on_alarm()
        if result is None:
            return shift(self.now_provider(), self.scheduler.no_events_interval)
        return result.next_wake

    def _refresh(self, *, watch_id: Hashable | None, consider_debounce: bool) -> RefreshResult | None:
        if not self._source or not self._display:
            raise RuntimeError("Runtime has not been fully started")

        now = self.now_provider()
        result = self.scheduler.refresh(
            lambda: self._load_events(now),
            watch_id,
            now=now,
            consider_debounce=consider_debounce,
        )
        if result is None:
            self.logger.debug("Refresh at %s was debounced", now.isoformat())
            return None

        if result.should_update:
            self._push_card(result, now)
        else:
            self.logger.info("Changed event %r is not on the card; skipping redraw", watch_id)

        if self._wake_loop is not None:
            self._wake_loop.replace_deadline(result.next_wake)
        self.logger.info("Next refresh scheduled for %s", result.next_wake.isoformat())
        return result

    def _load_events(self, now: datetime) -> List[EventInstance] | None:
        if self._source is None:
            raise RuntimeError("Runtime has not been fully started")
        try:
            return self._source.fetch_upcoming(now, self.settings.digest.search_window)
        except EventSourceError:
            self.logger.exception("Failed to fetch upcoming events")
            return None

    def _push_card(self, result: RefreshResult, now: datetime) -> None:
        if self._display is None:
            raise RuntimeError("Runtime has not been fully started")
        events = result.events or []
        card = build_card(events, result.digest, now=now, use_24_hour=self.settings.digest.use_24_hour)
        self.logger.info("Refreshing display at %s", now.isoformat())

        self._display.initialize()
        try:
            image = self.renderer.render(card, now)
            self._display.display_image(image)
        except Exception:
            self.logger.exception("Failed to render or push the digest card")
        finally:
            self._sleep_display_safely()

    def _sleep_display_safely(self) -> None:
        if not self._display:
            return
        try:
            self._display.sleep()
        except Exception:
            self.logger.exception("Failed to put display into sleep mode")


def resolve_settings(args: argparse.Namespace) -> AppSettings:
    load_env_file(args.env_file)
    digest = load_settings()
    if args.timezone:
        digest = dataclasses.replace(digest, timezone=parse_timezone(args.timezone, digest.timezone))
    if args.calendar_ids:
        digest = dataclasses.replace(digest, calendar_ids=tuple(args.calendar_ids))

    return AppSettings(
        once=args.once,
        immediate=args.immediate,
        mock_output_dir=args.mock_output_dir,
        digest=digest,
    )


def main(
    argv: Optional[Iterable[str]] = None,
    *,
    source_factory: Callable[[Settings], EventSource] = create_event_source,
    wake_loop_factory: Callable[[Callable[[], datetime]], WakeLoop] = WakeLoop,
) -> None:
    logging.basicConfig(level=logging.INFO)
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.once and args.immediate:
        parser.error("--once and --immediate are mutually exclusive")

    settings = resolve_settings(args)

    runtime = AppRuntime(
        settings=settings,
        source_factory=source_factory,
        wake_loop_factory=wake_loop_factory,
    )

    try:
        runtime.start()
        if settings.once:
            runtime.run(immediate=True, iterations=1)
        else:
            runtime.run(immediate=settings.immediate)
    except KeyboardInterrupt:
        LOGGER.info("Interrupted, shutting down")
    finally:
        runtime.close()


if __name__ == "__main__":
    main()
