"""Wake-up loop that re-runs the refresh when its deadline is reached."""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from .timeline import elapsed, format_debug_time

LOGGER = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WakeLoop:
    """Run ``callback`` whenever the current deadline passes.

    ``callback`` performs a refresh and returns the next deadline. Other
    threads may call :meth:`replace_deadline` at any time; only the most
    recent deadline is honoured.
    """

    def __init__(
        self,
        callback: Callable[[], datetime],
        *,
        time_provider: Callable[[], datetime] = _utc_now,
        sleep_func: Callable[[float], None] = time.sleep,
        max_sleep: float = 60.0,
    ) -> None:
        if max_sleep <= 0:
            raise ValueError("max_sleep must be positive")
        self.callback = callback
        self.time_provider = time_provider
        self.sleep_func = sleep_func
        self.max_sleep = max_sleep
        self._deadline: datetime | None = None
        self._lock = threading.Lock()

    @property
    def deadline(self) -> datetime | None:
        with self._lock:
            return self._deadline

    def replace_deadline(self, deadline: datetime) -> None:
        """Replace any pending deadline with ``deadline``."""

        with self._lock:
            self._deadline = deadline
        LOGGER.debug("Next wake-up set to %s", deadline.isoformat())

    def run(
        self,
        *,
        immediate: bool = False,
        iterations: Optional[int] = None,
    ) -> None:
        """Run the wake loop.

        Args:
            immediate: If ``True`` the callback runs before the first wait,
                otherwise the loop first waits for an existing deadline (or
                runs right away when none has been set).
            iterations: Optional number of callback runs. ``None`` runs
                indefinitely.
        """

        remaining = iterations

        if immediate or self.deadline is None:
            LOGGER.debug("Executing immediate refresh before waiting")
            self.replace_deadline(self.callback())
            if remaining is not None:
                remaining -= 1

        while remaining is None or remaining > 0:
            target = self.wait_until_deadline()
            LOGGER.debug("Reached scheduled wake-up at %s", target.isoformat())
            self.replace_deadline(self.callback())
            if remaining is not None:
                remaining -= 1

    def wait_until_deadline(self) -> datetime:
        """Block until the current deadline has passed and return it.

        Sleeps in chunks of at most ``max_sleep`` seconds so a replaced
        deadline or a jump of the wall clock is noticed promptly.
        """

        while True:
            target = self.deadline
            if target is None:
                raise RuntimeError("No wake-up deadline has been scheduled")
            now = self.time_provider()
            remaining = elapsed(target, now).total_seconds()
            if remaining <= 0:
                return target
            LOGGER.debug("Sleeping until %s", format_debug_time(target, now))
            self.sleep_func(min(remaining, self.max_sleep))
