"""Configuration loading for the digest application."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Iterable, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

__all__ = [
    "ConfigError",
    "DEFAULT_DEBOUNCE_THRESHOLD",
    "DEFAULT_NO_EVENTS_INTERVAL",
    "DEFAULT_SEARCH_WINDOW",
    "Settings",
    "load_env_file",
    "load_settings",
    "parse_timezone",
]

DEFAULT_SEARCH_WINDOW = timedelta(weeks=1)
DEFAULT_DEBOUNCE_THRESHOLD = timedelta(minutes=1)
DEFAULT_NO_EVENTS_INTERVAL = timedelta(hours=6)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class ConfigError(RuntimeError):
    """Raised when configuration values are malformed."""


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the digest application.

    ``search_window`` bounds how far ahead events are fetched. The digest
    scan itself is not limited by it.
    """

    search_window: timedelta = DEFAULT_SEARCH_WINDOW
    debounce_threshold: timedelta = DEFAULT_DEBOUNCE_THRESHOLD
    no_events_interval: timedelta = DEFAULT_NO_EVENTS_INTERVAL
    timezone: ZoneInfo = ZoneInfo("UTC")
    calendar_ids: tuple[str, ...] = ("primary",)
    credentials_file: Path | None = None
    use_24_hour: bool = False


def load_env_file(env_file: str | Path | None = None) -> None:
    """Load environment variables from ``env_file`` if provided.

    When ``env_file`` is :data:`None`, the loader looks for a ``.env`` file in the
    current working directory. Existing environment variables are never overwritten.
    """

    path = Path(env_file) if env_file is not None else Path.cwd() / ".env"
    if not path.exists() or not path.is_file():
        return

    for key, value in _iter_env_entries(path):
        os.environ.setdefault(key, value)


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``environ`` (defaults to ``os.environ``)."""

    env = os.environ if environ is None else environ
    defaults = Settings()

    calendar_ids = defaults.calendar_ids
    raw_ids = env.get("EVENT_DIGEST_CALENDAR_IDS")
    if raw_ids is not None:
        calendar_ids = tuple(part.strip() for part in raw_ids.split(",") if part.strip())
        if not calendar_ids:
            raise ConfigError("EVENT_DIGEST_CALENDAR_IDS must list at least one calendar")

    credentials = env.get("GOOGLE_APPLICATION_CREDENTIALS")

    return Settings(
        search_window=_duration(env, "EVENT_DIGEST_SEARCH_WINDOW", defaults.search_window),
        debounce_threshold=_duration(env, "EVENT_DIGEST_DEBOUNCE", defaults.debounce_threshold),
        no_events_interval=_duration(
            env, "EVENT_DIGEST_NO_EVENTS_INTERVAL", defaults.no_events_interval
        ),
        timezone=parse_timezone(env.get("EVENT_DIGEST_TIMEZONE"), defaults.timezone),
        calendar_ids=calendar_ids,
        credentials_file=Path(credentials) if credentials else None,
        use_24_hour=_flag(env, "EVENT_DIGEST_24_HOUR", defaults.use_24_hour),
    )


def parse_timezone(value: str | None, default: ZoneInfo) -> ZoneInfo:
    if not value:
        return default
    try:
        return ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown timezone: {value!r}") from exc


def _duration(env: Mapping[str, str], key: str, default: timedelta) -> timedelta:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        seconds = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number of seconds, got {raw!r}") from exc
    if seconds <= 0:
        raise ConfigError(f"{key} must be positive, got {raw!r}")
    return timedelta(seconds=seconds)


def _flag(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{key} must be a boolean flag, got {raw!r}")


def _iter_env_entries(path: Path) -> Iterable[tuple[str, str]]:
    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            raise ConfigError(
                f"Invalid line in {path.name!r}: {raw_line!r}. Expected KEY=VALUE format."
            )
        key, raw_value = line.split("=", 1)
        key = key.strip()
        value = raw_value.strip().strip('"').strip("'")
        if not key:
            raise ConfigError(f"Environment variable key is missing in line: {raw_line!r}")
        yield key, value
