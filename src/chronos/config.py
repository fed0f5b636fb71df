"""Configuration loading for chronos.

Reads settings from environment variables (with .env support via python-dotenv)
and validates that every value present is usable.  Unlike the Google
credentials, which the user saves through the app and which live in the
key/value store, these settings only describe the local environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

_DEFAULT_DATA_DIR = Path("~/.chronos")
_DEFAULT_INIT_TIMEOUT = 10.0


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        data_dir: Directory holding the persisted key/value store and the
            cached OAuth token.
        log_level: Logging level (default ``"INFO"``).
        timezone: IANA timezone string (default ``"America/Vancouver"``).
            All-day provider events are placed at local midnight in this zone
            and the visible month window is computed in it.
        init_timeout: Seconds to wait for the Google client libraries to
            become ready before giving up.
    """

    data_dir: Path = _DEFAULT_DATA_DIR
    log_level: str = "INFO"
    timezone: str = "America/Vancouver"
    init_timeout: float = _DEFAULT_INIT_TIMEOUT

    @property
    def store_path(self) -> Path:
        """Path of the JSON key/value store."""
        return self.data_dir.expanduser() / "store.json"

    @property
    def token_path(self) -> Path:
        """Path of the cached Google OAuth token."""
        return self.data_dir.expanduser() / "token.json"

    @property
    def zone(self) -> ZoneInfo:
        """The configured timezone as a :class:`zoneinfo.ZoneInfo`."""
        return ZoneInfo(self.timezone)


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Calls :func:`dotenv.load_dotenv` so a ``.env`` file in the project root
    is picked up automatically.  Every variable is optional.

    Returns:
        A validated :class:`Settings` instance.

    Raises:
        ConfigError: If any variable is set to an unusable value.  The error
            message names **all** offending variables.
    """
    load_dotenv()

    values: dict[str, object] = {}
    invalid: list[str] = []

    data_dir = os.environ.get("CHRONOS_DATA_DIR", "").strip()
    log_level = os.environ.get("LOG_LEVEL", "").strip()
    timezone = os.environ.get("TIMEZONE", "").strip()
    init_timeout = os.environ.get("GOOGLE_INIT_TIMEOUT", "").strip()

    if data_dir:
        values["data_dir"] = Path(data_dir)
    if log_level:
        values["log_level"] = log_level

    if timezone:
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            invalid.append(f"TIMEZONE={timezone!r}")
        else:
            values["timezone"] = timezone

    if init_timeout:
        try:
            seconds = float(init_timeout)
        except ValueError:
            seconds = 0.0
        if seconds <= 0:
            invalid.append(f"GOOGLE_INIT_TIMEOUT={init_timeout!r}")
        else:
            values["init_timeout"] = seconds

    if invalid:
        raise ConfigError(f"Invalid environment variables: {', '.join(invalid)}")

    return Settings(**values)  # type: ignore[arg-type]
