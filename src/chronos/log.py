"""Logging setup for chronos.

One pipe-separated line per record on *stderr*, ISO 8601 timestamps.  The
Google client libraries are chatty at INFO (discovery cache notices, OAuth
local-server banners), so they are held at WARNING unless the application
itself runs at DEBUG.
"""

from __future__ import annotations

import logging
import sys

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Marks the handler installed here so repeat calls can find it again.
_HANDLER_ATTR = "_chronos_log_handler"

_NOISY_LOGGERS = (
    "googleapiclient.discovery",
    "googleapiclient.discovery_cache",
    "google_auth_oauthlib.flow",
    "google.auth.transport",
)


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger for the application.

    Safe to call more than once: the existing handler is reused and only its
    level is updated.

    Args:
        level: A standard logging level name (``"DEBUG"``, ``"INFO"``, ...).

    Raises:
        ValueError: If *level* is not a recognised logging level name.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}")

    root = logging.getLogger()
    root.setLevel(numeric_level)

    handler = _find_handler(root)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
        setattr(handler, _HANDLER_ATTR, True)
        root.addHandler(handler)
    handler.setLevel(numeric_level)

    library_level = numeric_level if numeric_level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def _find_handler(root: logging.Logger) -> logging.Handler | None:
    for handler in root.handlers:
        if getattr(handler, _HANDLER_ATTR, False):
            return handler
    return None


def get_logger(name: str) -> logging.Logger:
    """Return the named logger (normally the caller's ``__name__``)."""
    return logging.getLogger(name)
