"""Exceptions and failure classification for the Google Calendar mirror.

Exception hierarchy::

    CalendarAPIError            (base for all Calendar API errors)
    +-- CalendarAuthError       (missing / rejected credential, HTTP 401)
    |   +-- ConsentError        (consent flow failed or was denied)
    |       +-- ConsentBlockedError (consent UI could not be shown)
    +-- CalendarRateLimitError  (HTTP 429)
    +-- CalendarNotFoundError   (HTTP 404)
    +-- ProviderInitError       (client libraries failed to initialise)
    SyncFailure                 (classified failure raised by the sync engine)
    ProviderNotReadyError       (programming error: used before ready)

:func:`classify_error` is the single place that turns an arbitrary exception
into a :class:`~chronos.models.calendar.SyncError`.  It prefers the HTTP
status carried by the exception and only falls back to matching words in the
message when no status is available.
"""

from __future__ import annotations

import logging

from googleapiclient.errors import HttpError

from chronos.models.calendar import SyncError, SyncErrorKind

logger = logging.getLogger(__name__)


class CalendarAPIError(Exception):
    """Base exception for Google Calendar API errors.

    Attributes:
        status_code: HTTP status code from the API, or ``None`` if the
            error did not originate from an HTTP response.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CalendarAuthError(CalendarAPIError):
    """Raised when no usable credential is held or the API rejects it."""

    def __init__(self, message: str = "Calendar authentication failed") -> None:
        super().__init__(message, status_code=401)


class ConsentError(CalendarAuthError):
    """Raised when the consent flow ends without a token.

    The message is the provider's own error text (e.g. ``access_denied``).
    """


class ConsentBlockedError(ConsentError):
    """Raised when the consent UI could not be shown to the user."""

    def __init__(
        self,
        message: str = "The Google sign-in window could not be opened",
    ) -> None:
        super().__init__(message)


class CalendarRateLimitError(CalendarAPIError):
    """Raised when the Calendar API returns HTTP 429."""

    def __init__(self, message: str = "Calendar API rate limit exceeded") -> None:
        super().__init__(message, status_code=429)


class CalendarNotFoundError(CalendarAPIError):
    """Raised when a Calendar resource is not found (HTTP 404)."""

    def __init__(self, message: str = "Calendar resource not found") -> None:
        super().__init__(message, status_code=404)


class ProviderInitError(CalendarAPIError):
    """Raised when a Google client library cannot be initialised in time."""


class ProviderNotReadyError(RuntimeError):
    """Raised when the sync subsystem is used before initialisation completed.

    This signals a bug in the caller, not a recoverable condition.
    """


class SyncFailure(Exception):
    """A classified failure raised at the sync engine boundary.

    Attributes:
        error: The :class:`SyncError` describing the failure.
    """

    def __init__(self, error: SyncError) -> None:
        super().__init__(error.message)
        self.error = error

    @property
    def kind(self) -> SyncErrorKind:
        return self.error.kind


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

# Last-resort message fragments, checked only when no status code is known.
_NOT_FOUND_HINTS = ("not found", "notfound")
_AUTH_HINTS = (
    "login required",
    "invalid credentials",
    "unauthenticated",
    "unauthorized",
    "invalid_grant",
)
_BLOCKED_HINTS = ("popup_failed_to_open", "popup blocked", "could not locate runnable browser")


def classify_http_error(error: HttpError) -> CalendarAPIError:
    """Map an ``HttpError`` to the matching calendar exception."""
    status = error.resp.status
    message = _http_error_message(error)

    if status == 404:
        return CalendarNotFoundError(message)
    if status == 429:
        return CalendarRateLimitError(message)
    if status == 401:
        return CalendarAuthError(message)
    return CalendarAPIError(message, status_code=status)


def _http_error_message(error: HttpError) -> str:
    reason = error.reason if hasattr(error, "reason") else None
    if isinstance(reason, str) and reason:
        return reason
    return str(error)


def classify_error(exc: BaseException, calendar_id: str) -> SyncError:
    """Turn any sync-time exception into a :class:`SyncError`.

    Rules, most specific first:

    - consent UI blocked -> ``POPUP_BLOCKED``
    - HTTP 404 / not found -> ``NOT_FOUND``; the message names *calendar_id*
    - HTTP 401 / missing or invalid credential -> ``AUTH_REQUIRED``
    - anything else -> ``GENERIC`` carrying the original message verbatim

    Args:
        exc: The exception raised while authenticating or fetching.
        calendar_id: The calendar identifier the fetch targeted.

    Returns:
        The classified :class:`SyncError`.
    """
    if isinstance(exc, SyncFailure):
        return exc.error

    if isinstance(exc, HttpError):
        exc = classify_http_error(exc)

    message = str(exc)
    lowered = message.lower()

    if isinstance(exc, ConsentBlockedError) or (
        not isinstance(exc, CalendarAPIError) and _matches(lowered, _BLOCKED_HINTS)
    ):
        kind = SyncErrorKind.POPUP_BLOCKED
        text = (
            "Google sign-in was blocked. Allow the sign-in window to open "
            "and try syncing again."
        )
    elif isinstance(exc, (ConsentError, ProviderInitError)):
        kind = SyncErrorKind.GENERIC
        text = message
    elif _status_of(exc) == 404 or (
        _status_of(exc) is None and _matches(lowered, _NOT_FOUND_HINTS)
    ):
        kind = SyncErrorKind.NOT_FOUND
        text = (
            f"Calendar {calendar_id!r} was not found. Check the calendar ID "
            "and that your account can see it."
        )
    elif _status_of(exc) == 401 or (
        _status_of(exc) is None and _matches(lowered, _AUTH_HINTS)
    ):
        kind = SyncErrorKind.AUTH_REQUIRED
        text = "Your Google session has expired. Sync again to sign in."
    else:
        kind = SyncErrorKind.GENERIC
        text = message or type(exc).__name__

    logger.debug("Classified %s as %s", type(exc).__name__, kind.value)
    return SyncError(kind=kind, message=text)


def _status_of(exc: BaseException) -> int | None:
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def _matches(text: str, hints: tuple[str, ...]) -> bool:
    return any(hint in text for hint in hints)
