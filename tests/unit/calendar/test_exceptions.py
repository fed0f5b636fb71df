"""Tests for the calendar exception hierarchy and failure classification.

Test matrix:

| Test | Input | Expected kind |
|---|---|---|
| test_http_404 | HttpError 404 | NOT_FOUND, message names calendar |
| test_http_401 | HttpError 401 | AUTH_REQUIRED |
| test_http_500 | HttpError 500 | GENERIC |
| test_missing_token | CalendarAuthError | AUTH_REQUIRED |
| test_consent_blocked | ConsentBlockedError | POPUP_BLOCKED |
| test_consent_denied | ConsentError | GENERIC, provider text |
| test_message_fallbacks | plain exceptions with hint words | by substring |
| test_status_beats_message | 500 saying "not found" | GENERIC |
"""

from __future__ import annotations

import json

import pytest
from googleapiclient.errors import HttpError
from httplib2 import Response

from chronos.calendar.exceptions import (
    CalendarAPIError,
    CalendarAuthError,
    CalendarNotFoundError,
    CalendarRateLimitError,
    ConsentBlockedError,
    ConsentError,
    ProviderInitError,
    SyncFailure,
    classify_error,
    classify_http_error,
)
from chronos.models import SyncError, SyncErrorKind

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_http_error(status: int, message: str = "simulated error") -> HttpError:
    """Create a ``googleapiclient.errors.HttpError`` with the given status code."""
    resp = Response({"status": str(status)})
    content = json.dumps({"error": {"code": status, "message": message}}).encode()
    return HttpError(resp, content)


# ---------------------------------------------------------------------------
# Hierarchy
# ---------------------------------------------------------------------------


class TestHierarchy:
    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (CalendarAuthError(), 401),
            (ConsentError("denied"), 401),
            (ConsentBlockedError(), 401),
            (CalendarRateLimitError(), 429),
            (CalendarNotFoundError(), 404),
            (ProviderInitError("slow"), None),
        ],
    )
    def test_status_codes(self, error: CalendarAPIError, status: int | None) -> None:
        assert isinstance(error, CalendarAPIError)
        assert error.status_code == status

    def test_consent_errors_are_auth_errors(self) -> None:
        assert issubclass(ConsentBlockedError, ConsentError)
        assert issubclass(ConsentError, CalendarAuthError)

    def test_sync_failure_carries_error(self) -> None:
        error = SyncError(SyncErrorKind.GENERIC, "boom")
        failure = SyncFailure(error)

        assert failure.error is error
        assert failure.kind is SyncErrorKind.GENERIC
        assert str(failure) == "boom"


class TestClassifyHttpError:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (404, CalendarNotFoundError),
            (429, CalendarRateLimitError),
            (401, CalendarAuthError),
        ],
    )
    def test_mapped_statuses(self, status: int, expected: type) -> None:
        error = classify_http_error(_make_http_error(status))

        assert type(error) is expected
        assert error.status_code == status

    def test_other_status_keeps_code(self) -> None:
        error = classify_http_error(_make_http_error(503, "Backend Error"))

        assert type(error) is CalendarAPIError
        assert error.status_code == 503
        assert "Backend Error" in str(error)


# ---------------------------------------------------------------------------
# classify_error
# ---------------------------------------------------------------------------


class TestClassifyError:
    def test_http_404(self) -> None:
        result = classify_error(_make_http_error(404, "Not Found"), "team@example.com")

        assert result.kind is SyncErrorKind.NOT_FOUND
        assert "team@example.com" in result.message

    def test_http_401(self) -> None:
        result = classify_error(_make_http_error(401, "Invalid Credentials"), "primary")

        assert result.kind is SyncErrorKind.AUTH_REQUIRED
        assert result.requires_consent

    def test_http_500(self) -> None:
        result = classify_error(_make_http_error(500), "primary")

        assert result.kind is SyncErrorKind.GENERIC

    def test_missing_token(self) -> None:
        result = classify_error(CalendarAuthError("No valid Google token"), "primary")

        assert result.kind is SyncErrorKind.AUTH_REQUIRED

    def test_consent_blocked(self) -> None:
        result = classify_error(ConsentBlockedError(), "primary")

        assert result.kind is SyncErrorKind.POPUP_BLOCKED

    def test_consent_denied_keeps_provider_text(self) -> None:
        result = classify_error(ConsentError("access_denied"), "primary")

        assert result.kind is SyncErrorKind.GENERIC
        assert result.message == "access_denied"

    def test_init_failure_is_generic(self) -> None:
        result = classify_error(ProviderInitError("not ready after 10s"), "primary")

        assert result == SyncError(SyncErrorKind.GENERIC, "not ready after 10s")

    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("Requested entity was not found.", SyncErrorKind.NOT_FOUND),
            ("Login Required", SyncErrorKind.AUTH_REQUIRED),
            ("Invalid Credentials", SyncErrorKind.AUTH_REQUIRED),
            ("popup_failed_to_open", SyncErrorKind.POPUP_BLOCKED),
            ("connection reset by peer", SyncErrorKind.GENERIC),
        ],
    )
    def test_message_fallbacks(self, message: str, expected: SyncErrorKind) -> None:
        assert classify_error(RuntimeError(message), "primary").kind is expected

    def test_status_beats_message(self) -> None:
        """A known status is trusted over words in the message."""
        error = CalendarAPIError("upstream said not found", status_code=500)

        assert classify_error(error, "primary").kind is SyncErrorKind.GENERIC

    def test_generic_message_verbatim(self) -> None:
        result = classify_error(RuntimeError("Quota exceeded for quota metric"), "primary")

        assert result.message == "Quota exceeded for quota metric"

    def test_empty_message_uses_type_name(self) -> None:
        assert classify_error(TimeoutError(), "primary").message == "TimeoutError"

    def test_sync_failure_passes_through(self) -> None:
        error = SyncError(SyncErrorKind.NOT_FOUND, "gone")

        assert classify_error(SyncFailure(error), "primary") is error
