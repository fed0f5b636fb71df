"""OAuth 2.0 consent session for the Google Calendar mirror.

:class:`AuthSession` owns the user's access token.  It obtains one through
the desktop consent flow prepared by
:class:`~chronos.calendar.lifecycle.ApiLifecycleManager`, reuses it while it
stays valid (including across runs, via a cached ``token.json``), and revokes
it on sign-out.

Consent must only be requested as the direct result of a user action: the
sign-in window is a browser tab, and platforms may refuse to raise one that
nobody asked for.  Callers therefore make :meth:`AuthSession.request_consent`
the first thing they await after the user clicks "sync".

Usage::

    session = AuthSession(lifecycle, token_path=Path("token.json"))
    session.restore()
    if not session.has_valid_token():
        await session.request_consent()
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import webbrowser
from collections.abc import Callable
from pathlib import Path
from typing import Any

import google_auth_httplib2
import httplib2
from google.auth.exceptions import GoogleAuthError, RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from chronos.calendar.exceptions import (
    CalendarAuthError,
    ConsentBlockedError,
    ConsentError,
    ProviderNotReadyError,
)
from chronos.calendar.lifecycle import SCOPES, ApiLifecycleManager

logger = logging.getLogger(__name__)

REVOKE_URL = "https://oauth2.googleapis.com/revoke"

CONSENT_TIMEOUT = 300
"""Seconds the user has to finish signing in before consent fails."""

ConsentCallback = Callable[[Credentials | None, BaseException | None], None]
ConsentRunner = Callable[[Any, bool, ConsentCallback], None]


def run_consent_flow(flow: Any, first_time: bool, callback: ConsentCallback) -> None:
    """Run the desktop consent flow and report the outcome to *callback*.

    Opens the sign-in page in the user's browser and waits on a loopback
    server for the redirect.  Blocks, so it is run on a worker thread.  The
    loopback server stops waiting after :data:`CONSENT_TIMEOUT` seconds.

    Args:
        flow: An ``InstalledAppFlow``.
        first_time: ``True`` to force the account chooser and consent screen.
        callback: Receives ``(credentials, None)`` or ``(None, error)``.
    """
    kwargs: dict[str, Any] = {
        "port": 0,
        "open_browser": True,
        "timeout_seconds": CONSENT_TIMEOUT,
    }
    if first_time:
        kwargs["prompt"] = "consent"
    try:
        creds = flow.run_local_server(**kwargs)
    except webbrowser.Error as exc:
        callback(None, ConsentBlockedError(f"Could not open a browser for sign-in: {exc}"))
    except (OAuth2Error, GoogleAuthError, ValueError) as exc:
        callback(None, ConsentError(str(exc)))
    except Exception as exc:
        callback(None, exc)
    else:
        callback(creds, None)


class AuthSession:
    """Acquire, reuse and revoke the Google access token.

    Args:
        lifecycle: Provides the consent flow; must be ready before consent
            is requested.
        token_path: Optional cache file for the token.  When ``None`` the
            token lives only in memory.
        consent_runner: Runs the blocking consent flow.  Replace in tests.
        revoke: Callable used to revoke a token.  Replace in tests.
        consent_timeout: Seconds to wait for the consent flow to report back.
    """

    def __init__(
        self,
        lifecycle: ApiLifecycleManager,
        token_path: Path | None = None,
        consent_runner: ConsentRunner = run_consent_flow,
        revoke: Callable[[str], None] | None = None,
        consent_timeout: float = CONSENT_TIMEOUT,
    ) -> None:
        self._lifecycle = lifecycle
        self._token_path = token_path
        self._consent_runner = consent_runner
        self._revoke = revoke or _revoke_token
        self._consent_timeout = consent_timeout
        self._credentials: Credentials | None = None
        # Bumped by sign_out() and invalidate(); consent started under an
        # older generation must not install its token.
        self._generation = 0

    @property
    def credentials(self) -> Credentials | None:
        return self._credentials

    # ------------------------------------------------------------------
    # Consent
    # ------------------------------------------------------------------

    async def request_consent(self) -> None:
        """Obtain a usable token, prompting the user if necessary.

        Each call waits on its own future, settled by the consent flow's
        callback from the worker thread, for at most ``consent_timeout``
        seconds.  A token that arrives after :meth:`sign_out` or
        :meth:`invalidate` was called is discarded.

        Raises:
            ProviderNotReadyError: If the client libraries are not ready.
            ConsentBlockedError: If the sign-in window could not be shown.
            ConsentError: If the flow ended without a token (carrying the
                provider's error text), did not finish in time, or was
                overtaken by a sign-out.
        """
        if not self._lifecycle.ready:
            raise ProviderNotReadyError("Consent requested before initialisation")

        flow = self._lifecycle.consent_flow
        first_time = self._credentials is None
        generation = self._generation

        loop = asyncio.get_running_loop()
        completion: asyncio.Future[Credentials] = loop.create_future()

        def settle(creds: Credentials | None, error: BaseException | None) -> None:
            if completion.done():
                return
            if error is not None:
                completion.set_exception(error)
            elif creds is None:
                completion.set_exception(ConsentError("Consent flow returned no token"))
            else:
                completion.set_result(creds)

        def deliver(creds: Credentials | None, error: BaseException | None) -> None:
            if not loop.is_closed():
                loop.call_soon_threadsafe(settle, creds, error)

        logger.info("Requesting Google consent (first_time=%s)", first_time)
        threading.Thread(
            target=self._consent_runner,
            args=(flow, first_time, deliver),
            name="chronos-consent",
            daemon=True,
        ).start()

        try:
            creds = await asyncio.wait_for(completion, timeout=self._consent_timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Consent not completed within %ss", self._consent_timeout)
            raise ConsentError(
                f"Google sign-in was not completed within {self._consent_timeout:g} seconds"
            ) from exc
        except ConsentBlockedError:
            logger.warning("Consent window was blocked")
            raise
        except ConsentError as exc:
            logger.warning("Consent failed: %s", exc)
            raise

        if generation != self._generation:
            logger.info("Discarding token from a sign-in overtaken by sign-out")
            raise ConsentError("Sign-in was cancelled by signing out")

        self._credentials = creds
        self._save_token(creds)
        logger.info("Google consent granted")

    # ------------------------------------------------------------------
    # Token state
    # ------------------------------------------------------------------

    def has_valid_token(self) -> bool:
        """Best-effort local check; the API may still reject the token."""
        return self._credentials is not None and bool(self._credentials.valid)

    def restore(self) -> bool:
        """Reuse a cached token without prompting.

        An expired token with a refresh token is refreshed.  Nothing happens
        when no cache is configured or the cache is unusable.

        Returns:
            ``True`` if a valid token is now held.
        """
        if self._token_path is None or not self._token_path.exists():
            return False

        try:
            creds = Credentials.from_authorized_user_file(str(self._token_path), SCOPES)
        except (json.JSONDecodeError, ValueError, KeyError) as exc:
            logger.warning("Ignoring unreadable token cache %s: %s", self._token_path, exc)
            return False

        if not creds.valid and creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
            except (RefreshError, TransportError) as exc:
                logger.warning("Cached token refresh failed: %s", exc)
                return False
            self._save_token(creds)

        if not creds.valid:
            return False

        self._credentials = creds
        logger.info("Reusing cached Google token from %s", self._token_path)
        return True

    def invalidate(self) -> None:
        """Drop the local token so the next sync asks for consent again."""
        self._credentials = None
        self._generation += 1
        self._delete_cache()

    def sign_out(self) -> None:
        """Revoke the token and clear local token state.

        Revocation and removing the token cache are best effort: failures
        are logged, never raised.
        """
        creds = self._credentials
        self._credentials = None
        self._generation += 1
        self._delete_cache()

        if creds is None or not creds.token:
            return
        try:
            self._revoke(creds.token)
            logger.info("Google token revoked")
        except Exception as exc:
            logger.warning("Token revocation failed (ignored): %s", exc)

    def authorized_http(self) -> google_auth_httplib2.AuthorizedHttp:
        """Return an HTTP transport that sends the current token.

        Raises:
            CalendarAuthError: If no token is held.
        """
        if self._credentials is None:
            raise CalendarAuthError("No Google access token; sign in first")
        return google_auth_httplib2.AuthorizedHttp(self._credentials, http=httplib2.Http())

    # ------------------------------------------------------------------
    # Token cache
    # ------------------------------------------------------------------

    def _save_token(self, creds: Credentials) -> None:
        if self._token_path is None:
            return
        self._token_path.parent.mkdir(parents=True, exist_ok=True)
        self._token_path.write_text(creds.to_json())
        logger.debug("Token saved to %s", self._token_path)

    def _delete_cache(self) -> None:
        if self._token_path is None:
            return
        try:
            self._token_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove token cache %s: %s", self._token_path, exc)


def _revoke_token(token: str) -> None:
    """Revoke *token* at Google's OAuth revocation endpoint."""
    response = Request()(
        url=REVOKE_URL,
        method="POST",
        body=f"token={token}",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    if response.status != 200:
        raise CalendarAuthError(f"Revocation returned HTTP {response.status}")
