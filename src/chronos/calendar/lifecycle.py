"""Readiness tracking for the two Google client libraries.

The mirror needs two independently initialised pieces before anything else
can happen:

- ``calendar_api`` -- the ``googleapiclient`` discovery service for Calendar
  v3, bound to the user's API key (data access).
- ``identity`` -- the ``google-auth-oauthlib`` flow bound to the user's OAuth
  client id (consent).

:class:`ApiLifecycleManager` loads both concurrently and reports ready once a
:class:`ReadinessJoin` has recorded both.  Each call to
:meth:`ApiLifecycleManager.initialize` starts from a brand-new join, so saving
new credentials always re-runs both loaders, and an older initialisation that
finishes late cannot mark the newer one ready.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from chronos.calendar.exceptions import ProviderInitError, ProviderNotReadyError
from chronos.models.provider import ProviderConfig

logger = logging.getLogger(__name__)

SCOPES: list[str] = ["https://www.googleapis.com/auth/calendar.events.readonly"]
"""OAuth 2.0 scopes requested; the mirror never writes back."""

CALENDAR_API = "calendar_api"
IDENTITY = "identity"

_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
_TOKEN_URI = "https://oauth2.googleapis.com/token"

Loader = Callable[[ProviderConfig], Any]


class ReadinessJoin:
    """Completes once every required prerequisite has been recorded."""

    def __init__(self, required: frozenset[str]) -> None:
        self._required = required
        self._recorded: set[str] = set()

    def record(self, name: str) -> None:
        if name not in self._required:
            raise ValueError(f"Unknown prerequisite: {name!r}")
        self._recorded.add(name)

    @property
    def is_complete(self) -> bool:
        return self._recorded >= self._required

    @property
    def pending(self) -> frozenset[str]:
        return self._required - self._recorded


def load_calendar_service(config: ProviderConfig) -> Any:
    """Build the Calendar v3 discovery service bound to the API key."""
    return build(
        "calendar",
        "v3",
        developerKey=config.api_key,
        cache_discovery=False,
    )


def load_consent_flow(config: ProviderConfig) -> InstalledAppFlow:
    """Build the desktop OAuth flow bound to the client id."""
    client_config = {
        "installed": {
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "auth_uri": _AUTH_URI,
            "token_uri": _TOKEN_URI,
            "redirect_uris": ["http://localhost"],
        }
    }
    return InstalledAppFlow.from_client_config(client_config, scopes=SCOPES)


class ApiLifecycleManager:
    """Initialises the Google client libraries and exposes a ready signal.

    Args:
        timeout: Seconds to wait for both libraries before failing.
        calendar_loader: Builds the data-access service.  Replace in tests.
        identity_loader: Builds the consent flow.  Replace in tests.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        calendar_loader: Loader = load_calendar_service,
        identity_loader: Loader = load_consent_flow,
    ) -> None:
        self._timeout = timeout
        self._loaders: dict[str, Loader] = {
            CALENDAR_API: calendar_loader,
            IDENTITY: identity_loader,
        }
        self._join: ReadinessJoin | None = None
        self._handles: dict[str, Any] = {}
        self._config: ProviderConfig | None = None

    @property
    def ready(self) -> bool:
        """Whether both libraries finished initialising for the current config."""
        return self._join is not None and self._join.is_complete

    @property
    def config(self) -> ProviderConfig | None:
        """The config the current (or last attempted) initialisation used."""
        return self._config

    @property
    def calendar_service(self) -> Any:
        return self._require(CALENDAR_API)

    @property
    def consent_flow(self) -> InstalledAppFlow:
        return self._require(IDENTITY)

    async def initialize(self, config: ProviderConfig) -> None:
        """Load both client libraries for *config*.

        Returns once both have completed.  Any previous readiness is
        discarded before loading starts.

        Args:
            config: The credentials to initialise with.

        Raises:
            ProviderInitError: If either loader fails or they do not both
                finish within the timeout.
        """
        join = ReadinessJoin(frozenset(self._loaders))
        self._join = join
        self._handles = {}
        self._config = config
        logger.info("Initialising Google client libraries")

        try:
            await asyncio.wait_for(
                asyncio.gather(
                    *(
                        self._load(join, name, loader, config)
                        for name, loader in self._loaders.items()
                    )
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            pending = ", ".join(sorted(join.pending))
            self._abandon(join)
            raise ProviderInitError(
                f"Google client libraries not ready after {self._timeout:.0f}s "
                f"(waiting on: {pending})"
            ) from exc
        except ProviderInitError:
            self._abandon(join)
            raise

        if self._join is join:
            logger.info("Google client libraries ready")

    def reset(self) -> None:
        """Forget all readiness and loaded handles."""
        self._join = None
        self._handles = {}
        self._config = None

    async def _load(
        self,
        join: ReadinessJoin,
        name: str,
        loader: Loader,
        config: ProviderConfig,
    ) -> None:
        try:
            handle = await asyncio.to_thread(loader, config)
        except Exception as exc:
            logger.error("Failed to initialise %s: %s", name, exc)
            raise ProviderInitError(f"Failed to initialise {name}: {exc}") from exc

        if self._join is not join:
            logger.debug("Discarding %s from a superseded initialisation", name)
            return
        self._handles[name] = handle
        join.record(name)
        logger.debug("%s initialised", name)

    def _abandon(self, join: ReadinessJoin) -> None:
        if self._join is join:
            self._join = None
            self._handles = {}

    def _require(self, name: str) -> Any:
        if not self.ready:
            raise ProviderNotReadyError("Google client libraries are not initialised")
        return self._handles[name]
