"""Windowed fetch of provider events.

Provides :class:`EventSyncEngine`, which owns the provider-sourced event set.
A fetch queries one calendar for one time window, normalises every returned
record and, on success, replaces the whole set in a single assignment.

Fetches may overlap (for example when the visible month changes twice in
quick succession).  Every fetch is tagged with a sequence number when it
starts, and its result is only committed if no later-started fetch has
settled already.  A fetch settles when it commits or fails, so a slow
response for an older window is discarded rather than overwriting a newer
one, even when the newer one failed and left the previous set in place.

Every failure leaves the engine as a :class:`SyncFailure` carrying a
classified :class:`~chronos.models.calendar.SyncError`.  Nothing is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, tzinfo
from typing import Any

from chronos.calendar.auth import AuthSession
from chronos.calendar.client import GoogleCalendarClient
from chronos.calendar.event_mapper import normalize_event
from chronos.calendar.exceptions import (
    CalendarAuthError,
    ProviderNotReadyError,
    SyncFailure,
    classify_error,
)
from chronos.calendar.lifecycle import ApiLifecycleManager
from chronos.models.event import CalendarEvent

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Any, Any], GoogleCalendarClient]


class EventSyncEngine:
    """Fetch, normalise and hold provider events.

    Args:
        lifecycle: Must report ready before :meth:`fetch` is called.
        session: Supplies the access token.
        tz: Zone all-day events are placed in.
        client_factory: Builds a :class:`GoogleCalendarClient` from a service
            resource and an authorised transport.  Replace in tests.
    """

    def __init__(
        self,
        lifecycle: ApiLifecycleManager,
        session: AuthSession,
        tz: tzinfo | None = None,
        client_factory: ClientFactory = GoogleCalendarClient,
    ) -> None:
        self._lifecycle = lifecycle
        self._session = session
        self._tz = tz
        self._client_factory = client_factory
        self._events: tuple[CalendarEvent, ...] = ()
        self._issued = 0
        self._settled = 0
        self._window: tuple[datetime, datetime] | None = None

    @property
    def events(self) -> tuple[CalendarEvent, ...]:
        """The provider-sourced events from the latest committed fetch."""
        return self._events

    @property
    def window(self) -> tuple[datetime, datetime] | None:
        """The window the current :attr:`events` were fetched for."""
        return self._window

    async def fetch(
        self,
        calendar_id: str,
        window_start: datetime,
        window_end: datetime,
    ) -> list[CalendarEvent]:
        """Fetch the events of *calendar_id* in ``[window_start, window_end)``.

        Args:
            calendar_id: Calendar to query.
            window_start: Start of the window.
            window_end: End of the window.

        Returns:
            The normalised events of this fetch.  They are also committed to
            :attr:`events` unless a newer fetch has settled first.

        Raises:
            ProviderNotReadyError: If the client libraries are not ready.
            SyncFailure: For every provider or authentication failure.
        """
        if not self._lifecycle.ready:
            raise ProviderNotReadyError("fetch() called before initialisation")
        if not self._session.has_valid_token():
            raise SyncFailure(
                classify_error(CalendarAuthError("No valid Google token"), calendar_id)
            )

        self._issued += 1
        sequence = self._issued
        logger.info(
            "Fetch #%d: %s from %s to %s",
            sequence,
            calendar_id,
            window_start.isoformat(),
            window_end.isoformat(),
        )

        try:
            client = self._client_factory(
                self._lifecycle.calendar_service,
                self._session.authorized_http(),
            )
            raw_events = await client.list_events(calendar_id, window_start, window_end)
            events = [normalize_event(raw, tz=self._tz) for raw in raw_events]
        except ProviderNotReadyError:
            raise
        except Exception as exc:
            error = classify_error(exc, calendar_id)
            self._settled = max(self._settled, sequence)
            logger.warning("Fetch #%d failed (%s): %s", sequence, error.kind.value, error.message)
            raise SyncFailure(error) from exc

        if sequence <= self._settled:
            logger.info(
                "Discarding fetch #%d; fetch #%d already settled",
                sequence,
                self._settled,
            )
            return events

        self._events = tuple(events)
        self._window = (window_start, window_end)
        self._settled = sequence
        logger.info("Fetch #%d committed %d event(s)", sequence, len(events))
        return events

    def clear(self) -> None:
        """Drop all provider events and discard any fetch still in flight."""
        self._events = ()
        self._window = None
        self._settled = self._issued
        logger.info("Provider events cleared")
