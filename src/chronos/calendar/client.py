"""Read-only Google Calendar client.

Provides :class:`GoogleCalendarClient`, a thin wrapper around the
``googleapiclient`` service resource that issues the one query the mirror
needs: a windowed ``events().list()`` with recurring events expanded into
instances, cancelled instances excluded, ordered by start time and capped at
:data:`MAX_RESULTS`.  Results beyond the cap are not paged in.

The service resource comes from the
:class:`~chronos.calendar.lifecycle.ApiLifecycleManager`; the token-carrying
transport comes from the :class:`~chronos.calendar.auth.AuthSession` and is
passed per request.  The blocking ``execute()`` call runs on a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from googleapiclient.errors import HttpError

from chronos.calendar.exceptions import classify_http_error

logger = logging.getLogger(__name__)

MAX_RESULTS = 100
"""Upper bound on events returned by a single fetch."""


class GoogleCalendarClient:
    """Issue windowed event queries against the Calendar API.

    Args:
        service: A ``googleapiclient`` Calendar v3 service resource.
        http: Authorised transport used to execute the request, or ``None``
            to use the transport the service was built with.
    """

    def __init__(self, service: Any, http: Any | None = None) -> None:
        self._service = service
        self._http = http

    async def list_events(
        self,
        calendar_id: str,
        time_min: datetime,
        time_max: datetime,
    ) -> list[dict]:
        """List the events of *calendar_id* within ``[time_min, time_max)``.

        Args:
            calendar_id: Calendar id, e.g. ``"primary"`` or an email.
            time_min: Start of the window.  Naive values are taken as UTC.
            time_max: End of the window.

        Returns:
            Event resource dicts in start-time order (at most
            :data:`MAX_RESULTS`).

        Raises:
            CalendarAPIError: A subclass matching the HTTP status of a
                failed request.
        """
        request = self._service.events().list(
            calendarId=calendar_id,
            timeMin=to_rfc3339(time_min),
            timeMax=to_rfc3339(time_max),
            showDeleted=False,
            singleEvents=True,
            maxResults=MAX_RESULTS,
            orderBy="startTime",
        )

        try:
            response = await asyncio.to_thread(self._execute, request)
        except HttpError as exc:
            error = classify_http_error(exc)
            logger.error(
                "Listing events for %s failed (HTTP %s): %s",
                calendar_id,
                error.status_code,
                error,
            )
            raise error from exc

        items = response.get("items") or []
        if response.get("nextPageToken"):
            logger.info("More than %d events in window; extra pages ignored", MAX_RESULTS)

        logger.info(
            "Listed %d event(s) for %s between %s and %s",
            len(items),
            calendar_id,
            time_min.isoformat(),
            time_max.isoformat(),
        )
        return items

    def _execute(self, request: Any) -> dict:
        if self._http is None:
            return request.execute()
        return request.execute(http=self._http)


def to_rfc3339(value: datetime) -> str:
    """Format *value* as an RFC 3339 timestamp, treating naive as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()
