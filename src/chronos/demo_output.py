"""Console rendering for the chronos CLI.

:func:`format_status` renders a :class:`~chronos.models.SyncSnapshot` the way
the app's sidebar shows it (connection state plus any error banner), and
:func:`format_events` lists events grouped by day.  The ``print_*``
functions write to stdout.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from datetime import datetime, tzinfo
from itertools import groupby

from chronos.models.calendar import SyncSnapshot
from chronos.models.event import CalendarEvent

_BANNER_WIDTH = 60
_SEPARATOR = "=" * _BANNER_WIDTH

_STATE_LABELS = {
    "not_configured": "Not connected",
    "initializing": "Connecting...",
    "ready": "Ready - sync to sign in",
    "authenticating": "Waiting for Google sign-in",
    "authenticated": "Signed in",
    "syncing": "Syncing...",
    "synced": "Synced",
    "error": "Sync failed",
}


def format_status(snapshot: SyncSnapshot) -> str:
    """Render the sync state and any error banner."""
    lines = [_SEPARATOR, "  CHRONOS - GOOGLE CALENDAR", _SEPARATOR]
    lines.append(f"  Status: {_STATE_LABELS.get(snapshot.state, snapshot.state)}")
    lines.append(f"  Configured: {_yes_no(snapshot.is_configured)}")
    lines.append(f"  Libraries ready: {_yes_no(snapshot.is_ready)}")
    lines.append(f"  Signed in: {_yes_no(snapshot.is_authenticated)}")

    if snapshot.last_error is not None:
        lines.append("")
        lines.append(f"  [!] {snapshot.last_error.message}")

    lines.append(_SEPARATOR)
    return "\n".join(lines)


def format_events(
    events: Iterable[CalendarEvent],
    tz: tzinfo | None = None,
    show_ids: bool = False,
) -> str:
    """Render *events* sorted by start and grouped by local day.

    With *show_ids* each event is followed by its id, for the edit and
    delete commands.
    """
    ordered = sorted(events, key=lambda event: _local(event.start, tz))
    if not ordered:
        return "  No events."

    lines: list[str] = []
    for day, day_events in groupby(ordered, key=lambda event: _local(event.start, tz).date()):
        lines.append(day.strftime("%a %d %b %Y"))
        for event in day_events:
            marker = "G" if event.is_google_event else " "
            lines.append(
                f"  [{marker}] {_time_range(event, tz)}  {event.title}"
                f"  ({event.category.value})"
            )
            if event.location:
                lines.append(f"        @ {event.location}")
            if show_ids:
                lines.append(f"        id: {event.id}")
    return "\n".join(lines)


def print_status(snapshot: SyncSnapshot) -> None:
    sys.stdout.write(format_status(snapshot) + "\n")


def print_events(
    events: Iterable[CalendarEvent],
    tz: tzinfo | None = None,
    show_ids: bool = False,
) -> None:
    sys.stdout.write(format_events(events, tz, show_ids) + "\n")


def _time_range(event: CalendarEvent, tz: tzinfo | None) -> str:
    start = _local(event.start, tz)
    end = _local(event.end, tz)
    if start == end and start.hour == 0 and start.minute == 0:
        return "all day    "
    if (end - start).days >= 1 and start.hour == 0 and end.hour == 0:
        return "all day    "
    return f"{start:%H:%M}-{end:%H:%M}"


def _local(value: datetime, tz: tzinfo | None) -> datetime:
    if tz is None or value.tzinfo is None:
        return value
    return value.astimezone(tz)


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"
