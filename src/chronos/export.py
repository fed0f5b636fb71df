"""Export events to iCalendar (ICS) and CSV.

Both formats take the merged event list; provider and local events are
written the same way.  Event times are written as local wall-clock times in
the configured zone, without a TZID, so calendar apps import them as
floating times.  The iCalendar document is built with :mod:`icalendar`,
which handles text escaping and line folding.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from datetime import datetime, timezone, tzinfo

from icalendar import Calendar, Event

from chronos.models.event import CalendarEvent

_PRODID = "-//Chronos//Calendar Export//EN"
_CSV_HEADERS = [
    "Subject",
    "Start Date",
    "Start Time",
    "End Date",
    "End Time",
    "Description",
    "Location",
    "Category",
]


def generate_ics(
    events: Iterable[CalendarEvent],
    tz: tzinfo | None = None,
    now: datetime | None = None,
) -> str:
    """Render *events* as an iCalendar document.

    Args:
        events: Events to write, in order.
        tz: Zone event times are converted to before being written.
        now: Creation time written as ``DTSTAMP`` (in UTC).  Defaults to now.

    Returns:
        The document text, CRLF line endings, long lines folded.
    """
    stamp = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)

    cal = Calendar()
    cal.add("prodid", _PRODID)
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")

    for event in events:
        vevent = Event()
        vevent.add("uid", event.id)
        vevent.add("dtstamp", stamp)
        vevent.add("dtstart", _floating(event.start, tz))
        vevent.add("dtend", _floating(event.end, tz))
        vevent.add("summary", event.title)
        if event.description:
            vevent.add("description", event.description)
        if event.location:
            vevent.add("location", event.location)
        vevent.add("categories", [event.category.value])
        cal.add_component(vevent)

    return cal.to_ical().decode("utf-8")


def generate_csv(events: Iterable[CalendarEvent], tz: tzinfo | None = None) -> str:
    """Render *events* as CSV in the column layout calendar apps import."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(_CSV_HEADERS)
    for event in events:
        start = _local(event.start, tz)
        end = _local(event.end, tz)
        writer.writerow(
            [
                event.title,
                start.strftime("%m/%d/%Y"),
                start.strftime("%I:%M %p"),
                end.strftime("%m/%d/%Y"),
                end.strftime("%I:%M %p"),
                event.description or "",
                event.location or "",
                event.category.value,
            ]
        )
    return buffer.getvalue().rstrip("\n")


def _floating(value: datetime, tz: tzinfo | None) -> datetime:
    return _local(value, tz).replace(tzinfo=None)


def _local(value: datetime, tz: tzinfo | None) -> datetime:
    if value.tzinfo is None or tz is None:
        return value
    return value.astimezone(tz)
