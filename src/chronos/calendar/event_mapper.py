"""Map Google Calendar event resources to :class:`CalendarEvent`.

Converts the dicts returned by ``events().list()`` into the application's
canonical event model.  The mapping covers:

- **start / end** -- timed events carry ``dateTime`` (an instant with an
  offset); all-day events carry ``date`` (a bare calendar date).  Bare dates
  are built directly from their year/month/day at local midnight.  Parsing
  them as instants would land them on UTC midnight and shift the day for
  anyone west of Greenwich.
- **category** -- inferred from the title with :data:`CATEGORY_RULES`.
- **title** -- ``"No Title"`` when the provider sends none.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone, tzinfo

from chronos.models.event import CalendarEvent, EventCategory

logger = logging.getLogger(__name__)

NO_TITLE = "No Title"
"""Placeholder title for provider events without a summary."""

DEFAULT_CATEGORY = EventCategory.MEETING
"""Category for provider events that match no rule."""


def _keywords(*words: str) -> Callable[[str], bool]:
    """Build a predicate matching a lowercased title containing any of *words*."""

    def predicate(title: str) -> bool:
        return any(word in title for word in words)

    return predicate


# Evaluated top to bottom; the first matching predicate decides.
CATEGORY_RULES: list[tuple[Callable[[str], bool], EventCategory]] = [
    (
        _keywords("lunch", "dinner", "party", "birthday", "anniversary", "celebration"),
        EventCategory.PERSONAL,
    ),
    (
        _keywords("doctor", "gym", "workout", "meditation", "dentist"),
        EventCategory.HEALTH,
    ),
    (
        _keywords("study", "course", "class", "learning", "tutorial"),
        EventCategory.LEARNING,
    ),
    (
        _keywords("work", "standup", "sync", "meeting", "dev", "code"),
        EventCategory.WORK,
    ),
]


def infer_category(title: str) -> EventCategory:
    """Guess an event's category from its title.

    Args:
        title: The event title; matching is case-insensitive.

    Returns:
        The category of the first rule in :data:`CATEGORY_RULES` that
        matches, or :data:`DEFAULT_CATEGORY`.
    """
    lowered = title.lower()
    for predicate, category in CATEGORY_RULES:
        if predicate(lowered):
            return category
    return DEFAULT_CATEGORY


def normalize_event(
    raw: dict,
    tz: tzinfo | None = None,
    now: Callable[[], datetime] | None = None,
) -> CalendarEvent:
    """Convert a Google Calendar event resource into a :class:`CalendarEvent`.

    Args:
        raw: An event resource dict from the Calendar API.
        tz: Zone that all-day dates are placed in.  Defaults to the host's
            local zone.
        now: Clock used when the event has no usable start at all.

    Returns:
        A provider-sourced :class:`CalendarEvent`.
    """
    zone = tz or _local_zone()
    start = _parse_boundary(raw.get("start"), zone)
    end = _parse_boundary(raw.get("end"), zone)

    if start is None:
        start = end if end is not None else _now(now, zone)
        if end is None:
            logger.warning("Event %s has no start or end; using now", raw.get("id"))
    if end is None or end < start:
        end = start

    title = raw.get("summary") or NO_TITLE

    return CalendarEvent(
        id=raw["id"],
        title=title,
        description=raw.get("description"),
        start=start,
        end=end,
        category=infer_category(title),
        location=raw.get("location"),
        is_google_event=True,
        google_id=raw["id"],
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _parse_boundary(boundary: dict | None, zone: tzinfo) -> datetime | None:
    """Parse an event ``start`` / ``end`` object.

    Returns ``None`` when the object is missing or holds neither a
    ``dateTime`` nor a ``date`` that can be parsed.
    """
    if not boundary:
        return None

    date_time = boundary.get("dateTime")
    if date_time:
        try:
            parsed = datetime.fromisoformat(date_time.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Unparseable dateTime %r", date_time)
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=zone)
        return parsed

    day = boundary.get("date")
    if day:
        return _local_midnight(day, zone)

    return None


def _local_midnight(day: str, zone: tzinfo) -> datetime | None:
    """Build local midnight for a ``YYYY-MM-DD`` string without any UTC step."""
    try:
        year, month, dom = (int(part) for part in day.split("-"))
        return datetime(year, month, dom, tzinfo=zone)
    except ValueError:
        logger.warning("Unparseable all-day date %r", day)
        return None


def _local_zone() -> tzinfo:
    return datetime.now().astimezone().tzinfo or timezone.utc


def _now(clock: Callable[[], datetime] | None, zone: tzinfo) -> datetime:
    if clock is not None:
        return clock()
    return datetime.now(zone)
