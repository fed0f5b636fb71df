"""Pydantic models for calendar events.

Defines the canonical event representation shared by the whole application:

- :class:`EventCategory` -- the fixed set of categories used for colouring
  and for the productivity breakdown.
- :class:`CalendarEvent` -- a single event, either authored locally or
  mirrored from Google Calendar.  The two kinds are never merged into one
  record; ``is_google_event`` is the only thing that tells them apart.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator


class EventCategory(str, Enum):
    """Category attached to every event."""

    WORK = "Work"
    PERSONAL = "Personal"
    HEALTH = "Health"
    LEARNING = "Learning"
    MEETING = "Meeting"
    OTHER = "Other"


class CalendarEvent(BaseModel):
    """A calendar event in the application's canonical shape.

    Provider-sourced instances are frozen: nothing in the application may
    edit or delete them, they are only ever replaced wholesale by the next
    successful fetch.

    Attributes:
        id: Identifier, unique within the event's source.  For provider
            events this equals ``google_id``.
        title: Event title.
        description: Free-text description, or ``None``.
        start: Event start.
        end: Event end; never before ``start``.
        category: The event's :class:`EventCategory`.
        location: Event location, or ``None``.
        is_google_event: ``True`` for events mirrored from Google Calendar.
        google_id: Google Calendar event id, provider events only.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str | None = None
    start: datetime
    end: datetime
    category: EventCategory = EventCategory.OTHER
    location: str | None = None
    is_google_event: bool = False
    google_id: str | None = None

    @model_validator(mode="after")
    def _check_span(self) -> CalendarEvent:
        if self.end < self.start:
            raise ValueError(
                f"end ({self.end.isoformat()}) must not be before "
                f"start ({self.start.isoformat()})"
            )
        if self.is_google_event and self.google_id != self.id:
            raise ValueError("provider events must have id == google_id")
        return self

    @classmethod
    def new_local(
        cls,
        title: str,
        start: datetime,
        end: datetime,
        category: EventCategory = EventCategory.OTHER,
        description: str | None = None,
        location: str | None = None,
    ) -> CalendarEvent:
        """Create a locally authored event with a freshly generated id."""
        return cls(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            start=start,
            end=end,
            category=category,
            location=location,
        )
