"""Data models for chronos."""

from __future__ import annotations

from chronos.models.calendar import SyncError, SyncErrorKind, SyncSnapshot
from chronos.models.event import CalendarEvent, EventCategory
from chronos.models.provider import PRIMARY_CALENDAR, ProviderConfig

__all__ = [
    "PRIMARY_CALENDAR",
    "CalendarEvent",
    "EventCategory",
    "ProviderConfig",
    "SyncError",
    "SyncErrorKind",
    "SyncSnapshot",
]
