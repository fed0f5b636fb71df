"""chronos: personal calendar with a read-only Google Calendar mirror.

Local events are stored on disk; Google Calendar events are fetched on
demand for a window around the visible month and merged in for display
and export.
"""

from __future__ import annotations

from chronos.exceptions import ReadOnlyEventError, StoreError
from chronos.models.calendar import SyncError, SyncErrorKind, SyncSnapshot
from chronos.models.event import CalendarEvent, EventCategory
from chronos.models.provider import ProviderConfig
from chronos.store import ConfigStore, KeyValueStore, LocalEventStore, merge_events

__version__ = "0.1.0"

__all__ = [
    "CalendarEvent",
    "ConfigStore",
    "EventCategory",
    "KeyValueStore",
    "LocalEventStore",
    "ProviderConfig",
    "ReadOnlyEventError",
    "StoreError",
    "SyncError",
    "SyncErrorKind",
    "SyncSnapshot",
    "merge_events",
]
