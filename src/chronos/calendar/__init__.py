"""Read-only Google Calendar mirror for chronos."""

from __future__ import annotations

from chronos.calendar.auth import AuthSession
from chronos.calendar.calendar_id import resolve_calendar_id
from chronos.calendar.client import GoogleCalendarClient
from chronos.calendar.controller import CalendarSyncController, month_window
from chronos.calendar.event_mapper import CATEGORY_RULES, infer_category, normalize_event
from chronos.calendar.lifecycle import ApiLifecycleManager, ReadinessJoin
from chronos.calendar.state import SyncState, SyncStateMachine
from chronos.calendar.sync import EventSyncEngine

__all__ = [
    "CATEGORY_RULES",
    "ApiLifecycleManager",
    "AuthSession",
    "CalendarSyncController",
    "EventSyncEngine",
    "GoogleCalendarClient",
    "ReadinessJoin",
    "SyncState",
    "SyncStateMachine",
    "infer_category",
    "month_window",
    "normalize_event",
    "resolve_calendar_id",
]
