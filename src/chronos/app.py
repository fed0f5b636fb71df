"""Wire the chronos components together from :class:`Settings`.

:func:`build_app` is the one place that knows how the pieces fit; the CLI and
the integration tests both go through it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from chronos.calendar.auth import AuthSession
from chronos.calendar.controller import CalendarSyncController
from chronos.calendar.lifecycle import ApiLifecycleManager
from chronos.calendar.sync import EventSyncEngine
from chronos.config import Settings
from chronos.models.event import CalendarEvent
from chronos.store import ConfigStore, KeyValueStore, LocalEventStore

logger = logging.getLogger(__name__)


@dataclass
class ChronosApp:
    """The assembled application.

    Attributes:
        settings: Settings the app was built from.
        local_events: Store of locally authored events.
        sync: Controller for the Google Calendar mirror.
    """

    settings: Settings
    local_events: LocalEventStore
    sync: CalendarSyncController

    def all_events(self) -> list[CalendarEvent]:
        """Local and provider events, concatenated, for display and export."""
        return self.sync.merged_events(self.local_events.events())


def build_app(
    settings: Settings,
    lifecycle: ApiLifecycleManager | None = None,
    session: AuthSession | None = None,
    engine: EventSyncEngine | None = None,
    today: date | None = None,
) -> ChronosApp:
    """Assemble a :class:`ChronosApp`.

    The optional arguments replace the default components; tests use them to
    inject fakes for the Google libraries.
    """
    store = KeyValueStore(settings.store_path)
    zone = settings.zone

    lifecycle = lifecycle or ApiLifecycleManager(timeout=settings.init_timeout)
    session = session or AuthSession(lifecycle, token_path=settings.token_path)
    engine = engine or EventSyncEngine(lifecycle, session, tz=zone)

    controller = CalendarSyncController(
        config_store=ConfigStore(store),
        lifecycle=lifecycle,
        session=session,
        engine=engine,
        tz=zone,
        today=today,
    )
    logger.debug("App assembled with store at %s", settings.store_path)
    return ChronosApp(
        settings=settings,
        local_events=LocalEventStore(store),
        sync=controller,
    )
