"""UI-facing facade over the Google Calendar mirror.

:class:`CalendarSyncController` owns the lifecycle manager, the auth session,
the sync engine and the state machine, and is the only thing the rest of the
application talks to.  It hands out read-only snapshots
(:meth:`~CalendarSyncController.snapshot`,
:attr:`~CalendarSyncController.provider_events`) and accepts four actions:
save config, trigger sync, change the visible month, disconnect.

No exception from the provider reaches the caller of an action: every
failure ends up as ``snapshot().last_error``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime, tzinfo

from chronos.calendar.auth import AuthSession
from chronos.calendar.calendar_id import resolve_calendar_id
from chronos.calendar.exceptions import ProviderInitError, SyncFailure, classify_error
from chronos.calendar.lifecycle import ApiLifecycleManager
from chronos.calendar.state import SyncState, SyncStateMachine
from chronos.calendar.sync import EventSyncEngine
from chronos.models.calendar import SyncError, SyncErrorKind, SyncSnapshot
from chronos.models.event import CalendarEvent
from chronos.models.provider import ProviderConfig
from chronos.store import ConfigStore, merge_events

logger = logging.getLogger(__name__)


def month_window(visible: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return the fetch window around the month containing *visible*.

    The window starts on the first day of the previous month and ends
    (exclusive) on the first day of the month after next, at local midnight.
    """
    start_year, start_month = _shift_month(visible.year, visible.month, -1)
    end_year, end_month = _shift_month(visible.year, visible.month, 2)
    return (
        datetime(start_year, start_month, 1, tzinfo=tz),
        datetime(end_year, end_month, 1, tzinfo=tz),
    )


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


class CalendarSyncController:
    """Coordinate configuration, consent and fetching for the UI layer.

    Args:
        config_store: Where the provider config is persisted.
        lifecycle: Client library readiness.
        session: Token owner.
        engine: Fetches and holds provider events.
        tz: Zone used for the visible month window.
        today: The initially visible day.  Defaults to today in *tz*.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        lifecycle: ApiLifecycleManager,
        session: AuthSession,
        engine: EventSyncEngine,
        tz: tzinfo,
        today: date | None = None,
    ) -> None:
        self._config_store = config_store
        self._lifecycle = lifecycle
        self._session = session
        self._engine = engine
        self._tz = tz
        self._machine = SyncStateMachine()
        self._config: ProviderConfig | None = None
        self._visible = today or datetime.now(tz).date()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> SyncState:
        return self._machine.state

    @property
    def config(self) -> ProviderConfig | None:
        return self._config

    @property
    def visible_month(self) -> date:
        return self._visible

    @property
    def provider_events(self) -> tuple[CalendarEvent, ...]:
        """Events mirrored by the latest committed fetch."""
        return self._engine.events

    def snapshot(self) -> SyncSnapshot:
        """Return the current state for rendering."""
        return SyncSnapshot(
            state=self._machine.state.value,
            is_configured=self._config is not None and self._config.is_configured,
            is_ready=self._lifecycle.ready,
            is_authenticated=self._session.has_valid_token(),
            is_syncing=self._machine.state is SyncState.SYNCING,
            last_error=self._machine.last_error,
        )

    def merged_events(self, local: Iterable[CalendarEvent]) -> list[CalendarEvent]:
        """Local events followed by provider events."""
        return merge_events(local, self._engine.events)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load the saved config and initialise the client libraries.

        A cached token is reused if one exists; the user is never prompted
        from here.
        """
        config = self._config_store.load()
        if config is None or not config.is_configured:
            logger.info("Google Calendar not configured")
            return
        self._config = config
        if await self._initialize(config):
            self._session.restore()

    async def save_config(self, config: ProviderConfig) -> None:
        """Persist *config* and re-initialise with it.

        A pasted share link in ``calendar_id`` is resolved first.  Saving a
        config without client id or API key disconnects instead.
        """
        if not config.is_configured:
            logger.warning("Config without client id or API key; disconnecting")
            self.disconnect()
            return

        resolved = config.model_copy(
            update={"calendar_id": resolve_calendar_id(config.calendar_id)}
        )
        credentials_changed = self._config is None or (
            (resolved.client_id, resolved.api_key) != (self._config.client_id, self._config.api_key)
        )
        self._config_store.save(resolved)
        self._config = resolved
        self._engine.clear()
        if credentials_changed:
            self._session.sign_out()
        await self._initialize(resolved)

    async def trigger_sync(self) -> None:
        """Fetch the current window, asking for consent first if needed.

        Call this straight from the user's action.  When consent is needed,
        :meth:`AuthSession.request_consent` is the first thing awaited here.
        A trigger while consent or a fetch is in flight does nothing.
        """
        if self._machine.is_busy:
            logger.info("Sync already in progress; trigger ignored")
            return
        if self._config is None or not self._lifecycle.ready:
            logger.warning("Sync triggered before Google Calendar is ready")
            return

        next_state = self._machine.next_trigger_state()
        if next_state is SyncState.AUTHENTICATING or not self._session.has_valid_token():
            if not await self._authenticate():
                return

        await self._sync_window()

    async def set_visible_month(self, visible: date) -> None:
        """Change the visible month and refetch if already signed in."""
        self._visible = visible
        if (
            self._lifecycle.ready
            and self._session.has_valid_token()
            and not self._machine.needs_consent
            and not self._machine.is_busy
        ):
            await self._sync_window()

    def disconnect(self) -> None:
        """Forget the config, the token and all provider events."""
        self._session.sign_out()
        self._engine.clear()
        self._config_store.clear()
        self._lifecycle.reset()
        self._config = None
        self._machine.disconnect()
        logger.info("Disconnected from Google Calendar")

    def dismiss_error(self) -> None:
        self._machine.dismiss_error()

    # ------------------------------------------------------------------
    # Internal steps
    # ------------------------------------------------------------------

    async def _initialize(self, config: ProviderConfig) -> bool:
        # New credentials start a fresh run of the machine; anything in
        # flight for the old config is ignored when it lands.
        self._machine.disconnect()
        self._machine.transition(SyncState.INITIALIZING)
        try:
            await self._lifecycle.initialize(config)
        except ProviderInitError as exc:
            if self._config is config:
                self._machine.fail(SyncError(SyncErrorKind.GENERIC, str(exc)))
            return False
        if self._config is not config:
            return False
        self._machine.transition(SyncState.READY)
        return True

    async def _authenticate(self) -> bool:
        config = self._config
        self._machine.transition(SyncState.AUTHENTICATING)
        try:
            await self._session.request_consent()
        except Exception as exc:
            if self._config is not config:
                return False
            self._machine.fail(classify_error(exc, config.calendar_id if config else ""))
            return False
        if self._config is not config or self._machine.state is not SyncState.AUTHENTICATING:
            return False
        self._machine.transition(SyncState.AUTHENTICATED)
        return True

    async def _sync_window(self) -> None:
        config = self._config
        if config is None or not self._machine.begin_sync():
            return

        window_start, window_end = month_window(self._visible, self._tz)
        try:
            await self._engine.fetch(config.calendar_id, window_start, window_end)
        except SyncFailure as exc:
            if self._config is not config or self._machine.state is not SyncState.SYNCING:
                logger.info("Ignoring failure of a superseded sync")
                return
            if exc.kind is SyncErrorKind.AUTH_REQUIRED:
                self._session.invalidate()
                self._engine.clear()
            self._machine.fail(exc.error)
            return

        if self._config is not config or self._machine.state is not SyncState.SYNCING:
            logger.info("Ignoring result of a superseded sync")
            return
        self._machine.succeed()
