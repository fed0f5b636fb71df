"""Observable state of the Google Calendar mirror.

:class:`SyncStateMachine` is what the UI layer renders its sync affordances
from, and what stops a second fetch from starting while one is in flight.

State flow::

    NOT_CONFIGURED -> INITIALIZING -> READY -> AUTHENTICATING -> AUTHENTICATED
        -> SYNCING -> SYNCED | ERROR

``SYNCED`` and ``ERROR`` go back to ``SYNCING`` on the next trigger, except
that an ``ERROR`` of kind ``AUTH_REQUIRED`` goes back to ``AUTHENTICATING``.
Disconnecting returns to ``NOT_CONFIGURED`` from anywhere.
"""

from __future__ import annotations

import logging
from enum import Enum

from chronos.models.calendar import SyncError

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    NOT_CONFIGURED = "not_configured"
    INITIALIZING = "initializing"
    READY = "ready"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"


_TRANSITIONS: dict[SyncState, frozenset[SyncState]] = {
    SyncState.NOT_CONFIGURED: frozenset({SyncState.INITIALIZING}),
    SyncState.INITIALIZING: frozenset({SyncState.READY, SyncState.ERROR}),
    SyncState.READY: frozenset(
        {SyncState.AUTHENTICATING, SyncState.SYNCING, SyncState.INITIALIZING}
    ),
    SyncState.AUTHENTICATING: frozenset({SyncState.AUTHENTICATED, SyncState.ERROR}),
    SyncState.AUTHENTICATED: frozenset(
        {SyncState.SYNCING, SyncState.AUTHENTICATING, SyncState.INITIALIZING}
    ),
    SyncState.SYNCING: frozenset({SyncState.SYNCED, SyncState.ERROR}),
    SyncState.SYNCED: frozenset(
        {SyncState.SYNCING, SyncState.AUTHENTICATING, SyncState.INITIALIZING}
    ),
    SyncState.ERROR: frozenset(
        {SyncState.SYNCING, SyncState.AUTHENTICATING, SyncState.INITIALIZING}
    ),
}


class InvalidTransitionError(RuntimeError):
    """Raised on a state change the machine does not allow."""


class SyncStateMachine:
    """Current sync state plus the last undismissed error."""

    def __init__(self) -> None:
        self._state = SyncState.NOT_CONFIGURED
        self._last_error: SyncError | None = None
        self._needs_consent = False

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def last_error(self) -> SyncError | None:
        return self._last_error

    @property
    def needs_consent(self) -> bool:
        """Whether the last failure requires a new consent round."""
        return self._needs_consent

    @property
    def is_busy(self) -> bool:
        """Whether consent or a fetch is in progress."""
        return self._state in (SyncState.SYNCING, SyncState.AUTHENTICATING)

    def transition(self, target: SyncState) -> None:
        """Move to *target*.

        Raises:
            InvalidTransitionError: If *target* is not reachable from the
                current state.
        """
        if target is SyncState.NOT_CONFIGURED:
            self.disconnect()
            return
        if target not in _TRANSITIONS[self._state]:
            raise InvalidTransitionError(
                f"Cannot go from {self._state.value} to {target.value}"
            )
        logger.debug("Sync state %s -> %s", self._state.value, target.value)
        self._state = target
        if target is SyncState.AUTHENTICATED:
            self._needs_consent = False

    def begin_sync(self) -> bool:
        """Enter ``SYNCING`` unless a fetch is already in flight.

        Returns:
            ``False`` (and changes nothing) when already ``SYNCING``.
        """
        if self._state is SyncState.SYNCING:
            logger.debug("Sync already in flight; trigger ignored")
            return False
        self.transition(SyncState.SYNCING)
        return True

    def succeed(self) -> None:
        """Leave ``SYNCING`` for ``SYNCED`` and clear any earlier error."""
        self.transition(SyncState.SYNCED)
        self._last_error = None

    def fail(self, error: SyncError) -> None:
        """Enter ``ERROR`` holding *error* for display."""
        self.transition(SyncState.ERROR)
        self._last_error = error
        if error.requires_consent:
            self._needs_consent = True
        logger.info("Sync error (%s): %s", error.kind.value, error.message)

    def next_trigger_state(self) -> SyncState:
        """State a new sync trigger leads to from here."""
        if self._needs_consent:
            return SyncState.AUTHENTICATING
        return SyncState.SYNCING

    def dismiss_error(self) -> None:
        """Clear the displayed error; the state itself is untouched."""
        self._last_error = None

    def disconnect(self) -> None:
        """Return to ``NOT_CONFIGURED`` from any state."""
        logger.debug("Sync state %s -> not_configured", self._state.value)
        self._state = SyncState.NOT_CONFIGURED
        self._last_error = None
        self._needs_consent = False
