"""Data models describing the state of the Google Calendar mirror.

- :class:`SyncErrorKind` / :class:`SyncError` -- a classified sync failure,
  held only for display and never persisted.
- :class:`SyncSnapshot` -- the read-only view of the sync subsystem that the
  UI layer renders buttons and banners from.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SyncErrorKind(str, Enum):
    """Failure classes the sync subsystem distinguishes."""

    NOT_FOUND = "not_found"
    AUTH_REQUIRED = "auth_required"
    POPUP_BLOCKED = "popup_blocked"
    GENERIC = "generic"


@dataclass(frozen=True)
class SyncError:
    """A classified sync failure.

    Attributes:
        kind: The failure class.
        message: Text shown verbatim to the user.  For
            :attr:`SyncErrorKind.NOT_FOUND` it names the calendar id.
    """

    kind: SyncErrorKind
    message: str

    @property
    def requires_consent(self) -> bool:
        """Whether recovering needs a new consent round."""
        return self.kind is SyncErrorKind.AUTH_REQUIRED


@dataclass(frozen=True)
class SyncSnapshot:
    """Point-in-time view of the sync subsystem.

    Attributes:
        state: Name of the current state machine state.
        is_configured: Whether a usable :class:`ProviderConfig` is saved.
        is_ready: Whether both Google client libraries are initialised.
        is_authenticated: Best-effort local token check.
        is_syncing: Whether a fetch is in flight.
        last_error: The most recent undismissed failure, if any.
    """

    state: str
    is_configured: bool = False
    is_ready: bool = False
    is_authenticated: bool = False
    is_syncing: bool = False
    last_error: SyncError | None = None
