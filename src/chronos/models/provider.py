"""Model for the user's Google Calendar connection settings."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

PRIMARY_CALENDAR = "primary"
"""Google's alias for the signed-in user's own calendar."""


class ProviderConfig(BaseModel):
    """Credentials and calendar selection saved by the user.

    Persisted as a whole under a fixed key in the key/value store.  A config
    without ``client_id`` or ``api_key`` means "not configured".

    Attributes:
        client_id: OAuth client id from the Google Cloud Console.
        api_key: API key used for discovery and quota attribution.
        calendar_id: Calendar to mirror.  Blank becomes ``"primary"``.
        client_secret: Secret issued with desktop OAuth clients.  Optional;
            passed straight through to the consent flow.
    """

    client_id: str = ""
    api_key: str = ""
    calendar_id: str = PRIMARY_CALENDAR
    client_secret: str = ""

    @field_validator("client_id", "api_key", "client_secret")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("calendar_id")
    @classmethod
    def _default_calendar(cls, value: str) -> str:
        return value.strip() or PRIMARY_CALENDAR

    @property
    def is_configured(self) -> bool:
        """Whether both the client id and API key are present."""
        return bool(self.client_id and self.api_key)

    def __repr__(self) -> str:
        return (
            f"ProviderConfig(client_id={self.client_id!r}, api_key='***', "
            f"calendar_id={self.calendar_id!r}, client_secret='***')"
        )
