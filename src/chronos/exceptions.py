"""Exceptions for chronos' local persistence.

Google Calendar errors live in :mod:`chronos.calendar.exceptions`.
"""

from __future__ import annotations


class StoreError(Exception):
    """Raised when the key/value store cannot be read or written.

    Attributes:
        path: The store file involved.
    """

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class ReadOnlyEventError(Exception):
    """Raised on an attempt to edit or delete a provider-sourced event.

    Events mirrored from Google Calendar are replaced only by the next sync.
    """
