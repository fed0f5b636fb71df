"""Local persistence for chronos.

Everything the app keeps between runs lives in one JSON object on disk,
keyed by fixed strings:

- :data:`CONFIG_KEY` -- the saved :class:`~chronos.models.ProviderConfig`.
- :data:`EVENTS_KEY` -- locally authored events.

The file is rewritten on every mutation.  Provider-sourced events are never
stored; they are fetched again on each sync.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from chronos.exceptions import ReadOnlyEventError, StoreError
from chronos.models.event import CalendarEvent
from chronos.models.provider import ProviderConfig

logger = logging.getLogger(__name__)

CONFIG_KEY = "chronos_google_config"
EVENTS_KEY = "chronos_events"


class KeyValueStore:
    """A JSON object on disk, rewritten atomically on each change.

    Args:
        path: Location of the JSON file.  Created on first write.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._data: dict[str, Any] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def delete(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Cannot read store {self._path}: {exc}", str(self._path)) from exc
        if not isinstance(data, dict):
            raise StoreError(f"Store {self._path} does not hold a JSON object", str(self._path))
        return data

    def _flush(self) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(self._data, indent=2, sort_keys=True))
            os.replace(tmp, self._path)
        except OSError as exc:
            raise StoreError(f"Cannot write store {self._path}: {exc}", str(self._path)) from exc


class ConfigStore:
    """Load, save and clear the provider config."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def load(self) -> ProviderConfig | None:
        """Return the saved config, or ``None`` if absent or unreadable."""
        raw = self._store.get(CONFIG_KEY)
        if raw is None:
            return None
        try:
            return ProviderConfig.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Ignoring invalid saved Google config: %s", exc)
            return None

    def save(self, config: ProviderConfig) -> None:
        self._store.set(CONFIG_KEY, config.model_dump())
        logger.info("Google config saved (calendar=%s)", config.calendar_id)

    def clear(self) -> None:
        self._store.delete(CONFIG_KEY)
        logger.info("Google config cleared")


class LocalEventStore:
    """The user's own events, keyed by id.

    Provider-sourced events are refused on every write path.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._events: dict[str, CalendarEvent] = {}
        for raw in store.get(EVENTS_KEY, []):
            try:
                event = CalendarEvent.model_validate(raw)
            except ValidationError as exc:
                logger.warning("Skipping unreadable stored event: %s", exc)
                continue
            if not event.is_google_event:
                self._events[event.id] = event

    def events(self) -> list[CalendarEvent]:
        """Local events ordered by start."""
        return sorted(self._events.values(), key=lambda event: event.start)

    def get(self, event_id: str) -> CalendarEvent | None:
        return self._events.get(event_id)

    def add(self, event: CalendarEvent) -> CalendarEvent:
        _reject_provider_event(event)
        self._events[event.id] = event
        self._flush()
        logger.info("Added local event '%s' (id=%s)", event.title, event.id)
        return event

    def update(self, event: CalendarEvent) -> CalendarEvent:
        _reject_provider_event(event)
        if event.id not in self._events:
            raise KeyError(event.id)
        self._events[event.id] = event
        self._flush()
        logger.info("Updated local event '%s' (id=%s)", event.title, event.id)
        return event

    def delete(self, event: CalendarEvent | str) -> bool:
        """Delete a local event by instance or id.

        Returns:
            ``True`` if an event was removed.
        """
        if isinstance(event, CalendarEvent):
            _reject_provider_event(event)
            event_id = event.id
        else:
            event_id = event
        if self._events.pop(event_id, None) is None:
            return False
        self._flush()
        logger.info("Deleted local event (id=%s)", event_id)
        return True

    def _flush(self) -> None:
        self._store.set(
            EVENTS_KEY,
            [event.model_dump(mode="json") for event in self._events.values()],
        )


def merge_events(
    local: Iterable[CalendarEvent],
    provider: Iterable[CalendarEvent],
) -> list[CalendarEvent]:
    """Concatenate local and provider events for display and export.

    No de-duplication happens; the two sources stay distinct records.
    """
    return [*local, *provider]


def _reject_provider_event(event: CalendarEvent) -> None:
    if event.is_google_event:
        raise ReadOnlyEventError(
            f"Event '{event.title}' comes from Google Calendar and cannot be changed here"
        )
