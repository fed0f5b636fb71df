"""Tests for mapping Calendar API event resources to :class:`CalendarEvent`.

Test matrix:

| Test | Scenario | Expected |
|---|---|---|
| test_timed_event | dateTime with offset | aware instant preserved |
| test_utc_z_suffix | trailing ``Z`` | parsed as UTC |
| test_all_day_event_no_day_shift | date only, zone west of UTC | local midnight, same day |
| test_all_day_multi_day | date range | start/end at local midnight |
| test_only_start | end missing | end == start |
| test_end_before_start | inverted span | end clamped to start |
| test_no_start_no_end | both missing | both == now |
| test_missing_title | no summary | "No Title", Meeting |
| test_category_rules | keyword titles | first matching rule wins |
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from chronos.calendar.event_mapper import (
    CATEGORY_RULES,
    NO_TITLE,
    infer_category,
    normalize_event,
)
from chronos.models import EventCategory
from tests.fakes import make_raw_event

_VANCOUVER = ZoneInfo("America/Vancouver")


class TestTimes:
    def test_timed_event(self) -> None:
        event = normalize_event(make_raw_event("g-1"), tz=_VANCOUVER)

        assert event.start == datetime(2024, 3, 15, 17, 0, tzinfo=timezone.utc)
        assert event.end - event.start == timedelta(hours=1)
        assert event.start.utcoffset() == timedelta(hours=-7)

    def test_utc_z_suffix(self) -> None:
        raw = make_raw_event(
            "g-1",
            start={"dateTime": "2024-03-15T17:00:00Z"},
            end={"dateTime": "2024-03-15T18:00:00Z"},
        )

        event = normalize_event(raw, tz=_VANCOUVER)

        assert event.start == datetime(2024, 3, 15, 17, 0, tzinfo=timezone.utc)

    def test_naive_datetime_gets_zone(self) -> None:
        raw = make_raw_event(
            "g-1",
            start={"dateTime": "2024-03-15T09:00:00"},
            end={"dateTime": "2024-03-15T10:00:00"},
        )

        event = normalize_event(raw, tz=_VANCOUVER)

        assert event.start == datetime(2024, 3, 15, 9, 0, tzinfo=_VANCOUVER)

    def test_all_day_event_no_day_shift(self) -> None:
        """A bare date lands on local midnight of that same date."""
        raw = make_raw_event(
            "g-2", "Company Holiday", start={"date": "2024-03-20"}, end={"date": "2024-03-20"}
        )

        event = normalize_event(raw, tz=_VANCOUVER)

        assert event.start == datetime(2024, 3, 20, 0, 0, tzinfo=_VANCOUVER)
        assert event.start.date().day == 20
        assert event.end == event.start

    def test_all_day_multi_day(self) -> None:
        raw = make_raw_event(
            "g-2", "Offsite", start={"date": "2024-03-20"}, end={"date": "2024-03-22"}
        )

        event = normalize_event(raw, tz=_VANCOUVER)

        assert event.start == datetime(2024, 3, 20, tzinfo=_VANCOUVER)
        assert event.end == datetime(2024, 3, 22, tzinfo=_VANCOUVER)

    def test_only_start(self) -> None:
        raw = make_raw_event("g-3")
        del raw["end"]

        event = normalize_event(raw, tz=_VANCOUVER)

        assert event.end == event.start

    def test_only_end(self) -> None:
        raw = make_raw_event("g-3")
        del raw["start"]

        event = normalize_event(raw, tz=_VANCOUVER)

        assert event.start == event.end

    def test_end_before_start(self) -> None:
        raw = make_raw_event(
            "g-3",
            start={"dateTime": "2024-03-15T12:00:00Z"},
            end={"dateTime": "2024-03-15T11:00:00Z"},
        )

        event = normalize_event(raw, tz=_VANCOUVER)

        assert event.end == event.start

    def test_no_start_no_end(self) -> None:
        raw = {"id": "g-4", "summary": "Floating"}
        fixed = datetime(2024, 3, 1, 8, 30, tzinfo=_VANCOUVER)

        event = normalize_event(raw, tz=_VANCOUVER, now=lambda: fixed)

        assert event.start == fixed
        assert event.end == fixed

    def test_unparseable_boundary_treated_as_missing(self) -> None:
        raw = make_raw_event("g-5", end={"dateTime": "yesterday-ish"})

        event = normalize_event(raw, tz=_VANCOUVER)

        assert event.end == event.start


class TestFields:
    def test_provider_identity(self) -> None:
        event = normalize_event(make_raw_event("abc123"), tz=_VANCOUVER)

        assert event.id == "abc123"
        assert event.google_id == "abc123"
        assert event.is_google_event is True

    def test_optional_fields_passed_through(self) -> None:
        raw = make_raw_event("g-1", description="Agenda inside", location="Room 4")

        event = normalize_event(raw, tz=_VANCOUVER)

        assert event.description == "Agenda inside"
        assert event.location == "Room 4"

    @pytest.mark.parametrize("summary", [None, ""])
    def test_missing_title(self, summary: str | None) -> None:
        raw = make_raw_event("g-1", summary=summary)

        event = normalize_event(raw, tz=_VANCOUVER)

        assert event.title == NO_TITLE
        assert event.category is EventCategory.MEETING


class TestCategoryRules:
    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Team Sync", EventCategory.WORK),
            ("Daily STANDUP", EventCategory.WORK),
            ("Code review", EventCategory.WORK),
            ("Lunch with Sam", EventCategory.PERSONAL),
            ("Mum's birthday", EventCategory.PERSONAL),
            ("Dentist", EventCategory.HEALTH),
            ("Morning workout", EventCategory.HEALTH),
            ("Python course", EventCategory.LEARNING),
            ("Tutorial session", EventCategory.LEARNING),
            ("Company Holiday", EventCategory.MEETING),
            ("", EventCategory.MEETING),
        ],
    )
    def test_infer_category(self, title: str, expected: EventCategory) -> None:
        assert infer_category(title) is expected

    def test_first_matching_rule_wins(self) -> None:
        """Personal is listed before Work, so a work lunch is Personal."""
        assert infer_category("Work lunch") is EventCategory.PERSONAL

    def test_rule_order(self) -> None:
        order = [category for _, category in CATEGORY_RULES]

        assert order == [
            EventCategory.PERSONAL,
            EventCategory.HEALTH,
            EventCategory.LEARNING,
            EventCategory.WORK,
        ]
