"""Tests for ICS and CSV export."""

from __future__ import annotations

import csv
import io
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from icalendar import Calendar

from chronos.export import generate_csv, generate_ics
from chronos.models import CalendarEvent, EventCategory

_VANCOUVER = ZoneInfo("America/Vancouver")
_STAMP = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _make_event(**overrides) -> CalendarEvent:
    values = {
        "id": "evt-1",
        "title": "Team Sync",
        "start": datetime(2024, 3, 15, 17, 0, tzinfo=timezone.utc),
        "end": datetime(2024, 3, 15, 18, 30, tzinfo=timezone.utc),
        "category": EventCategory.WORK,
        "description": "Weekly, all hands",
        "location": "Room 4; floor 2",
    }
    values.update(overrides)
    return CalendarEvent(**values)


def _lines(text: str) -> list[str]:
    return text.rstrip("\r\n").split("\r\n")


class TestGenerateIcs:
    def test_document_structure(self) -> None:
        lines = _lines(generate_ics([_make_event()], _VANCOUVER, now=_STAMP))

        assert lines[0] == "BEGIN:VCALENDAR"
        assert lines[-1] == "END:VCALENDAR"
        assert "PRODID:-//Chronos//Calendar Export//EN" in lines
        assert "VERSION:2.0" in lines
        assert lines.count("BEGIN:VEVENT") == 1

    def test_event_fields_in_local_time(self) -> None:
        lines = _lines(generate_ics([_make_event()], _VANCOUVER, now=_STAMP))

        assert "UID:evt-1" in lines
        assert "DTSTAMP:20240301T120000Z" in lines
        # 17:00 UTC is 10:00 in Vancouver (PDT, UTC-7) on 15 March 2024.
        assert "DTSTART:20240315T100000" in lines
        assert "DTEND:20240315T113000" in lines
        assert "CATEGORIES:Work" in lines

    def test_stamp_written_in_utc(self) -> None:
        local_now = datetime(2024, 3, 1, 4, 0, tzinfo=_VANCOUVER)

        lines = _lines(generate_ics([_make_event()], _VANCOUVER, now=local_now))

        assert "DTSTAMP:20240301T120000Z" in lines

    def test_text_fields_escaped(self) -> None:
        lines = _lines(generate_ics([_make_event()], _VANCOUVER))

        assert "DESCRIPTION:Weekly\\, all hands" in lines
        assert "LOCATION:Room 4\\; floor 2" in lines

    def test_missing_optional_fields_omitted(self) -> None:
        text = generate_ics([_make_event(description=None, location=None)], _VANCOUVER)

        assert "DESCRIPTION" not in text
        assert "LOCATION" not in text

    def test_long_lines_folded(self) -> None:
        title = ("Quarterly planning " * 12).strip()

        text = generate_ics([_make_event(title=title)], _VANCOUVER)

        lines = _lines(text)
        assert max(len(line.encode("utf-8")) for line in lines) <= 75
        assert any(line.startswith(" ") for line in lines)
        [vevent] = Calendar.from_ical(text).walk("VEVENT")
        assert str(vevent["SUMMARY"]) == title

    def test_no_events(self) -> None:
        lines = _lines(generate_ics([], _VANCOUVER))

        assert "BEGIN:VEVENT" not in lines
        assert lines[-1] == "END:VCALENDAR"


class TestGenerateCsv:
    def test_header_and_row(self) -> None:
        text = generate_csv([_make_event()], _VANCOUVER)
        rows = list(csv.reader(io.StringIO(text)))

        assert rows[0] == [
            "Subject",
            "Start Date",
            "Start Time",
            "End Date",
            "End Time",
            "Description",
            "Location",
            "Category",
        ]
        assert rows[1] == [
            "Team Sync",
            "03/15/2024",
            "10:00 AM",
            "03/15/2024",
            "11:30 AM",
            "Weekly, all hands",
            "Room 4; floor 2",
            "Work",
        ]

    def test_quotes_fields_with_commas(self) -> None:
        text = generate_csv([_make_event()], _VANCOUVER)

        assert '"Weekly, all hands"' in text

    def test_no_trailing_newline(self) -> None:
        assert not generate_csv([_make_event()], _VANCOUVER).endswith("\n")
