"""Entry point for ``python -m chronos``.

A small CLI standing in for the app's UI.  Uses stdlib :mod:`argparse`.

Subcommands:
    status     -- Default.  Show the Google Calendar connection state.
    configure  -- Save Google credentials and the calendar to mirror.
    sync       -- Sign in if needed, fetch a month window, list events.
    add        -- Add a local event.
    list       -- List events with their ids.
    edit       -- Change a local event.
    delete     -- Delete a local event.
    export     -- Write events as ICS or CSV.
    disconnect -- Forget credentials, token and mirrored events.

Exit codes:
    0 -- Success.
    1 -- Configuration, storage or sync error.
    2 -- Argument parsing error (handled by argparse).
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date, datetime, tzinfo
from pathlib import Path

from chronos.app import ChronosApp, build_app
from chronos.config import ConfigError, load_settings
from chronos.demo_output import print_events, print_status
from chronos.exceptions import ReadOnlyEventError, StoreError
from chronos.export import generate_csv, generate_ics
from chronos.log import setup_logging
from chronos.models.event import CalendarEvent, EventCategory
from chronos.models.provider import PRIMARY_CALENDAR, ProviderConfig


_MONTH_HELP = "Sync this month (YYYY-MM) from Google first."


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="chronos",
        description="Personal calendar with a read-only Google Calendar mirror.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("status", help="Show the Google Calendar connection state.")

    configure = subparsers.add_parser("configure", help="Save Google credentials.")
    configure.add_argument("--client-id", required=True, help="OAuth client id.")
    configure.add_argument("--api-key", required=True, help="Google API key.")
    configure.add_argument(
        "--calendar-id",
        default=PRIMARY_CALENDAR,
        help="Calendar id, email or share link (default: primary).",
    )
    configure.add_argument(
        "--client-secret",
        default="",
        help="OAuth client secret for desktop clients.",
    )

    sync = subparsers.add_parser("sync", help="Fetch events from Google Calendar.")
    sync.add_argument(
        "--month",
        type=_parse_month,
        default=None,
        help="Visible month as YYYY-MM (default: current month).",
    )

    add = subparsers.add_parser("add", help="Add a local event.")
    add.add_argument("title", help="Event title.")
    add.add_argument("--start", required=True, type=datetime.fromisoformat, help="ISO start.")
    add.add_argument("--end", required=True, type=datetime.fromisoformat, help="ISO end.")
    add.add_argument(
        "--category",
        choices=[category.value for category in EventCategory],
        default=EventCategory.OTHER.value,
    )
    add.add_argument("--location", default=None)
    add.add_argument("--description", default=None)

    list_cmd = subparsers.add_parser("list", help="List events with their ids.")
    list_cmd.add_argument("--month", type=_parse_month, default=None, help=_MONTH_HELP)

    edit = subparsers.add_parser("edit", help="Edit a local event.")
    edit.add_argument("event_id", help="Event id, as shown by 'list'.")
    edit.add_argument("--title", default=None)
    edit.add_argument("--start", type=datetime.fromisoformat, default=None, help="ISO start.")
    edit.add_argument("--end", type=datetime.fromisoformat, default=None, help="ISO end.")
    edit.add_argument(
        "--category",
        choices=[category.value for category in EventCategory],
        default=None,
    )
    edit.add_argument("--location", default=None)
    edit.add_argument("--description", default=None)
    edit.add_argument("--month", type=_parse_month, default=None, help=_MONTH_HELP)

    delete = subparsers.add_parser("delete", help="Delete a local event.")
    delete.add_argument("event_id", help="Event id, as shown by 'list'.")
    delete.add_argument("--month", type=_parse_month, default=None, help=_MONTH_HELP)

    export = subparsers.add_parser("export", help="Export events to a file.")
    export.add_argument("--format", choices=["ics", "csv"], default="ics", dest="fmt")
    export.add_argument("--output", type=Path, default=None, help="Output path.")
    export.add_argument("--month", type=_parse_month, default=None, help=_MONTH_HELP)

    subparsers.add_parser("disconnect", help="Disconnect from Google Calendar.")

    return parser


def _parse_month(value: str) -> date:
    try:
        year, month = (int(part) for part in value.split("-"))
        return date(year, month, 1)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM, got {value!r}") from exc


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_status(app: ChronosApp, args: argparse.Namespace) -> int:  # noqa: ARG001
    await app.sync.start()
    print_status(app.sync.snapshot())
    return 0


async def _handle_configure(app: ChronosApp, args: argparse.Namespace) -> int:
    config = ProviderConfig(
        client_id=args.client_id,
        api_key=args.api_key,
        calendar_id=args.calendar_id,
        client_secret=args.client_secret,
    )
    await app.sync.save_config(config)
    snapshot = app.sync.snapshot()
    print_status(snapshot)
    return 1 if snapshot.last_error else 0


async def _sync_month(app: ChronosApp, month: date | None) -> bool:
    await app.sync.start()
    if not app.sync.snapshot().is_configured:
        sys.stderr.write("Error: Google Calendar is not configured; run 'configure'.\n")
        return False
    if month is not None:
        # Ready but not signed in yet: this only moves the window.
        await app.sync.set_visible_month(month)
    await app.sync.trigger_sync()
    return app.sync.snapshot().last_error is None


async def _handle_sync(app: ChronosApp, args: argparse.Namespace) -> int:
    ok = await _sync_month(app, args.month)
    print_status(app.sync.snapshot())
    if ok:
        print_events(app.all_events(), app.settings.zone)
    return 0 if ok else 1


async def _sync_if_asked(app: ChronosApp, month: date | None) -> bool:
    """Sync *month* first when given; report and return ``False`` on failure."""
    if month is None or await _sync_month(app, month):
        return True
    print_status(app.sync.snapshot())
    return False


def _in_zone(value: datetime | None, zone: tzinfo) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=zone)


def _find_event(app: ChronosApp, event_id: str) -> CalendarEvent | None:
    for event in app.all_events():
        if event.id == event_id:
            return event
    sys.stderr.write(f"Error: No event with id {event_id!r}.\n")
    return None


async def _handle_add(app: ChronosApp, args: argparse.Namespace) -> int:
    zone = app.settings.zone
    try:
        event = CalendarEvent.new_local(
            title=args.title,
            start=_in_zone(args.start, zone),
            end=_in_zone(args.end, zone),
            category=EventCategory(args.category),
            description=args.description,
            location=args.location,
        )
    except ValueError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1
    app.local_events.add(event)
    print_events([event], zone)
    return 0


async def _handle_list(app: ChronosApp, args: argparse.Namespace) -> int:
    if not await _sync_if_asked(app, args.month):
        return 1
    print_events(app.all_events(), app.settings.zone, show_ids=True)
    return 0


async def _handle_edit(app: ChronosApp, args: argparse.Namespace) -> int:
    if not await _sync_if_asked(app, args.month):
        return 1
    event = _find_event(app, args.event_id)
    if event is None:
        return 1

    zone = app.settings.zone
    changes = {
        "title": args.title,
        "start": _in_zone(args.start, zone),
        "end": _in_zone(args.end, zone),
        "category": args.category,
        "location": args.location,
        "description": args.description,
    }
    updates = {key: value for key, value in changes.items() if value is not None}
    try:
        edited = CalendarEvent.model_validate({**event.model_dump(), **updates})
        app.local_events.update(edited)
    except (ValueError, ReadOnlyEventError) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1
    print_events([edited], zone, show_ids=True)
    return 0


async def _handle_delete(app: ChronosApp, args: argparse.Namespace) -> int:
    if not await _sync_if_asked(app, args.month):
        return 1
    event = _find_event(app, args.event_id)
    if event is None:
        return 1
    try:
        app.local_events.delete(event)
    except ReadOnlyEventError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1
    sys.stdout.write(f"Deleted '{event.title}' ({event.id})\n")
    return 0


async def _handle_export(app: ChronosApp, args: argparse.Namespace) -> int:
    if not await _sync_if_asked(app, args.month):
        return 1

    events = app.all_events()
    zone = app.settings.zone
    content = generate_ics(events, zone) if args.fmt == "ics" else generate_csv(events, zone)

    if args.output is None:
        sys.stdout.write(content + "\n")
    else:
        args.output.write_text(content)
        sys.stdout.write(f"Exported {len(events)} event(s) to {args.output}\n")
    return 0


async def _handle_disconnect(app: ChronosApp, args: argparse.Namespace) -> int:  # noqa: ARG001
    await app.sync.start()
    app.sync.disconnect()
    print_status(app.sync.snapshot())
    return 0


_HANDLERS = {
    "status": _handle_status,
    "configure": _handle_configure,
    "sync": _handle_sync,
    "add": _handle_add,
    "list": _handle_list,
    "edit": _handle_edit,
    "delete": _handle_delete,
    "export": _handle_export,
    "disconnect": _handle_disconnect,
}


def main(argv: list[str] | None = None) -> int:
    """Run the chronos CLI.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``.

    Returns:
        Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])
    command = args.command or "status"

    try:
        settings = load_settings()
    except ConfigError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1

    setup_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        app = build_app(settings)
        return asyncio.run(_HANDLERS[command](app, args))
    except StoreError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
