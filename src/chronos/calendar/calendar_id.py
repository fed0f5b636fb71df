"""Resolve user-pasted calendar references to a Google Calendar id.

Users tend to paste whatever the Google Calendar UI gave them: a plain id
(``primary``, an email address), or a "share this calendar" link such as
``https://calendar.google.com/calendar/u/0?cid=dGVhbUBleGFtcGxlLmNvbQ`` or
``https://calendar.google.com/calendar/embed?src=team%40example.com``.
:func:`resolve_calendar_id` extracts the id from the links and leaves
everything else alone.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from urllib.parse import parse_qs, unquote, urlsplit

logger = logging.getLogger(__name__)

_CALENDAR_HOST = "calendar.google.com"
_PROVIDER_DOMAIN = "google.com"
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def resolve_calendar_id(value: str) -> str:
    """Return the calendar id referenced by *value*.

    Never raises: anything that is not a recognisable share link, or that
    fails to parse, is returned unchanged.

    Args:
        value: A calendar id, email address, or share link.

    Returns:
        The calendar id.
    """
    candidate = value.strip()
    if candidate.startswith(_CALENDAR_HOST):
        candidate = f"https://{candidate}"

    if _CALENDAR_HOST not in candidate or not ("cid=" in candidate or "src=" in candidate):
        return value

    try:
        parts = urlsplit(candidate)
        if parts.hostname != _CALENDAR_HOST:
            return value
        query = parse_qs(parts.query, keep_blank_values=False)
    except ValueError:
        logger.debug("Could not parse %r as a calendar link", value)
        return value

    if "cid" in query:
        cid = query["cid"][0]
        decoded = _decode_cid(cid)
        if decoded is not None:
            logger.info("Resolved calendar link to %s", decoded)
            return decoded
        return cid

    if "src" in query:
        # parse_qs already percent-decodes once; decode again for links that
        # were copied in double-encoded form.
        return unquote(query["src"][0])

    return value


def _decode_cid(cid: str) -> str | None:
    """Base64-decode a ``cid`` parameter if it holds a calendar id."""
    padded = cid + "=" * (-len(cid) % 4)
    for decoder in (base64.b64decode, base64.urlsafe_b64decode):
        try:
            text = decoder(padded).decode("utf-8")
        except (binascii.Error, ValueError, UnicodeDecodeError):
            continue
        if _EMAIL_RE.match(text) or text.endswith(_PROVIDER_DOMAIN):
            return text
    return None
