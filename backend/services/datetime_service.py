"""Datetime parsing: lax CMS input -> strict output."""

from __future__ import annotations

from datetime import datetime, timezone

import pendulum

# Display format for publication dates, e.g. "02 fev 2021" in pt-br.
DISPLAY_FORMAT = "DD MMM YYYY"
DEFAULT_DISPLAY_LOCALE = "pt-br"


def parse_datetime(value: str, default_tz: str = "UTC") -> datetime:
    """Parse a lax datetime string into a strict timezone-aware datetime.

    Accepts the CMS's own format (``2021-02-02T22:21:29+0000``) as well as
    other ISO 8601 variants and date-only strings. Missing timezone defaults
    to ``default_tz``; missing time components default to zeros.

    Raises ``ValueError`` (``pendulum.ParserError``) for unparseable input.
    """
    value_str = value.strip()

    parsed = pendulum.parse(value_str, tz=default_tz, strict=False)
    if not isinstance(parsed, pendulum.DateTime):
        if not isinstance(parsed, pendulum.Date):
            msg = f"Not a date or datetime: {value_str!r}"
            raise ValueError(msg)
        # pendulum.parse returns Date for date-only strings
        parsed = pendulum.datetime(parsed.year, parsed.month, parsed.day, tz=default_tz)
    return parsed


def format_display_date(dt: datetime, locale: str = DEFAULT_DISPLAY_LOCALE) -> str:
    """Format a publication date for display, e.g. ``02 fev 2021``."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return pendulum.instance(dt).format(DISPLAY_FORMAT, locale=locale)


def format_iso(dt: datetime) -> str:
    """Format datetime as ISO 8601 for JSON serialization."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()
