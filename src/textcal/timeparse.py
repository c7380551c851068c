"""Relative date and clock-time resolution.

Pure helpers that turn phrases like "tomorrow" or "at 3:30pm" into
concrete local dates and instants, given a reference instant and an IANA
timezone.  Every piece of date arithmetic goes through a checked helper
that returns ``None`` instead of raising, so callers decide explicitly
what to do with an instant that cannot exist (e.g. past ``datetime.max``).
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")

DEFAULT_HOUR = 14
"""Local hour used when the text names no clock time (2 pm)."""

# Checked in this order; the first keyword found anywhere in the text wins.
_DATE_KEYWORDS: tuple[tuple[str, int], ...] = (
    ("today", 0),
    ("tomorrow", 1),
    ("next week", 7),
    ("this week", 0),
)
_DEFAULT_DAY_OFFSET = 1

_CLOCK_PATTERNS: tuple[re.Pattern[str], ...] = (
    # 3:30pm, 15:30
    re.compile(r"(?P<hour>\d{1,2}):(?P<minute>\d{2})\s*(?P<meridiem>am|pm)?\b", re.IGNORECASE),
    # 3pm, 3 pm
    re.compile(r"(?P<hour>\d{1,2})\s*(?P<meridiem>am|pm)\b", re.IGNORECASE),
    # at 3, at 330, at 3:30pm
    re.compile(
        r"\bat\s+(?P<hour>\d{1,2}):?(?P<minute>\d{2})?\s*(?P<meridiem>am|pm)?\b",
        re.IGNORECASE,
    ),
    # 3 o'clock
    re.compile(r"(?P<hour>\d{1,2})\s*(?:o'clock|oclock)\b", re.IGNORECASE),
)


# ---------------------------------------------------------------------------
# Checked arithmetic
# ---------------------------------------------------------------------------


def utc_now() -> datetime:
    """Return the current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Interpret a naive *moment* as UTC; convert an aware one to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def shift(moment: datetime, delta: timedelta) -> datetime | None:
    """Return ``moment + delta``, or ``None`` if that is not a valid instant."""
    try:
        return moment + delta
    except OverflowError:
        return None


def shift_date(day: date, days: int) -> date | None:
    """Return *day* moved by *days*, or ``None`` outside the calendar range."""
    try:
        return day + timedelta(days=days)
    except OverflowError:
        return None


def to_zone(moment: datetime, zone: tzinfo) -> datetime | None:
    """Convert an aware *moment* to *zone*, or ``None`` if out of range."""
    try:
        return moment.astimezone(zone)
    except (OverflowError, ValueError):
        return None


def at_local_time(day: date, hour: int, minute: int, zone: tzinfo) -> datetime | None:
    """Build the aware local instant ``day hour:minute`` in *zone*.

    Returns ``None`` when the instant cannot be represented in UTC.
    """
    local = datetime.combine(day, time(hour, minute), tzinfo=zone)
    if to_zone(local, timezone.utc) is None:
        return None
    return local


# ---------------------------------------------------------------------------
# Timezone and formatting
# ---------------------------------------------------------------------------


def resolve_timezone(name: str | None) -> ZoneInfo:
    """Return the :class:`ZoneInfo` for *name*, falling back to UTC.

    Args:
        name: IANA identifier such as ``"America/New_York"``.  ``None`` or
            an empty string means UTC.

    Returns:
        The zone, or UTC when *name* is missing or unknown (logged).
    """
    if not name:
        return UTC
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.warning("Unknown timezone %r, using UTC", name)
        return UTC


def format_utc(moment: datetime) -> str:
    """Format *moment* as UTC ISO 8601 with milliseconds and a ``Z`` suffix.

    Naive datetimes are taken to already be in UTC.
    """
    utc = as_utc(moment)
    return f"{utc:%Y-%m-%dT%H:%M:%S}.{utc.microsecond // 1000:03d}Z"


def format_local(moment: datetime, zone: tzinfo) -> str:
    """Render *moment* for humans in *zone*.

    Example: ``"Sunday, September 7, 2025 at 12:00 PM EDT"``.
    """
    local = moment.astimezone(zone)
    return (
        f"{local:%A}, {local:%B} {local.day}, {local.year} "
        f"at {local:%I:%M %p} {local.tzname()}"
    )


# ---------------------------------------------------------------------------
# Date and clock-time resolution
# ---------------------------------------------------------------------------


def resolve_date(text: str, reference: datetime, zone: tzinfo) -> date:
    """Resolve the local date an utterance refers to.

    Keywords are checked as independent substrings in the order
    "today", "tomorrow", "next week", "this week"; the first one present
    decides.  Without any keyword the date is tomorrow.

    Args:
        text: The utterance.
        reference: Aware reference instant ("now").
        zone: The user's timezone.

    Returns:
        The resolved local date.  If the offset would leave the calendar
        range, the reference's own local date is returned.
    """
    local_reference = to_zone(reference, zone) or reference
    today = local_reference.date()

    lowered = text.lower()
    offset = _DEFAULT_DAY_OFFSET
    for keyword, days in _DATE_KEYWORDS:
        if keyword in lowered:
            offset = days
            break

    resolved = shift_date(today, offset)
    return resolved if resolved is not None else today


def parse_clock_time(text: str) -> tuple[int, int] | None:
    """Find the first structurally valid clock time in *text*.

    Patterns are tried in order (``H:MM [am|pm]``, ``H am|pm``,
    ``at H[:MM][am|pm]``, ``H o'clock``).  A match whose hour or minute is
    out of range, before or after am/pm normalization, is skipped and the
    next pattern is tried.

    Returns:
        ``(hour, minute)`` on the 24-hour clock, or ``None``.
    """
    for pattern in _CLOCK_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue

        fields = match.groupdict()
        hour = int(fields["hour"])
        minute = int(fields.get("minute") or 0)
        meridiem = (fields.get("meridiem") or "").lower()

        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            continue

        if meridiem == "pm" and hour != 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0

        if hour > 23:
            continue

        return hour, minute

    return None


def resolve_clock_time(text: str, local_date: date, zone: tzinfo) -> datetime | None:
    """Place the clock time named in *text* on *local_date*.

    Args:
        text: The utterance.
        local_date: Date returned by :func:`resolve_date`.
        zone: The user's timezone.

    Returns:
        The aware local start instant (14:00 when no time is named), or
        ``None`` if that instant is not valid.  Callers substitute their
        own safe default.
    """
    clock = parse_clock_time(text)
    hour, minute = clock if clock is not None else (DEFAULT_HOUR, 0)
    return at_local_time(local_date, hour, minute, zone)
