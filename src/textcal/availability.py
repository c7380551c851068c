"""Conflict detection and alternative-slot suggestions.

Everything here is pure: the caller fetches the existing events for the
relevant window (see :func:`textcal.pipeline.run_pipeline`) and passes
them in.

Intervals are half-open, ``[start, end)``, so back-to-back events never
conflict.  All-day events are widened to whole local days in the request
timezone before any comparison.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime, timedelta, tzinfo

from textcal.models.event import AvailabilityResult, ExistingEvent, ExtractedEvent, Interval
from textcal.timeparse import (
    as_utc,
    at_local_time,
    resolve_timezone,
    shift,
    shift_date,
    to_zone,
)

logger = logging.getLogger(__name__)

CANDIDATE_HOURS: tuple[int, ...] = (9, 11, 13, 15, 17)
"""Local hours tried, in order, when suggesting alternative starts."""

MAX_SUGGESTIONS = 3
FALLBACK_HOUR = 9


# ---------------------------------------------------------------------------
# Overlap
# ---------------------------------------------------------------------------


def overlaps(a: Interval, b: Interval) -> bool:
    """Return whether two half-open intervals share any instant.

    Intervals that only touch (``a.end == b.start``) do not overlap.
    """
    return a.start < b.end and a.end > b.start


def to_interval(event: ExistingEvent, zone: tzinfo) -> Interval | None:
    """Normalize an existing event to an aware interval.

    All-day events become ``[local midnight of start day, local midnight
    after the last day)``; an ``end`` date that is not after ``start`` is
    treated as a single day.  Naive timed values are read in *zone*.

    Returns:
        The interval, or ``None`` if a boundary is not a valid instant.
    """
    if event.is_all_day:
        first_day = _local_day(event.start, zone)
        next_day = shift_date(first_day, 1)
        if next_day is None:
            return None
        last_day = max(_local_day(event.end, zone), next_day)
        start = at_local_time(first_day, 0, 0, zone)
        end = at_local_time(last_day, 0, 0, zone)
    else:
        start = _instant(event.start, zone)
        end = _instant(event.end, zone)

    if start is None or end is None:
        return None
    return Interval(start=start, end=end)


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------


def check_availability(
    candidate: Interval | ExtractedEvent,
    existing: Sequence[ExistingEvent] | None,
    timezone: str | None = None,
) -> AvailabilityResult:
    """Check *candidate* against the user's existing events.

    Args:
        candidate: The proposed event or interval.
        existing: Events covering at least the candidate's window, or
            ``None`` when the calendar could not be read.
        timezone: IANA timezone used for all-day events, naive values and
            the local hours of suggestions.  ``None`` means UTC.

    Returns:
        An :class:`AvailabilityResult`.  With ``existing=None`` the result
        is available with no conflicts (fail open).  Suggestions are only
        computed when there is at least one conflict.
    """
    if isinstance(candidate, ExtractedEvent):
        candidate = Interval.from_event(candidate)

    if existing is None:
        logger.warning("Existing events unavailable, reporting the slot as free")
        return AvailabilityResult(is_available=True)

    zone = resolve_timezone(timezone)
    conflicts = [
        (event, interval)
        for event, interval in _normalize(existing, zone)
        if overlaps(interval, candidate)
    ]

    if not conflicts:
        logger.info("No conflicts for %s -> %s", candidate.start, candidate.end)
        return AvailabilityResult(is_available=True)

    # Stable, so chronological input keeps its order.
    conflicts.sort(key=lambda pair: pair[1].start)

    local_start = to_zone(candidate.start, zone) or candidate.start
    suggestions = suggest_slots(candidate.duration, local_start.date(), existing, timezone)

    logger.info(
        "%d conflict(s) for %s -> %s, %d suggestion(s)",
        len(conflicts),
        candidate.start,
        candidate.end,
        len(suggestions),
    )
    return AvailabilityResult(
        is_available=False,
        conflicts=[event for event, _ in conflicts],
        suggested_starts=suggestions,
    )


def suggest_slots(
    duration: timedelta,
    same_day: date,
    existing: Sequence[ExistingEvent],
    timezone: str | None = None,
) -> list[datetime]:
    """Suggest up to three free start times for an event of *duration*.

    Tries 09:00, 11:00, 13:00, 15:00 and 17:00 local time on *same_day*
    and keeps every start whose ``[start, start + duration)`` overlaps none
    of *existing*, stopping at three.  If none is free, returns 09:00 on
    the following day without checking it against *existing*.

    Args:
        duration: Length of the event being rescheduled.
        same_day: Local date of the original candidate.
        existing: The full list of existing events.
        timezone: IANA timezone for the local hours; ``None`` means UTC.

    Returns:
        Suggested start instants in UTC, earliest first.
    """
    zone = resolve_timezone(timezone)
    busy = [interval for _, interval in _normalize(existing, zone)]

    suggestions: list[datetime] = []
    for hour in CANDIDATE_HOURS:
        local_start = at_local_time(same_day, hour, 0, zone)
        start = as_utc(local_start) if local_start is not None else None
        # UTC arithmetic: the slot spans exactly ``duration`` of absolute time.
        end = shift(start, duration) if start is not None else None
        if start is None or end is None:
            continue

        slot = Interval(start=start, end=end)
        if any(overlaps(slot, interval) for interval in busy):
            continue

        suggestions.append(start)
        if len(suggestions) >= MAX_SUGGESTIONS:
            break

    if not suggestions:
        next_day = shift_date(same_day, 1)
        fallback = at_local_time(next_day, FALLBACK_HOUR, 0, zone) if next_day else None
        if fallback is not None:
            suggestions.append(as_utc(fallback))

    return suggestions


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _normalize(
    existing: Sequence[ExistingEvent],
    zone: tzinfo,
) -> list[tuple[ExistingEvent, Interval]]:
    pairs: list[tuple[ExistingEvent, Interval]] = []
    for event in existing:
        interval = to_interval(event, zone)
        if interval is None:
            logger.warning("Skipping existing event %r with invalid times", event.title)
            continue
        pairs.append((event, interval))
    return pairs


def _local_day(value: datetime | date, zone: tzinfo) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return (to_zone(value, zone) or value).date()
        return value.date()
    return value


def _instant(value: datetime | date, zone: tzinfo) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=zone)
    return at_local_time(value, 0, 0, zone)
