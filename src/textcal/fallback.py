"""Deterministic, regex-based event extraction.

The terminal strategy of the extraction pipeline: it needs no network and
no API key, and it always returns a structurally valid
:class:`~textcal.models.event.ExtractedEvent`.  Each field is found by a
short cascade of patterns, taking the first one that yields something:

- **title** -- the leading phrase (minus filler such as "I want to") up to
  the first time/duration marker; else the words before an event noun
  ("project meeting"); else the first three content words.
- **duration** -- ``"<n> hours"``, optionally after "for"; 1 hour default.
- **location** -- ``at|@|in <place>``; ``<event noun> at|@|in <place>``;
  ``go to|visit|see <place>``; ``"TBD"`` default.
- **start** -- the date keyword and clock time resolved by
  :mod:`textcal.timeparse`, converted to UTC.

Whenever date arithmetic produces an instant that cannot exist, the result
is the safe default event (``"Event"``, starting at the reference instant,
one hour long).
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta

from textcal.models.event import DEFAULT_LOCATION, ExtractedEvent
from textcal.timeparse import (
    UTC,
    as_utc,
    resolve_clock_time,
    resolve_date,
    resolve_timezone,
    shift,
    to_zone,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Event"
DEFAULT_DURATION = timedelta(hours=1)

EVENT_NOUNS: tuple[str, ...] = (
    "meeting",
    "appointment",
    "session",
    "call",
    "conference",
    "interview",
    "lunch",
    "dinner",
    "breakfast",
    "workout",
    "gym",
    "class",
    "lesson",
    "training",
    "workshop",
    "seminar",
)
_NOUNS = "|".join(EVENT_NOUNS)

_STOP_WORDS = frozenset(
    {"the", "and", "for", "with", "at", "in", "on", "to", "of", "a", "an"}
)
_UNIT_WORD = re.compile(r"^(?:am|pm|hours?|minutes?)$", re.IGNORECASE)
_ARTICLES = frozenset({"the", "a", "an"})

# Tokens that end a captured title or place phrase.
_MARKER_WORDS = frozenset(
    {
        "tomorrow",
        "today",
        "tonight",
        "at",
        "in",
        "on",
        "for",
        "am",
        "pm",
        "noon",
        "hour",
        "hours",
        "hr",
        "hrs",
        "minute",
        "minutes",
        "min",
        "mins",
        "o'clock",
        "oclock",
    }
)

_LEADING_PHRASE = re.compile(
    r"^\s*(?:i\s+)?(?:want\s+to\s+)?(?:need\s+to\s+)?(?:have\s+to\s+)?"
    r"(?:should\s+)?(?:can\s+)?(?:will\s+)?(?:do\s+)?"
    r"(?P<phrase>[a-z\s]+?)"
    r"(?:\s+(?:(?:tomorrow|today|tonight|next\s+week|this\s+week|at|for"
    r"|hours?|minutes?|pm|am)\b|\d)|\s*$)",
    re.IGNORECASE,
)
_NOUN_PHRASE = re.compile(
    rf"\b(?P<phrase>[a-z]+(?:\s+[a-z]+)?)\s+(?P<noun>{_NOUNS})\b",
    re.IGNORECASE,
)

_DURATION = re.compile(
    r"(?:\bfor\s+)?\b(?P<hours>\d{1,6})\s*(?:hours?|hrs?)\b", re.IGNORECASE
)

_PLACE = r"(?P<place>[a-z0-9'&\s]+)"
_PREPOSITION = r"(?:\b(?:at|in)\s+|@\s*)"
_LOCATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(_PREPOSITION + _PLACE, re.IGNORECASE),
    re.compile(rf"\b(?:{_NOUNS})\s+{_PREPOSITION}{_PLACE}", re.IGNORECASE),
    re.compile(rf"\b(?:go\s+to|visit|see)\s+{_PLACE}", re.IGNORECASE),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_event(
    text: str,
    reference: datetime,
    timezone: str | None = None,
) -> ExtractedEvent:
    """Build an event from *text* using patterns alone.

    Never raises for any string input, including the empty string.

    Args:
        text: The utterance to interpret.
        reference: The instant "today" and "tomorrow" are relative to.
            Naive values are taken as UTC.
        timezone: IANA timezone of the user; ``None`` or unknown means UTC.

    Returns:
        An :class:`ExtractedEvent` with UTC instants and
        ``description == text``.
    """
    reference = as_utc(reference)
    zone = resolve_timezone(timezone)

    title = extract_title(text)
    duration = parse_duration(text)
    location = extract_location(text)

    local_date = resolve_date(text, reference, zone)
    local_start = resolve_clock_time(text, local_date, zone)
    if local_start is None:
        logger.warning("Resolved start for %r is not a valid instant, using now + 1h", text)
        local_start = shift(reference, DEFAULT_DURATION)

    start = to_zone(local_start, UTC) if local_start is not None else None
    end = shift(start, duration) if start is not None else None
    if start is None or end is None:
        logger.warning("Date arithmetic failed for %r, returning default event", text)
        return default_event(text, reference)

    return ExtractedEvent(
        title=title,
        start=start,
        end=end,
        location=location,
        description=text,
    )


def default_event(text: str, reference: datetime) -> ExtractedEvent:
    """Return the safe default event: "Event", one hour from *reference*."""
    start = as_utc(reference)
    end = shift(start, DEFAULT_DURATION)
    if end is None:
        # reference sits at the top of the representable range
        end = start
        start = start - DEFAULT_DURATION
    return ExtractedEvent(
        title=DEFAULT_TITLE,
        start=start,
        end=end,
        location=DEFAULT_LOCATION,
        description=text,
    )


def capitalize_words(phrase: str) -> str:
    """Upper-case the first letter of each word, leaving the rest alone.

    >>> capitalize_words("arc gym")
    'Arc Gym'
    """
    return " ".join(word[:1].upper() + word[1:] for word in phrase.split())


# ---------------------------------------------------------------------------
# Field extractors
# ---------------------------------------------------------------------------


def extract_title(text: str) -> str:
    """Derive a capitalized title from *text*; ``"Event"`` if nothing fits."""
    for rule in (_title_from_leading_phrase, _title_from_event_noun, _title_from_keywords):
        title = rule(text)
        if title:
            return capitalize_words(title)
    return DEFAULT_TITLE


def parse_duration(text: str) -> timedelta:
    """Return the ``"<n> hours"`` duration in *text*, defaulting to one hour."""
    match = _DURATION.search(text)
    if match is None:
        return DEFAULT_DURATION

    try:
        hours = int(match["hours"])
        duration = timedelta(hours=hours)
    except (ValueError, OverflowError):
        return DEFAULT_DURATION
    return duration if hours > 0 else DEFAULT_DURATION


def extract_location(text: str) -> str:
    """Derive a capitalized place name from *text*; ``"TBD"`` if none."""
    for pattern in _LOCATION_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        place = _truncate_at_marker(match["place"])
        if place:
            return capitalize_words(place)
    return DEFAULT_LOCATION


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _title_from_leading_phrase(text: str) -> str:
    match = _LEADING_PHRASE.match(text)
    return match["phrase"].strip() if match else ""


def _title_from_event_noun(text: str) -> str:
    match = _NOUN_PHRASE.search(text)
    if match is None:
        return ""
    return f"{match['phrase'].strip()} {match['noun']}"


def _title_from_keywords(text: str) -> str:
    words = [
        word
        for word in text.split()
        if len(word) > 2
        and word.lower() not in _STOP_WORDS
        and not word.isdigit()
        and not _UNIT_WORD.match(word)
    ]
    return " ".join(words[:3])


def _is_marker(token: str, following: str) -> bool:
    lowered = token.lower()
    if lowered in _MARKER_WORDS or lowered[:1].isdigit():
        return True
    return lowered in ("next", "this") and following.lower() == "week"


def _truncate_at_marker(phrase: str) -> str:
    """Cut *phrase* at its first time/duration marker and drop a leading article."""
    tokens = phrase.split()
    kept: list[str] = []
    for index, token in enumerate(tokens):
        following = tokens[index + 1] if index + 1 < len(tokens) else ""
        if _is_marker(token, following):
            break
        kept.append(token)

    if kept and kept[0].lower() in _ARTICLES:
        kept = kept[1:]
    return " ".join(kept)
