"""Translate between Google Calendar event resources and textcal models.

Two directions:

- :func:`to_existing_event` -- a resource returned by ``events().list()``
  becomes an :class:`~textcal.models.event.ExistingEvent`.  Resources with
  ``start.date`` are all-day events (Google's ``end.date`` is exclusive);
  resources with ``start.dateTime`` are timed events.
- :func:`map_to_google_event` -- an
  :class:`~textcal.models.event.ExtractedEvent` becomes the request body
  for ``events().insert()``.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from textcal.models.event import DEFAULT_LOCATION, ExistingEvent, ExtractedEvent
from textcal.timeparse import format_utc

logger = logging.getLogger(__name__)


def to_existing_event(resource: dict[str, Any]) -> ExistingEvent | None:
    """Convert a Google Calendar event resource to an :class:`ExistingEvent`.

    Args:
        resource: One item of an ``events().list()`` response.

    Returns:
        The existing event, or ``None`` when the resource has no usable
        start/end (logged and skipped by the caller).
    """
    start_obj = resource.get("start") or {}
    end_obj = resource.get("end") or {}
    title = resource.get("summary")

    try:
        if "date" in start_obj:
            first_day = date.fromisoformat(start_obj["date"])
            end_day = date.fromisoformat(end_obj.get("date", start_obj["date"]))
            return ExistingEvent(title=title, start=first_day, end=end_day, is_all_day=True)

        start = _parse_datetime(start_obj["dateTime"])
        end = _parse_datetime(end_obj["dateTime"])
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Skipping calendar event %r with unreadable times: %s", title, exc)
        return None

    return ExistingEvent(title=title, start=start, end=end)


def map_to_google_event(event: ExtractedEvent, timezone: str | None = None) -> dict[str, Any]:
    """Convert an extracted event into a Google Calendar API event body.

    Args:
        event: The event to create.
        timezone: IANA timezone attached to ``start``/``end`` so the event
            renders in the user's zone.  Omitted when ``None``.

    Returns:
        A ``dict`` ready for ``events().insert()``.  ``location`` is left
        out when it is the ``"TBD"`` placeholder.
    """
    body: dict[str, Any] = {
        "summary": event.title,
        "start": _format_boundary(event.start, timezone),
        "end": _format_boundary(event.end, timezone),
    }
    if event.description:
        body["description"] = event.description
    if event.location and event.location != DEFAULT_LOCATION:
        body["location"] = event.location

    logger.debug("Mapped event '%s' to Google Calendar body", event.title)
    return body


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _parse_datetime(value: str) -> datetime:
    # RFC 3339 from the API; ``Z`` is spelled out for older fromisoformat.
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _format_boundary(moment: datetime, timezone: str | None) -> dict[str, str]:
    boundary = {"dateTime": format_utc(moment)}
    if timezone:
        boundary["timeZone"] = timezone
    return boundary
