"""Google Calendar adapter for textcal."""

from __future__ import annotations

from textcal.calendar.auth import get_calendar_credentials
from textcal.calendar.client import GoogleCalendarClient
from textcal.calendar.event_mapper import map_to_google_event, to_existing_event
from textcal.calendar.exceptions import (
    CalendarAPIError,
    CalendarAuthError,
    CalendarNotFoundError,
    CalendarRateLimitError,
)

__all__ = [
    "CalendarAPIError",
    "CalendarAuthError",
    "CalendarNotFoundError",
    "CalendarRateLimitError",
    "GoogleCalendarClient",
    "get_calendar_credentials",
    "map_to_google_event",
    "to_existing_event",
]
