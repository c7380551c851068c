"""Google Calendar client: the read and write capabilities.

:class:`GoogleCalendarClient` wraps the ``googleapiclient`` service
resource.  Reads return either raw resources (:meth:`list_events`) or
:class:`~textcal.models.event.ExistingEvent` values ready for the
availability engine (:meth:`list_existing_events`, which matches the
``CalendarReader`` signature expected by
:func:`textcal.pipeline.run_pipeline`).

Every API method is wrapped with
:func:`~textcal.calendar.exceptions.with_retry`.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from textcal.calendar.event_mapper import map_to_google_event, to_existing_event
from textcal.calendar.exceptions import with_retry
from textcal.models.event import ExistingEvent, ExtractedEvent
from textcal.timeparse import format_utc

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """Reads and creates events on one Google calendar.

    Args:
        credentials: Valid Google OAuth 2.0 credentials.
        timezone: IANA timezone attached to created events.
        calendar_id: Calendar to use (default ``"primary"``).
        service: Optional pre-built service resource.  If ``None``, one is
            built from *credentials*.  Pass a mock here in tests.
    """

    def __init__(
        self,
        credentials: Credentials,
        timezone: str | None = None,
        calendar_id: str = "primary",
        service: Any | None = None,
    ) -> None:
        self._credentials = credentials
        self._timezone = timezone
        self._calendar_id = calendar_id
        self._service = service or build("calendar", "v3", credentials=credentials)

    def _refresh_credentials(self) -> None:
        """Refresh credentials and rebuild the service (401 hook for ``with_retry``)."""
        self._credentials.refresh(Request())
        self._service = build("calendar", "v3", credentials=self._credentials)
        logger.info("Credentials refreshed and service rebuilt")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @with_retry()
    def list_events(self, time_min: datetime, time_max: datetime) -> list[dict[str, Any]]:
        """List event resources overlapping ``[time_min, time_max)``.

        Recurring events are expanded into single instances and all pages
        are fetched.

        Args:
            time_min: Window start (aware; naive is taken as UTC).
            time_max: Window end.

        Returns:
            Event resource dicts ordered by start time.
        """
        events: list[dict[str, Any]] = []
        page_token: str | None = None

        while True:
            response = (
                self._service.events()
                .list(
                    calendarId=self._calendar_id,
                    timeMin=format_utc(time_min),
                    timeMax=format_utc(time_max),
                    singleEvents=True,
                    orderBy="startTime",
                    pageToken=page_token,
                )
                .execute()
            )
            events.extend(response.get("items", []))

            page_token = response.get("nextPageToken")
            if page_token is None:
                break

        logger.info(
            "Listed %d event(s) between %s and %s",
            len(events),
            format_utc(time_min),
            format_utc(time_max),
        )
        return events

    def list_existing_events(self, time_min: datetime, time_max: datetime) -> list[ExistingEvent]:
        """Return the timed and all-day events in the window as models.

        Resources without readable start/end times are skipped.
        """
        existing = []
        for resource in self.list_events(time_min, time_max):
            event = to_existing_event(resource)
            if event is not None:
                existing.append(event)
        return existing

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @with_retry()
    def create_event(self, event: ExtractedEvent) -> dict[str, Any]:
        """Insert *event* into the calendar.

        Returns:
            The API response for the created event.
        """
        body = map_to_google_event(event, self._timezone)
        result = (
            self._service.events()
            .insert(calendarId=self._calendar_id, body=body)
            .execute()
        )
        logger.info("Created event '%s' (id=%s)", event.title, result.get("id", "?"))
        return result
