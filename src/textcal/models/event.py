"""Pydantic models for extraction requests, events and availability.

- :class:`RawRequest` -- the text to interpret plus its time context.
- :class:`ExtractedEvent` -- the candidate event produced by a strategy
  (UTC instants, ``start < end`` enforced).
- :class:`ExistingEvent` -- an entry already on the user's calendar,
  either timed or all-day.
- :class:`Interval` -- a half-open ``[start, end)`` span of aware instants.
- :class:`AvailabilityResult` -- the conflict verdict with suggestions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from textcal.timeparse import as_utc, format_utc, utc_now

DEFAULT_LOCATION = "TBD"


# ---------------------------------------------------------------------------
# RawRequest
# ---------------------------------------------------------------------------


class RawRequest(BaseModel):
    """A natural-language request to turn into an event.

    Attributes:
        text: The utterance, e.g. ``"lunch with sam tomorrow at noon"``.
        timezone: IANA timezone of the user, or ``None`` for UTC.
        reference: The instant relative expressions are resolved
            against.  Defaults to now; naive values are taken as UTC.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    timezone: str | None = None
    reference: datetime = Field(default_factory=utc_now)

    @field_validator("reference")
    @classmethod
    def _reference_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


# ---------------------------------------------------------------------------
# ExtractedEvent
# ---------------------------------------------------------------------------


class ExtractedEvent(BaseModel):
    """A structured event produced by an extraction strategy.

    Attributes:
        title: Short event title.
        start: Event start as an aware UTC datetime.
        end: Event end as an aware UTC datetime, strictly after ``start``.
        location: Where the event happens, ``"TBD"`` when unknown.
        description: Free-text description; the original input text when
            nothing richer is available.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    start: datetime
    end: datetime
    location: str = DEFAULT_LOCATION
    description: str = ""

    @field_validator("start", "end")
    @classmethod
    def _instants_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _start_before_end(self) -> ExtractedEvent:
        if self.start >= self.end:
            raise ValueError(
                f"end ({self.end.isoformat()}) must be after "
                f"start ({self.start.isoformat()})"
            )
        return self

    @property
    def duration(self) -> timedelta:
        """Length of the event."""
        return self.end - self.start

    def to_payload(self) -> dict[str, str]:
        """Render the pipeline output contract.

        Returns:
            ``{title, start, end, location, description}`` with UTC ISO
            timestamps (``2025-09-08T18:00:00.000Z``).
        """
        return {
            "title": self.title,
            "start": format_utc(self.start),
            "end": format_utc(self.end),
            "location": self.location,
            "description": self.description,
        }


# ---------------------------------------------------------------------------
# ExistingEvent
# ---------------------------------------------------------------------------


class ExistingEvent(BaseModel):
    """An event already on the calendar.

    All-day events carry dates; their ``end`` follows the calendar
    convention of being exclusive (a single-day event on the 8th ends on
    the 9th).  Timed events carry datetimes; naive values are read in the
    request timezone when compared.

    Attributes:
        title: Event title, when the calendar provides one.
        start: Start date (all-day) or datetime (timed).
        end: End date (all-day) or datetime (timed).
        is_all_day: Whether the event spans whole local days.
    """

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    start: datetime | date
    end: datetime | date
    is_all_day: bool = False

    def to_payload(self) -> dict[str, str]:
        """Render ``{title?, start, end}`` for the availability contract."""
        payload: dict[str, str] = {}
        if self.title is not None:
            payload["title"] = self.title
        payload["start"] = _format_boundary(self.start)
        payload["end"] = _format_boundary(self.end)
        return payload


def _format_boundary(value: datetime | date) -> str:
    if isinstance(value, datetime):
        return format_utc(value) if value.tzinfo is not None else value.isoformat()
    return value.isoformat()


# ---------------------------------------------------------------------------
# Interval
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Interval:
    """A half-open span ``[start, end)`` of aware instants."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @classmethod
    def from_event(cls, event: ExtractedEvent) -> Interval:
        return cls(start=event.start, end=event.end)


# ---------------------------------------------------------------------------
# AvailabilityResult
# ---------------------------------------------------------------------------


class AvailabilityResult(BaseModel):
    """Outcome of checking a candidate interval against a calendar.

    Attributes:
        is_available: ``True`` when nothing overlaps the candidate.
        conflicts: Overlapping existing events, chronologically.
        suggested_starts: Alternative start instants (UTC).  Empty unless
            ``conflicts`` is non-empty.
    """

    is_available: bool
    conflicts: list[ExistingEvent] = Field(default_factory=list)
    suggested_starts: list[datetime] = Field(default_factory=list)

    def to_payload(self) -> dict[str, object]:
        """Render the availability output contract.

        ``suggestedStarts`` is only present when the candidate is not
        available.
        """
        payload: dict[str, object] = {
            "isAvailable": self.is_available,
            "conflicts": [event.to_payload() for event in self.conflicts],
        }
        if not self.is_available:
            payload["suggestedStarts"] = [format_utc(s) for s in self.suggested_starts]
        return payload
