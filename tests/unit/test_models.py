"""Tests for the request, event and availability models."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from textcal.models import (
    AvailabilityResult,
    ExistingEvent,
    ExtractedEvent,
    Interval,
    RawRequest,
)


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestRawRequest:
    """RawRequest validation."""

    def test_empty_text_rejected(self) -> None:
        """Text must be non-empty."""
        with pytest.raises(ValidationError):
            RawRequest(text="")

    def test_reference_defaults_to_now_utc(self) -> None:
        """Without a reference, 'now' in UTC is used."""
        before = datetime.now(timezone.utc)
        request = RawRequest(text="lunch")
        after = datetime.now(timezone.utc)

        assert before <= request.reference <= after
        assert request.reference.utcoffset() == timedelta(0)

    def test_naive_reference_is_utc(self) -> None:
        """A naive reference is labelled UTC."""
        request = RawRequest(text="lunch", reference=datetime(2025, 9, 7, 16, 0))

        assert request.reference == _utc(2025, 9, 7, 16, 0)

    def test_timezone_optional(self) -> None:
        """Timezone defaults to None (UTC)."""
        assert RawRequest(text="lunch").timezone is None

    def test_frozen(self) -> None:
        """Requests are immutable."""
        request = RawRequest(text="lunch")

        with pytest.raises(ValidationError):
            request.text = "dinner"  # type: ignore[misc]


class TestExtractedEvent:
    """ExtractedEvent validation and payload."""

    def test_start_must_precede_end(self) -> None:
        """start >= end is rejected."""
        with pytest.raises(ValidationError, match="must be after"):
            ExtractedEvent(title="X", start=_utc(2025, 9, 8, 10), end=_utc(2025, 9, 8, 10))

    def test_iso_strings_are_parsed_to_utc(self) -> None:
        """ISO strings with offsets are converted to UTC."""
        event = ExtractedEvent(
            title="Gym",
            start="2025-09-08T14:00:00-04:00",
            end="2025-09-08T20:00:00Z",
        )

        assert event.start == _utc(2025, 9, 8, 18, 0)
        assert event.end == _utc(2025, 9, 8, 20, 0)
        assert event.start.utcoffset() == timedelta(0)

    def test_defaults(self) -> None:
        """Location defaults to TBD and description to empty."""
        event = ExtractedEvent(title="X", start=_utc(2025, 9, 8, 10), end=_utc(2025, 9, 8, 11))

        assert event.location == "TBD"
        assert event.description == ""
        assert event.duration == timedelta(hours=1)

    def test_to_payload(self) -> None:
        """Payload has exactly the five contract keys."""
        event = ExtractedEvent(
            title="Meeting",
            start=_utc(2025, 9, 7, 19),
            end=_utc(2025, 9, 7, 20),
            description="meeting at 3pm today",
        )

        assert event.to_payload() == {
            "title": "Meeting",
            "start": "2025-09-07T19:00:00.000Z",
            "end": "2025-09-07T20:00:00.000Z",
            "location": "TBD",
            "description": "meeting at 3pm today",
        }


class TestExistingEvent:
    """ExistingEvent payloads."""

    def test_timed_payload(self) -> None:
        """Timed events render UTC instants and include the title."""
        event = ExistingEvent(title="Standup", start=_utc(2025, 9, 8, 13), end=_utc(2025, 9, 8, 14))

        assert event.to_payload() == {
            "title": "Standup",
            "start": "2025-09-08T13:00:00.000Z",
            "end": "2025-09-08T14:00:00.000Z",
        }

    def test_all_day_payload_without_title(self) -> None:
        """All-day events render dates; a missing title is omitted."""
        event = ExistingEvent(start=date(2025, 9, 8), end=date(2025, 9, 9), is_all_day=True)

        assert event.to_payload() == {"start": "2025-09-08", "end": "2025-09-09"}

    def test_datetime_stays_datetime(self) -> None:
        """A datetime value is not narrowed to a date."""
        event = ExistingEvent(start=_utc(2025, 9, 8, 13), end=_utc(2025, 9, 8, 14))

        assert isinstance(event.start, datetime)


class TestInterval:
    """Interval helpers."""

    def test_from_event(self) -> None:
        """An interval copies the event's bounds."""
        event = ExtractedEvent(title="X", start=_utc(2025, 9, 8, 10), end=_utc(2025, 9, 8, 12))

        interval = Interval.from_event(event)

        assert interval == Interval(start=_utc(2025, 9, 8, 10), end=_utc(2025, 9, 8, 12))
        assert interval.duration == timedelta(hours=2)


class TestAvailabilityResult:
    """Availability payload contract."""

    def test_available_payload_omits_suggestions(self) -> None:
        """suggestedStarts is absent when the slot is free."""
        result = AvailabilityResult(is_available=True)

        assert result.to_payload() == {"isAvailable": True, "conflicts": []}

    def test_unavailable_payload(self) -> None:
        """Conflicts and suggestions are rendered when busy."""
        conflict = ExistingEvent(title="Class", start=_utc(2025, 9, 8, 18), end=_utc(2025, 9, 8, 19))
        result = AvailabilityResult(
            is_available=False,
            conflicts=[conflict],
            suggested_starts=[_utc(2025, 9, 8, 13), _utc(2025, 9, 8, 15)],
        )

        assert result.to_payload() == {
            "isAvailable": False,
            "conflicts": [
                {
                    "title": "Class",
                    "start": "2025-09-08T18:00:00.000Z",
                    "end": "2025-09-08T19:00:00.000Z",
                }
            ],
            "suggestedStarts": ["2025-09-08T13:00:00.000Z", "2025-09-08T15:00:00.000Z"],
        }
