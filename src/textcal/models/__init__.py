"""Data models for textcal."""

from __future__ import annotations

from textcal.models.event import (
    DEFAULT_LOCATION,
    AvailabilityResult,
    ExistingEvent,
    ExtractedEvent,
    Interval,
    RawRequest,
)

__all__ = [
    "DEFAULT_LOCATION",
    "AvailabilityResult",
    "ExistingEvent",
    "ExtractedEvent",
    "Interval",
    "RawRequest",
]
