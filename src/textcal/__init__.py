"""textcal: natural-language text to calendar events.

Extracts a time-bounded event from an utterance such as "gym session
tomorrow for 2 hours at the arc gym" and checks it against the user's
existing calendar, suggesting alternative start times on conflict.
"""

from __future__ import annotations

from textcal.availability import check_availability, overlaps, suggest_slots
from textcal.config import StrategyConfig, build_strategy_config, load_settings, provider_status
from textcal.exceptions import ExtractionError, MalformedResponseError
from textcal.fallback import extract_event
from textcal.models import (
    AvailabilityResult,
    ExistingEvent,
    ExtractedEvent,
    Interval,
    RawRequest,
)
from textcal.pipeline import (
    ExtractionPipeline,
    PipelineResult,
    Strategy,
    build_pipeline,
    run_pipeline,
)

__version__ = "0.1.0"

__all__ = [
    "AvailabilityResult",
    "ExistingEvent",
    "ExtractedEvent",
    "ExtractionError",
    "ExtractionPipeline",
    "Interval",
    "MalformedResponseError",
    "PipelineResult",
    "RawRequest",
    "Strategy",
    "StrategyConfig",
    "build_pipeline",
    "build_strategy_config",
    "check_availability",
    "extract_event",
    "load_settings",
    "overlaps",
    "provider_status",
    "run_pipeline",
    "suggest_slots",
]
