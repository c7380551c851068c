"""Extraction pipeline and request orchestrator.

:class:`ExtractionPipeline` tries an ordered list of strategies and returns
the first event one of them produces.  Generative strategies come first, in
configured priority order; the deterministic extractor is appended by the
constructor and can never fail, so :meth:`ExtractionPipeline.run` always
returns an event.

:func:`run_pipeline` is the top-level entry point for one request:

1. **Extract** -- run the pipeline on the text.
2. **Read calendar** -- when a reader is supplied, fetch the existing
   events around the candidate.  A failed read is logged and the check
   fails open.
3. **Check availability** -- conflicts and alternative starts.
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from textcal.availability import check_availability
from textcal.config import StrategyConfig
from textcal.fallback import extract_event
from textcal.llm import Completer, attempt_extraction, build_completer
from textcal.models.event import AvailabilityResult, ExistingEvent, ExtractedEvent, RawRequest
from textcal.timeparse import at_local_time, resolve_timezone, shift, to_zone, utc_now

logger = logging.getLogger(__name__)

AttemptFn = Callable[[str, datetime, str | None], ExtractedEvent | None]
"""Strategy capability: ``(text, reference, timezone) -> event or None``."""

CalendarReader = Callable[[datetime, datetime], list[ExistingEvent]]
"""Calendar read capability: ``(window_start, window_end) -> events``."""

FALLBACK_STRATEGY = "fallback"

# Days of existing events fetched from the candidate's local midnight:
# the candidate's day for same-day suggestions plus the next day.
_READ_WINDOW_DAYS = 2


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Strategy:
    """One way of turning text into an event.

    Attributes:
        name: Label used in logs and results (``"gemini"``, ``"fallback"``).
        attempt: Returns an event, or ``None`` when the strategy could not
            produce one.  Must not raise.
    """

    name: str
    attempt: AttemptFn


def generative_strategy(name: str, complete: Completer) -> Strategy:
    """Wrap a completion capability as a pipeline :class:`Strategy`."""
    return Strategy(
        name=name,
        attempt=functools.partial(attempt_extraction, complete, provider=name),
    )


DETERMINISTIC_STRATEGY = Strategy(name=FALLBACK_STRATEGY, attempt=extract_event)


@dataclass(frozen=True)
class ExtractionOutcome:
    """The event a pipeline produced and the strategy that produced it."""

    event: ExtractedEvent
    strategy: str


class ExtractionPipeline:
    """Ordered strategy chain with early exit on the first success.

    Args:
        generative: Generative strategies, highest priority first.  The
            deterministic strategy is always appended as the last element.
    """

    def __init__(self, generative: Sequence[Strategy] = ()) -> None:
        self._strategies: tuple[Strategy, ...] = (*generative, DETERMINISTIC_STRATEGY)

    @property
    def strategy_names(self) -> tuple[str, ...]:
        """Names of all strategies in the order they are tried."""
        return tuple(s.name for s in self._strategies)

    def extract(self, request: RawRequest) -> ExtractionOutcome:
        """Run strategies in order until one returns an event.

        Strategies are called one at a time; a failed strategy costs one
        attempt and the next one is tried.

        Args:
            request: The text and its time context.

        Returns:
            The first event produced, with the producing strategy's name.
        """
        for strategy in self._strategies:
            event = strategy.attempt(request.text, request.reference, request.timezone)
            if event is not None:
                logger.info("Event extracted by '%s' strategy", strategy.name)
                return ExtractionOutcome(event=event, strategy=strategy.name)
            logger.info("Strategy '%s' produced no event, trying next", strategy.name)

        # The deterministic strategy always returns an event.
        raise RuntimeError("Deterministic extraction returned no event")

    def run(self, request: RawRequest) -> ExtractedEvent:
        """Return the extracted event for *request*.  Never fails."""
        return self.extract(request).event


def build_pipeline(config: StrategyConfig) -> ExtractionPipeline:
    """Build the pipeline for the process-wide *config*.

    Args:
        config: Enabled providers in priority order.

    Returns:
        A pipeline trying each configured provider, then the
        deterministic extractor.
    """
    strategies = [
        generative_strategy(provider.name, build_completer(provider))
        for provider in config.providers
    ]
    pipeline = ExtractionPipeline(strategies)
    logger.info("Extraction order: %s", " -> ".join(pipeline.strategy_names))
    return pipeline


# ---------------------------------------------------------------------------
# Request orchestration
# ---------------------------------------------------------------------------


@dataclass
class PipelineResult:
    """Everything produced for one request.

    Attributes:
        request: The request that was processed.
        event: The extracted event.
        strategy: Name of the strategy that produced ``event``.
        availability: The availability verdict, or ``None`` when no
            calendar reader was supplied.
        warnings: Non-fatal problems (e.g. a failed calendar read).
        duration_seconds: Wall-clock time for the whole request.
    """

    request: RawRequest
    event: ExtractedEvent
    strategy: str
    availability: AvailabilityResult | None = None
    warnings: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def to_payload(self) -> dict[str, object]:
        """Render ``{event, strategy, availability?, warnings}``."""
        payload: dict[str, object] = {
            "event": self.event.to_payload(),
            "strategy": self.strategy,
        }
        if self.availability is not None:
            payload["availability"] = self.availability.to_payload()
        payload["warnings"] = list(self.warnings)
        return payload


def run_pipeline(
    text: str,
    pipeline: ExtractionPipeline,
    timezone: str | None = None,
    reference: datetime | None = None,
    calendar_reader: CalendarReader | None = None,
) -> PipelineResult:
    """Extract an event from *text* and, optionally, check availability.

    Args:
        text: The user's utterance.
        pipeline: The process-wide extraction pipeline.
        timezone: IANA timezone of the user; ``None`` means UTC.
        reference: Override for "now" (useful for testing).
        calendar_reader: Reads existing events for a window.  When
            ``None`` the availability check is skipped.

    Returns:
        A :class:`PipelineResult`.

    Raises:
        pydantic.ValidationError: If *text* is empty.
    """
    started = time.monotonic()
    request = RawRequest(text=text, timezone=timezone, reference=reference or utc_now())

    logger.info("Extracting event from %r", request.text)
    outcome = pipeline.extract(request)
    result = PipelineResult(request=request, event=outcome.event, strategy=outcome.strategy)

    if calendar_reader is not None:
        existing = _read_existing_events(calendar_reader, outcome.event, request.timezone, result)
        result.availability = check_availability(outcome.event, existing, request.timezone)

    result.duration_seconds = time.monotonic() - started
    logger.info("Request complete in %.2fs", result.duration_seconds)
    return result


def read_window(event: ExtractedEvent, timezone: str | None) -> tuple[datetime, datetime]:
    """Return the window of existing events needed to check *event*.

    Starts at local midnight of the event's day and covers that day and
    the next, widened if the event itself runs past either edge.
    """
    zone = resolve_timezone(timezone)
    local_start = to_zone(event.start, zone) or event.start
    day_start = at_local_time(local_start.date(), 0, 0, zone) or event.start
    day_end = shift(day_start, timedelta(days=_READ_WINDOW_DAYS)) or event.end
    return min(day_start, event.start), max(day_end, event.end)


def _read_existing_events(
    reader: CalendarReader,
    event: ExtractedEvent,
    timezone: str | None,
    result: PipelineResult,
) -> list[ExistingEvent] | None:
    window_start, window_end = read_window(event, timezone)
    try:
        existing = reader(window_start, window_end)
    except Exception as exc:
        msg = f"Calendar read failed, availability not verified: {exc}"
        result.warnings.append(msg)
        logger.warning(msg)
        return None

    logger.info("Read %d existing event(s) for availability check", len(existing))
    return existing
