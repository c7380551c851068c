"""Console and JSON rendering for pipeline results.

:func:`format_pipeline_result` renders a
:class:`~textcal.pipeline.PipelineResult` as a labelled console report:
the request, the extracted event, the availability verdict and a summary.
:func:`format_pipeline_json` renders the machine-readable payload.
The ``print_*`` functions write to stdout.
"""

from __future__ import annotations

import json
import sys
from datetime import datetime, tzinfo

from textcal.models.event import AvailabilityResult, ExistingEvent
from textcal.pipeline import PipelineResult
from textcal.timeparse import format_local, resolve_timezone

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_BANNER_WIDTH = 60
_SEPARATOR = "=" * _BANNER_WIDTH


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def format_pipeline_result(result: PipelineResult) -> str:
    """Render a :class:`PipelineResult` as a console report.

    Sections:

    - **Request** -- the text, timezone and reference instant.
    - **Event** -- title, local time range, location and strategy.
    - **Availability** -- free/busy verdict, conflicts and suggestions;
      shown as "not checked" when no calendar was read.
    - **Summary** -- warnings and request duration.

    Args:
        result: The pipeline result to format.

    Returns:
        A multi-line string ready for console display.
    """
    zone = resolve_timezone(result.request.timezone)
    lines: list[str] = []

    _append_banner(lines)
    _append_request(lines, result, zone)
    _append_event(lines, result, zone)
    _append_availability(lines, result.availability, zone)
    _append_summary(lines, result)
    lines.append(_SEPARATOR)

    return "\n".join(lines)


def format_pipeline_json(result: PipelineResult) -> str:
    """Render the result payload as indented JSON."""
    return json.dumps(result.to_payload(), indent=2)


def print_pipeline_result(result: PipelineResult, as_json: bool = False) -> None:
    """Format and print *result* to stdout.

    Args:
        result: The pipeline result to display.
        as_json: Print the JSON payload instead of the console report.
    """
    rendered = format_pipeline_json(result) if as_json else format_pipeline_result(result)
    sys.stdout.write(rendered + "\n")


# ---------------------------------------------------------------------------
# Internal formatters
# ---------------------------------------------------------------------------


def _append_banner(lines: list[str]) -> None:
    lines.append(_SEPARATOR)
    lines.append("  TEXT-TO-CALENDAR")
    lines.append(_SEPARATOR)


def _append_request(lines: list[str], result: PipelineResult, zone: tzinfo) -> None:
    request = result.request
    lines.append("")
    lines.append("--- REQUEST ---")
    lines.append(f'  Text: "{request.text}"')
    lines.append(f"  Timezone: {getattr(zone, 'key', 'UTC')}")
    lines.append(f"  Reference: {format_local(request.reference, zone)}")


def _append_event(lines: list[str], result: PipelineResult, zone: tzinfo) -> None:
    event = result.event
    lines.append("")
    lines.append("--- EVENT ---")
    lines.append(f"  Title: {event.title}")
    lines.append(f"  When: {_format_range(event.start, event.end, zone)}")
    lines.append(f"  Where: {event.location}")
    lines.append(f"  Extracted by: {result.strategy}")


def _append_availability(
    lines: list[str],
    availability: AvailabilityResult | None,
    zone: tzinfo,
) -> None:
    lines.append("")
    lines.append("--- AVAILABILITY ---")

    if availability is None:
        lines.append("  Not checked (no calendar).")
        return

    if availability.is_available:
        lines.append("  [FREE] No conflicts.")
        return

    lines.append(f"  [BUSY] {len(availability.conflicts)} conflict(s)")
    for conflict in availability.conflicts:
        lines.append(f"    - {_format_conflict(conflict, zone)}")

    lines.append("  Suggested starts:")
    for start in availability.suggested_starts:
        lines.append(f"    - {format_local(start, zone)}")


def _append_summary(lines: list[str], result: PipelineResult) -> None:
    lines.append("")
    lines.append("--- SUMMARY ---")
    lines.append(f"  Warnings: {len(result.warnings)}")
    for warning in result.warnings:
        lines.append(f"    - {warning}")
    lines.append(f"  Duration: {result.duration_seconds:.2f}s")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _format_range(start: datetime, end: datetime, zone: tzinfo) -> str:
    local_start = start.astimezone(zone)
    local_end = end.astimezone(zone)
    if local_start.date() == local_end.date():
        return f"{format_local(start, zone)} - {local_end:%I:%M %p}"
    return f"{format_local(start, zone)} - {format_local(end, zone)}"


def _format_conflict(conflict: ExistingEvent, zone: tzinfo) -> str:
    title = conflict.title or "(untitled)"
    if conflict.is_all_day:
        return f"{title} (all day)"
    if isinstance(conflict.start, datetime) and conflict.start.tzinfo is not None:
        return f"{title} at {format_local(conflict.start, zone)}"
    return f"{title} at {conflict.start.isoformat()}"
