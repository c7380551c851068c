"""Prompt builder for generative event extraction.

The same prompt is sent to every completion provider.  It pins down the
user's timezone and current local time (so "today" and "tomorrow" resolve
correctly), the defaults the deterministic extractor also uses (2 pm,
one hour, ``"TBD"``), and an exact JSON output shape with two worked
examples.
"""

from __future__ import annotations


def build_extraction_prompt(text: str, timezone: str, current_local_time: str) -> str:
    """Build the prompt asking a model to turn *text* into one event.

    Args:
        text: The user's utterance, embedded verbatim.
        timezone: IANA timezone identifier of the user (e.g.
            ``"America/New_York"``).
        current_local_time: "Now" rendered in that timezone, e.g.
            ``"Sunday, September 7, 2025 at 12:00 PM EDT"`` (see
            :func:`~textcal.timeparse.format_local`).

    Returns:
        The complete prompt string.
    """
    return f"""\
You are a calendar event parser. Convert this text to JSON only:

"{text}"

## Timezone Context

- User's timezone: {timezone}
- Current time in user's timezone: {current_local_time}
- Interpret every date and time relative to the user's timezone ({timezone}).
- Convert all times to UTC in the final JSON output.

## Rules

- Return ONLY a single JSON object, no explanations and no markdown.
- Use tomorrow's date if "tomorrow" is mentioned and today's date if "today"
  is mentioned, both relative to the user's timezone.
- Default to 2pm in the user's timezone if no time is specified.
- Default to a 1 hour duration if none is specified.
- Extract the location from the text; use "TBD" if there is none.

## Output Format

A JSON object with exactly these keys:

- "title": short event title with each word capitalized
- "start": UTC ISO 8601 timestamp ending in "Z"
- "end": UTC ISO 8601 timestamp ending in "Z", after "start"
- "location": place name or "TBD"
- "description": short description of the event

## Examples (user in America/New_York, current time Sunday, September 7, 2025)

Input: "gym session tomorrow for 2 hours at the arc gym"
Output: {{"title": "Gym Session", "start": "2025-09-08T18:00:00.000Z", \
"end": "2025-09-08T20:00:00.000Z", "location": "Arc Gym", "description": "Gym session"}}

Input: "meeting at 3pm today"
Output: {{"title": "Meeting", "start": "2025-09-07T19:00:00.000Z", \
"end": "2025-09-07T20:00:00.000Z", "location": "TBD", "description": "Meeting"}}

Now parse: "{text}"
"""
