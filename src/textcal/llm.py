"""Generative extraction strategies backed by hosted language models.

A generative strategy sends one prompt to a completion backend, pulls the
first JSON object out of the reply, and validates it into an
:class:`~textcal.models.event.ExtractedEvent`.  Any failure along the way
(API error, timeout, no JSON, bad JSON, missing fields, ``end`` before
``start``) is logged and reported as ``None`` so the pipeline can move on
to the next strategy.  There are no retries inside a strategy.

Two completion backends are provided:

- :class:`GeminiCompleter` -- Google Gemini via the ``google-genai`` SDK.
- :class:`OpenAICompleter` -- OpenAI chat completions via ``openai``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from openai import OpenAI, OpenAIError

from textcal.config import ProviderConfig
from textcal.exceptions import ExtractionError, MalformedResponseError
from textcal.models.event import DEFAULT_LOCATION, ExtractedEvent
from textcal.prompts import build_extraction_prompt
from textcal.timeparse import as_utc, format_local, resolve_timezone

logger = logging.getLogger(__name__)

Completer = Callable[[str], str]
"""A completion capability: prompt in, raw response text out.  May raise."""

_REQUIRED_FIELDS: tuple[str, ...] = ("title", "start", "end")
_TEMPERATURE = 0.1
_MAX_TOKENS = 200


# ---------------------------------------------------------------------------
# Completion backends
# ---------------------------------------------------------------------------


class GeminiCompleter:
    """Completion backend for Google Gemini.

    Args:
        api_key: Google Gemini API key.
        model: Model identifier.  Defaults to ``"gemini-2.0-flash"``.
    """

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash") -> None:
        self._client = genai.Client(api_key=api_key)
        self._model = model

    def complete(self, prompt: str) -> str:
        """Send *prompt* to Gemini and return the response text.

        Raises:
            ExtractionError: On API-level failures (network, auth, quota).
        """
        config = genai_types.GenerateContentConfig(
            temperature=_TEMPERATURE,
            max_output_tokens=_MAX_TOKENS,
        )
        try:
            response = self._client.models.generate_content(
                model=self._model,
                contents=prompt,
                config=config,
            )
        except genai_errors.APIError as exc:
            raise ExtractionError(f"Gemini API call failed: {exc}") from exc

        return response.text or ""


class OpenAICompleter:
    """Completion backend for OpenAI chat models.

    Args:
        api_key: OpenAI API key.
        model: Chat model identifier.  Defaults to ``"gpt-3.5-turbo"``.
    """

    def __init__(self, api_key: str, model: str = "gpt-3.5-turbo") -> None:
        self._client = OpenAI(api_key=api_key)
        self._model = model

    def complete(self, prompt: str) -> str:
        """Send *prompt* as a single user message and return the reply.

        Raises:
            ExtractionError: On API-level failures (network, auth, quota).
        """
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=_MAX_TOKENS,
                temperature=_TEMPERATURE,
            )
        except OpenAIError as exc:
            raise ExtractionError(f"OpenAI API call failed: {exc}") from exc

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()


def build_completer(provider: ProviderConfig) -> Completer:
    """Return the ``complete`` callable for a configured provider.

    Raises:
        ValueError: If ``provider.name`` is not a known provider.
    """
    if provider.name == "gemini":
        return GeminiCompleter(api_key=provider.api_key, model=provider.model).complete
    if provider.name == "openai":
        return OpenAICompleter(api_key=provider.api_key, model=provider.model).complete
    raise ValueError(f"Unknown provider: {provider.name!r}")


# ---------------------------------------------------------------------------
# Strategy
# ---------------------------------------------------------------------------


def attempt_extraction(
    complete: Completer,
    text: str,
    reference: datetime,
    timezone: str | None,
    provider: str = "generative",
) -> ExtractedEvent | None:
    """Run one generative extraction attempt.

    Args:
        complete: The completion capability to call (exactly once).
        text: The user's utterance.
        reference: The instant used as "now" in the prompt.
        timezone: IANA timezone of the user; ``None`` means UTC.
        provider: Name used in log messages.

    Returns:
        The extracted event, or ``None`` if the call or any parsing and
        validation step failed.  Never raises.
    """
    try:
        zone = resolve_timezone(timezone)
        prompt = build_extraction_prompt(
            text=text,
            timezone=zone.key,
            current_local_time=format_local(as_utc(reference), zone),
        )
    except (OverflowError, ValueError) as exc:
        logger.warning("%s prompt could not be built: %s", provider, exc)
        return None
    logger.debug("Prompt sent to %s:\n%s", provider, prompt)

    try:
        raw_text = complete(prompt)
    except Exception as exc:
        logger.warning("%s completion failed: %s", provider, exc)
        return None

    logger.debug("Raw %s response:\n%s", provider, raw_text)

    try:
        event = parse_event_payload(raw_text, text)
    except MalformedResponseError as exc:
        logger.warning("%s returned an unusable response: %s", provider, exc)
        return None

    logger.info(
        "%s extracted '%s' (%s -> %s)",
        provider,
        event.title,
        event.start.isoformat(),
        event.end.isoformat(),
    )
    return event


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def extract_json_object(raw_text: str) -> str | None:
    """Return the first balanced ``{...}`` block in *raw_text*.

    Models often wrap the JSON in prose or code fences; this scans from
    the first ``{`` to its matching ``}``, ignoring braces inside string
    literals.

    Returns:
        The JSON object text, or ``None`` if there is no complete object.
    """
    start = raw_text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(raw_text)):
        char = raw_text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return raw_text[start : index + 1]

    return None


def parse_event_payload(raw_text: str, text: str) -> ExtractedEvent:
    """Parse a raw completion into an :class:`ExtractedEvent`.

    ``title``, ``start`` and ``end`` must be non-empty strings.  A missing
    ``location`` becomes ``"TBD"`` and a missing ``description`` becomes
    the original *text*.  Naive timestamps are taken as UTC.

    Args:
        raw_text: The completion text, possibly with prose around the JSON.
        text: The user's original utterance.

    Raises:
        MalformedResponseError: If no valid event can be built.
    """
    candidate = extract_json_object(raw_text or "")
    if candidate is None:
        raise MalformedResponseError("No JSON object in response", raw_response=raw_text or "")

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"Invalid JSON: {exc}", raw_response=raw_text) from exc

    if not isinstance(data, dict):
        raise MalformedResponseError("Response JSON is not an object", raw_response=raw_text)

    missing = [name for name in _REQUIRED_FIELDS if not _has_text(data.get(name))]
    if missing:
        raise MalformedResponseError(
            f"Missing required field(s): {', '.join(missing)}", raw_response=raw_text
        )

    try:
        return ExtractedEvent(
            title=data["title"].strip(),
            start=data["start"],
            end=data["end"],
            location=_text_or(data.get("location"), DEFAULT_LOCATION),
            description=_text_or(data.get("description"), text),
        )
    except (ValueError, TypeError, OverflowError) as exc:
        raise MalformedResponseError(
            f"Event validation failed: {exc}", raw_response=raw_text
        ) from exc


def _has_text(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _text_or(value: object, default: str) -> str:
    return value.strip() if _has_text(value) else default  # type: ignore[union-attr]
