"""Tests for the generative extraction prompt."""

from __future__ import annotations

from textcal.prompts import build_extraction_prompt

_LOCAL_NOW = "Sunday, September 7, 2025 at 12:00 PM EDT"


def _prompt(text: str = "dinner at 7pm") -> str:
    return build_extraction_prompt(text, "America/New_York", _LOCAL_NOW)


class TestBuildExtractionPrompt:
    """Content of the extraction prompt."""

    def test_text_embedded_verbatim(self) -> None:
        """The user's text appears in the prompt, quoted."""
        assert '"dinner at 7pm"' in _prompt()

    def test_timezone_context(self) -> None:
        """Timezone and current local time are stated."""
        prompt = _prompt()

        assert "User's timezone: America/New_York" in prompt
        assert f"Current time in user's timezone: {_LOCAL_NOW}" in prompt

    def test_defaults_stated(self) -> None:
        """The 2pm, one-hour and TBD defaults are spelled out."""
        prompt = _prompt()

        assert "2pm" in prompt
        assert "1 hour" in prompt
        assert '"TBD"' in prompt

    def test_output_keys_listed(self) -> None:
        """Every output key is described."""
        prompt = _prompt()

        for key in ("title", "start", "end", "location", "description"):
            assert f'"{key}"' in prompt

    def test_examples_are_valid_json(self) -> None:
        """The worked examples render literal braces, not format fields."""
        prompt = _prompt()

        assert '{"title": "Gym Session", "start": "2025-09-08T18:00:00.000Z", ' in prompt
        assert "{{" not in prompt

    def test_braces_in_text_are_safe(self) -> None:
        """User text containing braces is not treated as a format string."""
        assert "{party}" in _prompt("{party} tomorrow")
