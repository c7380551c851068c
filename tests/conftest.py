"""Shared fixtures for textcal tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from datetime import datetime, timezone

import pytest

_TEXTCAL_ENV_VARS = (
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "EXTRACTION_PROVIDERS",
    "TIMEZONE",
    "LOG_LEVEL",
    "CALENDAR_ID",
    "GOOGLE_CREDENTIALS_PATH",
    "GOOGLE_TOKEN_PATH",
)


@pytest.fixture()
def monkeypatch_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set provider keys and a timezone to valid test values.

    Also patches ``load_dotenv`` so that a real ``.env`` file on disk does not
    override the test values.

    Returns the dict of variables so tests can inspect or override values.
    """
    monkeypatch.setattr("textcal.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _TEXTCAL_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    env_vars = {
        "GEMINI_API_KEY": "test-gemini-key-12345",
        "OPENAI_API_KEY": "test-openai-key-67890",
        "TIMEZONE": "America/New_York",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all textcal-related environment variables.

    Patches ``load_dotenv`` so a real ``.env`` file cannot re-inject values
    that the test explicitly removed.
    """
    monkeypatch.setattr("textcal.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _TEXTCAL_ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def reference() -> datetime:
    """Sunday 2025-09-07 12:00 in New York (16:00 UTC)."""
    return datetime(2025, 9, 7, 16, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Generator[None, None, None]:
    """Reset the root logger after each test to prevent handler leaks."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
