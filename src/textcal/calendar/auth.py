"""OAuth 2.0 credentials for the Google Calendar adapter.

Credentials come from the first source that works:

1. the cached user token, while it is still valid;
2. the cached token refreshed with its refresh token;
3. the installed-application browser flow (``google-auth-oauthlib``).

Whatever source succeeds last is written back to the token cache.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from textcal.calendar.exceptions import CalendarAuthError

logger = logging.getLogger(__name__)

SCOPES: list[str] = ["https://www.googleapis.com/auth/calendar.events"]
"""Read and write access to events; no access to calendar settings."""


def get_calendar_credentials(
    credentials_path: Path | str,
    token_path: Path | str,
) -> Credentials:
    """Return usable Calendar credentials, opening a browser if needed.

    Args:
        credentials_path: OAuth client secrets (``credentials.json``).
        token_path: Cached user token (``token.json``), rewritten whenever
            a refresh or browser sign-in produces a new one.

    Returns:
        Credentials carrying :data:`SCOPES`.

    Raises:
        CalendarAuthError: If a browser sign-in is required but the client
            secrets file does not exist.
    """
    secrets = Path(credentials_path)
    cache = Path(token_path)

    cached = _load_cached_token(cache)
    if cached is not None:
        if cached.valid:
            logger.info("Using cached Calendar token from %s", cache)
            return cached
        if cached.expired and cached.refresh_token and _try_refresh(cached):
            _save_token(cached, cache)
            return cached

    creds = _authorize_in_browser(secrets)
    _save_token(creds, cache)
    return creds


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _try_refresh(creds: Credentials) -> bool:
    try:
        creds.refresh(Request())
    except (GoogleAuthError, OSError, ValueError) as exc:
        logger.warning("Calendar token refresh failed, signing in again: %s", exc)
        return False
    logger.info("Calendar token refreshed")
    return True


def _authorize_in_browser(secrets: Path) -> Credentials:
    if not secrets.is_file():
        message = f"OAuth client secrets file not found: {secrets}"
        logger.error(message)
        raise CalendarAuthError(message)

    logger.info("Opening browser for Google Calendar sign-in")
    flow = InstalledAppFlow.from_client_secrets_file(str(secrets), scopes=SCOPES)
    return flow.run_local_server(port=0)


def _load_cached_token(cache: Path) -> Credentials | None:
    """Read the cached token, or ``None`` when absent or unreadable."""
    if not cache.is_file():
        logger.info("No cached Calendar token at %s", cache)
        return None
    try:
        return Credentials.from_authorized_user_file(str(cache), SCOPES)
    except (json.JSONDecodeError, ValueError, KeyError) as exc:
        logger.warning("Ignoring unreadable Calendar token at %s: %s", cache, exc)
        return None


def _save_token(creds: Credentials, cache: Path) -> None:
    cache.parent.mkdir(parents=True, exist_ok=True)
    cache.write_text(creds.to_json())
    logger.info("Calendar token written to %s", cache)
