"""Tests for calendar error classification and the ``@with_retry`` policy.

Each test scripts a sequence of outcomes for a decorated method: an
``HttpError`` status, a network exception, or a return value.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from unittest.mock import patch

import pytest
from googleapiclient.errors import HttpError
from httplib2 import Response

from textcal.calendar.exceptions import (
    CalendarAPIError,
    CalendarAuthError,
    CalendarNotFoundError,
    CalendarRateLimitError,
    classify_http_error,
    with_retry,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_http_error(status: int) -> HttpError:
    """Create a ``googleapiclient.errors.HttpError`` with the given status code."""
    return HttpError(Response({"status": str(status)}), b"simulated error")


class _FakeClient:
    """Stand-in for ``GoogleCalendarClient`` with a scripted API method."""

    def __init__(
        self,
        outcomes: list[object],
        *,
        refresh_error: Exception | None = None,
    ) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0
        self.refreshes = 0
        self._refresh_error = refresh_error

    def _refresh_credentials(self) -> None:
        self.refreshes += 1
        if self._refresh_error is not None:
            raise self._refresh_error

    @with_retry(max_retries=3, base_delay=0.5)
    def fetch(self) -> object:
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class _NoRefreshClient:
    """Client without a ``_refresh_credentials`` hook."""

    def __init__(self, outcomes: list[object]) -> None:
        self.outcomes = list(outcomes)

    @with_retry(max_retries=1, base_delay=0.0)
    def fetch(self) -> object:
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture()
def no_sleep() -> Generator[Callable[[], list[float]], None, None]:
    """Patch ``time.sleep`` and return a getter for the requested delays."""
    with patch("textcal.calendar.exceptions.time.sleep") as mock_sleep:
        yield lambda: [call.args[0] for call in mock_sleep.call_args_list]


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestClassifyHttpError:
    """HTTP statuses map onto the exception hierarchy."""

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (401, CalendarAuthError),
            (404, CalendarNotFoundError),
            (429, CalendarRateLimitError),
        ],
    )
    def test_known_statuses(self, status: int, expected: type[CalendarAPIError]) -> None:
        """401, 404 and 429 get their own subclasses."""
        error = classify_http_error(_make_http_error(status))

        assert type(error) is expected
        assert error.status_code == status

    def test_other_status_keeps_code(self) -> None:
        """Any other status is a plain CalendarAPIError with the code attached."""
        error = classify_http_error(_make_http_error(500))

        assert type(error) is CalendarAPIError
        assert error.status_code == 500

    def test_hierarchy(self) -> None:
        """Every calendar error can be caught as CalendarAPIError."""
        for cls in (CalendarAuthError, CalendarRateLimitError, CalendarNotFoundError):
            assert issubclass(cls, CalendarAPIError)


# ---------------------------------------------------------------------------
# Rate limit (429)
# ---------------------------------------------------------------------------


class TestRateLimit:
    """HTTP 429 is retried with exponential backoff."""

    def test_retry_then_success(self, no_sleep: Callable[[], list[float]]) -> None:
        """One 429, then the call succeeds."""
        client = _FakeClient([_make_http_error(429), "ok"])

        assert client.fetch() == "ok"
        assert client.calls == 2
        assert no_sleep() == [0.5]

    def test_backoff_doubles_until_exhausted(self, no_sleep: Callable[[], list[float]]) -> None:
        """Four 429s: three waits, then CalendarRateLimitError."""
        client = _FakeClient([_make_http_error(429)] * 4)

        with pytest.raises(CalendarRateLimitError):
            client.fetch()

        assert client.calls == 4
        assert no_sleep() == [0.5, 1.0, 2.0]


# ---------------------------------------------------------------------------
# Auth expired (401)
# ---------------------------------------------------------------------------


class TestAuthExpired:
    """HTTP 401 refreshes credentials once."""

    def test_refresh_then_success(self) -> None:
        """The owner's credentials are refreshed and the call retried."""
        client = _FakeClient([_make_http_error(401), "refreshed-ok"])

        assert client.fetch() == "refreshed-ok"
        assert client.refreshes == 1

    def test_second_401_is_raised(self) -> None:
        """Only one refresh is attempted per call."""
        client = _FakeClient([_make_http_error(401), _make_http_error(401)])

        with pytest.raises(CalendarAuthError):
            client.fetch()

        assert client.refreshes == 1
        assert client.calls == 2

    def test_refresh_failure(self) -> None:
        """A failing refresh raises CalendarAuthError."""
        client = _FakeClient(
            [_make_http_error(401)], refresh_error=RuntimeError("refresh broken")
        )

        with pytest.raises(CalendarAuthError, match="Token refresh failed"):
            client.fetch()

    def test_missing_refresh_hook_still_retries(self) -> None:
        """Without a hook the call is retried as-is."""
        client = _NoRefreshClient([_make_http_error(401), "ok"])

        assert client.fetch() == "ok"


# ---------------------------------------------------------------------------
# Network errors
# ---------------------------------------------------------------------------


class TestNetworkErrors:
    """OSError and TimeoutError are retried with backoff."""

    def test_timeout_then_success(self, no_sleep: Callable[[], list[float]]) -> None:
        """A single timeout is recovered from."""
        client = _FakeClient([TimeoutError("timed out"), "recovered"])

        assert client.fetch() == "recovered"
        assert no_sleep() == [0.5]

    def test_exhausted(self, no_sleep: Callable[[], list[float]]) -> None:
        """Four network errors raise CalendarAPIError."""
        client = _FakeClient([ConnectionResetError("reset")] * 4)

        with pytest.raises(CalendarAPIError, match="Network error after 3 retries"):
            client.fetch()

        assert client.calls == 4


# ---------------------------------------------------------------------------
# Non-retryable errors
# ---------------------------------------------------------------------------


class TestNonRetryable:
    """404 and other HTTP errors are raised immediately."""

    def test_not_found(self, no_sleep: Callable[[], list[float]]) -> None:
        """HTTP 404 raises CalendarNotFoundError after one call."""
        client = _FakeClient([_make_http_error(404)])

        with pytest.raises(CalendarNotFoundError):
            client.fetch()

        assert client.calls == 1
        assert no_sleep() == []

    def test_server_error(self) -> None:
        """HTTP 500 raises CalendarAPIError with the status code."""
        client = _FakeClient([_make_http_error(500)])

        with pytest.raises(CalendarAPIError) as exc_info:
            client.fetch()

        assert exc_info.value.status_code == 500
        assert client.calls == 1

    def test_other_exceptions_propagate(self) -> None:
        """Non-HTTP, non-network errors are not wrapped."""
        client = _FakeClient([KeyError("items")])

        with pytest.raises(KeyError):
            client.fetch()
