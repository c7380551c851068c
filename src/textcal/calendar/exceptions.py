"""Google Calendar errors and the retry policy for calendar calls.

Exception hierarchy::

    CalendarAPIError           (any Calendar failure; carries status_code)
    +-- CalendarAuthError      (401, failed token refresh, missing secrets)
    +-- CalendarRateLimitError (429)
    +-- CalendarNotFoundError  (404, e.g. unknown calendar id)

:func:`with_retry` wraps client methods.  Transient failures (429 and
network errors) are retried with exponential backoff, a 401 triggers one
credential refresh, anything else surfaces as a :class:`CalendarAPIError`.
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable
from typing import ParamSpec, TypeVar

from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

RETRY_ATTEMPTS = 3
RETRY_BASE_DELAY = 1.0  # seconds


class CalendarAPIError(Exception):
    """A Google Calendar call failed.

    Attributes:
        status_code: HTTP status of the failed call, ``None`` when the
            failure happened below HTTP (DNS, socket, timeout).
    """

    default_status: int | None = None

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code if status_code is not None else self.default_status


class CalendarAuthError(CalendarAPIError):
    """Credentials are missing, expired or rejected."""

    default_status = 401


class CalendarRateLimitError(CalendarAPIError):
    """Too many requests; the quota resets after a short wait."""

    default_status = 429


class CalendarNotFoundError(CalendarAPIError):
    """The calendar or event id does not exist."""

    default_status = 404


_ERRORS_BY_STATUS: dict[int, type[CalendarAPIError]] = {
    cls.default_status: cls
    for cls in (CalendarAuthError, CalendarRateLimitError, CalendarNotFoundError)
}


def classify_http_error(error: HttpError) -> CalendarAPIError:
    """Translate a client-library ``HttpError`` into the hierarchy above."""
    status = int(error.resp.status)
    error_cls = _ERRORS_BY_STATUS.get(status, CalendarAPIError)
    return error_cls(str(error), status_code=status)


# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------


def with_retry(
    max_retries: int = RETRY_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorate a client method with the calendar retry policy.

    The n-th retry of a transient failure (429, ``OSError``,
    ``TimeoutError``) waits ``base_delay * 2**n`` seconds; after
    *max_retries* retries the failure is raised.  A 401 calls the owner's
    ``_refresh_credentials()`` hook and retries once.

    Args:
        max_retries: Retries allowed for transient failures.
        base_delay: Wait before the first retry, in seconds.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            retries = 0
            refreshed = False

            while True:
                try:
                    return func(*args, **kwargs)
                except HttpError as exc:
                    error = classify_http_error(exc)
                    if isinstance(error, CalendarAuthError) and not refreshed:
                        refreshed = True
                        logger.warning("Calendar rejected credentials (401), refreshing")
                        _refresh(args[0] if args else None)
                        continue
                    if not isinstance(error, CalendarRateLimitError) or retries >= max_retries:
                        logger.error("Calendar call %s failed: %s", func.__name__, error)
                        raise error from exc
                    reason = "rate limited"
                except (OSError, TimeoutError) as exc:
                    if retries >= max_retries:
                        raise CalendarAPIError(
                            f"Network error after {max_retries} retries: {exc}"
                        ) from exc
                    reason = f"network error ({exc})"

                delay = base_delay * 2**retries
                retries += 1
                logger.warning(
                    "Calendar call %s %s, retry %d/%d in %.1fs",
                    func.__name__,
                    reason,
                    retries,
                    max_retries,
                    delay,
                )
                time.sleep(delay)

        return wrapper

    return decorator


def _refresh(owner: object) -> None:
    hook = getattr(owner, "_refresh_credentials", None)
    if hook is None:
        logger.warning("%r has no credential refresh hook, retrying as-is", owner)
        return
    try:
        hook()
    except Exception as exc:
        raise CalendarAuthError(f"Token refresh failed: {exc}") from exc
