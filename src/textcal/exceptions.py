"""Custom exceptions for the textcal extraction pipeline.

Generative strategies raise these internally; the strategy boundary in
:mod:`textcal.llm` converts every one of them into a "try the next
strategy" signal, so none of them ever reach a pipeline caller.
"""

from __future__ import annotations


class MalformedResponseError(Exception):
    """Raised when a completion response cannot be turned into an event.

    Covers a missing JSON object, invalid JSON, a non-object payload,
    missing ``title``/``start``/``end`` keys and timestamps that fail
    validation.

    Attributes:
        raw_response: The raw completion text that failed to parse.
    """

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response


class ExtractionError(Exception):
    """Raised when a completion backend cannot produce a response at all.

    Network errors, authentication failures and quota errors from the
    provider SDKs are wrapped in this exception.
    """
