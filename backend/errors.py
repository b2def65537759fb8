"""
Request-path error taxonomy.

Every failure the speech pipeline reports to a caller is one of these.
Routes translate them into HTTP responses; nothing here knows about HTTP.

None of these are retried internally.
"""

from __future__ import annotations


class SpeechRequestError(Exception):
    """Base class for errors surfaced to the caller with a distinct reason."""


# -------------------------
# Input validation (zero cost, before any downstream call)
# -------------------------

class InputMissing(SpeechRequestError):
    """Text is absent, not a string, or whitespace only."""


class InputTooLong(SpeechRequestError):
    """Text exceeds the endpoint's character cap."""

    def __init__(self, length: int, max_chars: int) -> None:
        super().__init__(f"text length {length} > {max_chars}")
        self.length = length
        self.max_chars = max_chars


# -------------------------
# Cost control
# -------------------------

class RateLimitExceeded(SpeechRequestError):
    """
    Caller identity exceeded its quota within the sliding window.

    Always recoverable by waiting retry_after_ms.
    """

    def __init__(self, limiter: str, retry_after_ms: int) -> None:
        super().__init__(f"rate limit '{limiter}' exceeded; retry after {retry_after_ms}ms")
        self.limiter = limiter
        self.retry_after_ms = retry_after_ms


# -------------------------
# Upstream / server side
# -------------------------

class ServiceNotConfigured(SpeechRequestError):
    """No speech synthesizer is available (missing API key)."""


class UpstreamFailure(SpeechRequestError):
    """
    The external speech call failed (network, quota, model error).

    The message is the upstream's own description, kept for diagnostics.
    """


class NoAudioData(SpeechRequestError):
    """The upstream call succeeded but returned no audio payload."""
