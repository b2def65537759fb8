"""
Speech request pipeline.

validate -> rate limit -> synthesizer (external) -> frame

Ordering rules:
- Validation and rate limiting happen before any upstream cost is incurred.
- Validation failures do not consume quota.
- The only suspension point is the synthesizer call; the rest is linear.
- No deadline logic: a hung upstream is bounded by the host's request timeout.
"""

from __future__ import annotations

import uuid
from typing import Any, Callable, Optional

from adapters.tts.base import SpeechSynthesizer
from audio.framer import frame_payload
from audio.payload import FramedAudio
from errors import (
    InputMissing,
    InputTooLong,
    RateLimitExceeded,
    ServiceNotConfigured,
    UpstreamFailure,
)
from observability.logger import log_event, now_ms as wall_clock_ms
from observability.metrics import timed
from ratelimit.sliding_window import Admission, SlidingWindowRateLimiter
from spec import TTS_MAX_TEXT_CHARS


def validate_text(text: Any, *, max_chars: int = TTS_MAX_TEXT_CHARS) -> str:
    """
    Return the stripped text, or raise InputMissing / InputTooLong.

    The cap applies to the stripped text.
    """
    if not isinstance(text, str) or not text.strip():
        raise InputMissing("text is required")

    stripped = text.strip()
    if len(stripped) > max_chars:
        raise InputTooLong(len(stripped), max_chars)

    return stripped


class SpeechService:
    """
    Owns the speech request path for one endpoint.

    Collaborators are injected so the pipeline runs without a network:
    - synthesizer: SpeechSynthesizer, or None when no API key is configured
    - limiter: the endpoint's own SlidingWindowRateLimiter
    - now_ms: wall clock in milliseconds (patchable in tests)
    """

    def __init__(
        self,
        *,
        synthesizer: Optional[SpeechSynthesizer],
        limiter: SlidingWindowRateLimiter,
        now_ms: Callable[[], int] = wall_clock_ms,
        max_text_chars: int = TTS_MAX_TEXT_CHARS,
    ) -> None:
        self._synthesizer = synthesizer
        self._limiter = limiter
        self._now_ms = now_ms
        self._max_text_chars = max_text_chars

    @property
    def limiter(self) -> SlidingWindowRateLimiter:
        """The quota this service enforces."""
        return self._limiter

    async def synthesize(
        self,
        text: Any,
        *,
        identity: str,
        voice: Optional[str] = None,
        request_id: str | None = None,
    ) -> FramedAudio:
        """
        Run the full pipeline for one request.

        Raises:
            InputMissing, InputTooLong: before anything else
            ServiceNotConfigured: no synthesizer (no quota consumed)
            RateLimitExceeded: identity over quota (nothing recorded)
            UpstreamFailure: provider call failed
            NoAudioData: provider returned nothing
        """
        request_id = request_id or uuid.uuid4().hex[:12]

        try:
            cleaned = validate_text(text, max_chars=self._max_text_chars)
        except (InputMissing, InputTooLong) as exc:
            log_event({
                "event_type": "TTS_REQUEST_REJECTED",
                "request_id": request_id,
                "identity": identity,
                "reason": type(exc).__name__,
            })
            raise

        if self._synthesizer is None:
            raise ServiceNotConfigured("no speech synthesizer configured")

        now = self._now_ms()
        if self._limiter.check_and_record(identity, now) is Admission.REJECTED:
            retry_after_ms = self._limiter.retry_after_ms(identity, now)
            log_event({
                "event_type": "TTS_RATE_LIMITED",
                "request_id": request_id,
                "identity": identity,
                "limiter": self._limiter.name,
                "max_calls": self._limiter.max_calls,
                "window_ms": self._limiter.window_ms,
                "retry_after_ms": retry_after_ms,
            })
            raise RateLimitExceeded(self._limiter.name, retry_after_ms)

        log_event({
            "event_type": "TTS_UPSTREAM_CALL",
            "request_id": request_id,
            "identity": identity,
            "text_chars": len(cleaned),
            "text_preview": cleaned[:20],
        })

        try:
            with timed("tts_upstream_latency", request_id=request_id):
                payload = await self._synthesizer.synthesize(text=cleaned, voice=voice)
        except UpstreamFailure as exc:
            self._log_upstream_failure(request_id, exc)
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self._log_upstream_failure(request_id, exc)
            raise UpstreamFailure(str(exc) or type(exc).__name__) from exc

        return frame_payload(payload, request_id=request_id)

    @staticmethod
    def _log_upstream_failure(request_id: str, exc: Exception) -> None:
        log_event({
            "event_type": "TTS_UPSTREAM_FAILURE",
            "request_id": request_id,
            "exception": type(exc).__name__,
            "message": str(exc),
        })
