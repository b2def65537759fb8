"""
OpenAI speech adapter.

Implements SpeechSynthesizer on the OpenAI audio API
(`client.audio.speech.create`).

Role in the system:
- Performs one non-streaming synthesis call per request.
- Returns the provider bytes with a declared media type.

Format notes:
- response_format="pcm" yields raw 24kHz mono signed 16-bit little-endian
  samples with no header; it is declared as "audio/L16;rate=24000" so the
  framer wraps it in WAV.
- mp3 / opus / aac / flac / wav arrive already containerized and are
  passed through.

Architectural constraints:
- No retries, no timers, no rate limiting live here.
- The client is injected (built once per process in server/app.py).
"""
from __future__ import annotations

from typing import Any, Optional

from adapters.tts.base import SpeechSynthesizer
from audio.payload import AudioPayload
from errors import UpstreamFailure
from spec import WAV_SAMPLE_RATE_HZ


class OpenAISpeechSynthesizer(SpeechSynthesizer):
    """
    OpenAI text-to-speech adapter.

    Design:
    - Stateless apart from configuration; safe to share across requests
    - Every provider exception is reported as UpstreamFailure
    """

    _DECLARED_MIME: dict[str, str] = {
        "pcm": f"audio/L16;rate={WAV_SAMPLE_RATE_HZ}",
        "mp3": "audio/mp3",
        "opus": "audio/opus",
        "aac": "audio/aac",
        "flac": "audio/flac",
        "wav": "audio/wav",
    }

    def __init__(
        self,
        *,
        client: Any,
        model: str = "gpt-4o-mini-tts",
        voice: str = "alloy",
        response_format: str = "pcm",
        instructions: str | None = None,
    ) -> None:
        """
        Args:
            client:
                AsyncOpenAI (or API-compatible) client.
            model:
                Speech model identifier.
            voice:
                Default voice when the request does not pick one.
            response_format:
                One of pcm, mp3, opus, aac, flac, wav.
            instructions:
                Optional delivery instructions (tone, pacing).
        """
        if response_format not in self._DECLARED_MIME:
            raise ValueError(f"Unsupported response_format: {response_format}")

        self._client = client
        self._model = model
        self._voice = voice
        self._response_format = response_format
        self._instructions = instructions

    async def synthesize(
        self,
        *,
        text: str,
        voice: Optional[str] = None,
    ) -> Optional[AudioPayload]:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "voice": voice or self._voice,
            "input": text,
            "response_format": self._response_format,
        }
        if self._instructions:
            kwargs["instructions"] = self._instructions

        try:
            response = await self._client.audio.speech.create(**kwargs)
            data = response.content
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise UpstreamFailure(str(exc) or type(exc).__name__) from exc

        if not data:
            return None

        return AudioPayload(
            data=data,
            mime_type=self._DECLARED_MIME[self._response_format],
        )
