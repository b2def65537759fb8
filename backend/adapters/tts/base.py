"""
Speech synthesizer contract.

This module defines the *interface only*: no framing, no rate limiting,
no retries, no HTTP.

Key invariants:
- One synthesize() call = exactly one provider call.
- The synthesizer returns the provider's audio untouched. Turning headerless
  PCM into a playable container is the framer's job (audio/framer.py).
- Provider failures surface as errors.UpstreamFailure carrying the
  provider's message. The synthesizer MUST NOT retry internally.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from audio.payload import AudioPayload


class SpeechSynthesizer(ABC):
    """
    Abstract text-to-speech call.

    Implementations are responsible for:
    - Calling the provider with the given text and voice
    - Declaring the media type of what came back

    Non-responsibilities:
    - No input validation (done upstream, before any cost is incurred)
    - No WAV header synthesis
    - No caching
    """

    @abstractmethod
    async def synthesize(
        self,
        *,
        text: str,
        voice: Optional[str] = None,
    ) -> Optional[AudioPayload]:
        """
        Synthesize `text` into audio.

        Args:
            text: Validated, non-empty text.
            voice: Provider-specific voice id; None selects the configured default.

        Returns:
            AudioPayload, or None when the provider returned no audio at all.
            An AudioPayload with empty data is equivalent to None.

        Raises:
            UpstreamFailure on any provider error.
        """
        raise NotImplementedError
