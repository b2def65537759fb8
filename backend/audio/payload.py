"""
Audio payload primitives.

Pure data containers only.
No classification, no framing, no I/O.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass


@dataclass(frozen=True)
class AudioPayload:
    """
    Audio exactly as returned by the upstream speech model.

    data:
        Raw bytes. Either headerless PCM samples or an already-encoded
        bitstream (MP3, Opus, ...). May be empty when the model produced
        nothing; the framer rejects that case.

    mime_type:
        Declared media type, free-form (e.g. "audio/L16;rate=24000",
        "audio/pcm", "audio/mp3"). Never trusted beyond classification.
    """
    data: bytes
    mime_type: str


@dataclass(frozen=True)
class FramedAudio:
    """
    Audio shaped for a standard player.

    data is either a complete WAV file or the untouched encoded bitstream;
    mime_type is the normalized label.
    """
    data: bytes
    mime_type: str

    def to_base64(self) -> str:
        """Return data as an ASCII base64 string for JSON transport."""
        return base64.b64encode(self.data).decode("ascii")
