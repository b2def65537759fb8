"""
Audio response framing.

Responsibilities:
- Classify an upstream payload's declared media type
- Wrap headerless PCM in a WAV container
- Pass encoded bitstreams through with a normalized media type

Non-responsibilities:
- No provider calls
- No base64 / JSON transport
- No retries

Stateless; safe to call from any number of concurrent requests.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from audio.payload import AudioPayload, FramedAudio
from audio.pcm import pcm16le_stats
from errors import NoAudioData
from observability.logger import log_event
from protocol.wav import wrap_pcm
from spec import (
    MIME_ALIASES,
    MIME_FALLBACK,
    MIME_WAV,
    PCM_MIME_MARKERS,
)


class AudioEncoding(str, Enum):
    """
    How an upstream payload must be treated.

    PCM:
        Headerless linear PCM (24kHz mono PCM16 LE). Needs a container.

    ENCODED:
        Already a self-describing bitstream. Sent as is.
    """
    PCM = "pcm"
    ENCODED = "encoded"


def classify_mime_type(mime_type: Optional[str]) -> AudioEncoding:
    """
    Case-insensitive substring match on the declared type.

    "audio/L16;rate=24000", "audio/pcm", "audio/x-pcm" -> PCM
    everything else (including empty) -> ENCODED
    """
    lowered = (mime_type or "").lower()
    if any(marker in lowered for marker in PCM_MIME_MARKERS):
        return AudioEncoding.PCM
    return AudioEncoding.ENCODED


def normalize_mime_type(mime_type: Optional[str]) -> str:
    """Strip parameters and case, then map known aliases to canonical labels."""
    base = (mime_type or "").split(";", 1)[0].strip().lower()
    if not base:
        return MIME_FALLBACK
    return MIME_ALIASES.get(base, base)


def frame(
    data: Optional[bytes],
    declared_mime_type: Optional[str],
    *,
    request_id: str | None = None,
) -> FramedAudio:
    """
    Shape upstream audio into something a standard player can consume.

    Raises:
        NoAudioData if data is None or empty. Present-but-odd data
        (odd byte counts, unknown types) never raises.
    """
    if not data:
        raise NoAudioData("upstream returned no audio data")

    encoding = classify_mime_type(declared_mime_type)

    if encoding is AudioEncoding.PCM:
        framed = FramedAudio(data=wrap_pcm(data), mime_type=MIME_WAV)
        stats = pcm16le_stats(data)
        log_event({
            "event_type": "AUDIO_FRAMED",
            "request_id": request_id,
            "encoding": encoding.value,
            "declared_mime_type": declared_mime_type,
            "mime_type": framed.mime_type,
            "pcm_bytes": len(data),
            "output_bytes": len(framed.data),
            "duration_s": round(stats.duration_s, 3),
            "rms": round(stats.rms, 5),
            "peak": round(stats.peak, 5),
        })
        return framed

    framed = FramedAudio(data=data, mime_type=normalize_mime_type(declared_mime_type))
    log_event({
        "event_type": "AUDIO_FRAMED",
        "request_id": request_id,
        "encoding": encoding.value,
        "declared_mime_type": declared_mime_type,
        "mime_type": framed.mime_type,
        "output_bytes": len(framed.data),
    })
    return framed


def frame_payload(
    payload: Optional[AudioPayload],
    *,
    request_id: str | None = None,
) -> FramedAudio:
    """frame() for a whole upstream payload; a missing payload is NoAudioData."""
    if payload is None:
        raise NoAudioData("upstream returned no audio payload")
    return frame(payload.data, payload.mime_type, request_id=request_id)
