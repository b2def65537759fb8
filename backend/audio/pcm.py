"""PCM conversion utilities."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from spec import WAV_SAMPLE_RATE_HZ


@dataclass(frozen=True)
class PcmStats:
    """Summary of a PCM16 buffer, for logging only."""
    duration_s: float
    rms: float
    peak: float


def pcm16le_to_float32(pcm_bytes: bytes) -> np.ndarray:
    """
    Convert PCM16 little-endian mono bytes to float32 in [-1.0, 1.0).

    Runtime-safe, adapter-agnostic utility.
    No resampling. No channel mixing.
    """
    if len(pcm_bytes) % 2 != 0:
        # Truncated sample; dropped here only, never from the framed output.
        pcm_bytes = pcm_bytes[: len(pcm_bytes) - 1]

    audio_i16 = np.frombuffer(pcm_bytes, dtype="<i2")  # little-endian int16
    audio_f32 = audio_i16.astype(np.float32) / 32768.0
    return audio_f32


def pcm16le_stats(
    pcm_bytes: bytes,
    *,
    sample_rate_hz: int = WAV_SAMPLE_RATE_HZ,
) -> PcmStats:
    """
    Duration, RMS and peak level of a mono PCM16 buffer.

    An all-zero or empty buffer reports rms == peak == 0.0, which is how
    silent upstream output shows up in the logs.
    """
    samples = pcm16le_to_float32(pcm_bytes)
    if samples.size == 0:
        return PcmStats(duration_s=0.0, rms=0.0, peak=0.0)

    rms = float(np.sqrt(np.mean(np.square(samples))))
    peak = float(np.max(np.abs(samples)))

    return PcmStats(
        duration_s=samples.size / sample_rate_hz,
        rms=rms,
        peak=peak,
    )
