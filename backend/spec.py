"""
SPEC-AS-CONSTANTS
-----------------
Single source of truth for all behavioral invariants in the system.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final, Tuple

# =============================================================================
# Upstream PCM Format (PCM16 mono @ 24kHz)
# =============================================================================
# The speech model emits 24kHz mono signed 16-bit little-endian samples
# whenever it returns headerless PCM. There is no negotiation.

WAV_SAMPLE_RATE_HZ: Final[int] = 24_000
WAV_CHANNELS: Final[int] = 1
WAV_BITS_PER_SAMPLE: Final[int] = 16
WAV_SAMPLE_WIDTH_BYTES: Final[int] = WAV_BITS_PER_SAMPLE // 8

WAV_BLOCK_ALIGN: Final[int] = WAV_CHANNELS * WAV_SAMPLE_WIDTH_BYTES
WAV_BYTE_RATE: Final[int] = WAV_SAMPLE_RATE_HZ * WAV_BLOCK_ALIGN

# =============================================================================
# WAV Container Layout (canonical RIFF/WAVE PCM, little-endian)
# =============================================================================

WAV_HEADER_BYTES: Final[int] = 44
WAV_FMT_CHUNK_BYTES: Final[int] = 16
WAV_AUDIO_FORMAT_PCM: Final[int] = 1

# ChunkSize = 36 + dataLength must fit an unsigned 32-bit field
WAV_RIFF_SIZE_OVERHEAD: Final[int] = WAV_HEADER_BYTES - 8
U32_MAX: Final[int] = 2**32 - 1
WAV_MAX_DATA_BYTES: Final[int] = U32_MAX - WAV_RIFF_SIZE_OVERHEAD

RIFF_TAG: Final[bytes] = b"RIFF"
WAVE_TAG: Final[bytes] = b"WAVE"
FMT_TAG: Final[bytes] = b"fmt "
DATA_TAG: Final[bytes] = b"data"

# =============================================================================
# Media Types
# =============================================================================

# Case-insensitive substrings that mark a declared type as headerless PCM
PCM_MIME_MARKERS: Final[Tuple[str, ...]] = ("l16", "pcm")

MIME_WAV: Final[str] = "audio/wav"
MIME_MPEG: Final[str] = "audio/mpeg"
MIME_FALLBACK: Final[str] = "application/octet-stream"

# Aliases -> canonical label understood by browser audio elements
MIME_ALIASES: Final[dict[str, str]] = {
    "audio/mp3": MIME_MPEG,
    "audio/mpeg3": MIME_MPEG,
    "audio/x-mp3": MIME_MPEG,
    "audio/x-mpeg": MIME_MPEG,
    "audio/wave": MIME_WAV,
    "audio/x-wav": MIME_WAV,
    "audio/vnd.wave": MIME_WAV,
    "audio/x-aac": "audio/aac",
    "audio/x-flac": "audio/flac",
    "audio/opus": "audio/ogg",
}

# =============================================================================
# Rate Limiting (sliding window, per caller identity)
# =============================================================================

RATE_LIMIT_WINDOW_MS: Final[int] = 60_000

# General-purpose quota for every /api/* route
RATE_LIMIT_MAX_CALLS_DEFAULT: Final[int] = 10

# Speech synthesis is the most expensive upstream call
RATE_LIMIT_MAX_CALLS_TTS: Final[int] = 5

UNKNOWN_CALLER_IDENTITY: Final[str] = "unknown"

# =============================================================================
# Speech Endpoint Input
# =============================================================================

TTS_MAX_TEXT_CHARS: Final[int] = 200

# =============================================================================
# Helper Functions
# =============================================================================

def ms_to_whole_seconds(duration_ms: int) -> int:
    """
    Round a millisecond duration UP to whole seconds (Retry-After style).

    Non-positive input returns 0.
    """
    if duration_ms <= 0:
        return 0
    return -(-duration_ms // 1000)

