# backend/protocol/wav.py
"""
WAV container helpers for headerless PCM.

Canonical 44-byte RIFF/WAVE PCM header, all multi-byte fields little-endian:

    0   4  ChunkID        "RIFF"
    4   4  ChunkSize      36 + data_length
    8   4  Format         "WAVE"
    12  4  Subchunk1ID    "fmt "
    16  4  Subchunk1Size  16
    20  2  AudioFormat    1 (PCM)
    22  2  NumChannels    1
    24  4  SampleRate     24000
    28  4  ByteRate       48000
    32  2  BlockAlign     2
    34  2  BitsPerSample  16
    36  4  Subchunk2ID    "data"
    40  4  Subchunk2Size  data_length
    44  -  sample bytes

Usage example:

    wav_bytes = wrap_pcm(pcm_bytes)

    header = parse_wav_header(wav_bytes)
    assert header.data_size == len(pcm_bytes)

PCM alignment is not enforced: an odd data_length is written as given.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from spec import (
    DATA_TAG,
    FMT_TAG,
    RIFF_TAG,
    WAV_AUDIO_FORMAT_PCM,
    WAV_BITS_PER_SAMPLE,
    WAV_BLOCK_ALIGN,
    WAV_BYTE_RATE,
    WAV_CHANNELS,
    WAV_FMT_CHUNK_BYTES,
    WAV_HEADER_BYTES,
    WAV_MAX_DATA_BYTES,
    WAV_RIFF_SIZE_OVERHEAD,
    WAV_SAMPLE_RATE_HZ,
    WAVE_TAG,
)


# -------------------------
# Exceptions
# -------------------------

class WavFormatError(Exception):
    """Base class for WAV container errors."""


class InvalidDataLength(WavFormatError):
    """
    Raised when a data length cannot be described by the header.

    Negative lengths are meaningless; lengths above WAV_MAX_DATA_BYTES would
    overflow the unsigned 32-bit ChunkSize field.
    """


class InvalidWavHeader(WavFormatError):
    """
    Raised when a buffer does not start with a canonical 44-byte PCM header.
    """


# -------------------------
# Layout
# -------------------------

# RIFF descriptor + fmt subchunk + data subchunk header, one pack call
_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")


@dataclass(frozen=True)
class WavHeader:
    """
    Decoded canonical WAV header.

    Field names follow the RIFF specification's chunk layout.
    """
    chunk_size: int
    audio_format: int
    num_channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_size: int

    @property
    def total_size(self) -> int:
        """Size of the full file this header describes (header + data)."""
        return self.chunk_size + 8


# -------------------------
# Encode
# -------------------------

def build_wav_header(data_length: int) -> bytes:
    """
    Build the 44-byte header for `data_length` bytes of 24kHz mono PCM16.

    Pure and deterministic: identical input yields byte-identical output.
    """
    if data_length < 0:
        raise InvalidDataLength(f"data_length must be >= 0, got {data_length}")

    if data_length > WAV_MAX_DATA_BYTES:
        raise InvalidDataLength(
            f"data_length {data_length} > {WAV_MAX_DATA_BYTES} (u32 ChunkSize overflow)"
        )

    return _HEADER_STRUCT.pack(
        RIFF_TAG,
        WAV_RIFF_SIZE_OVERHEAD + data_length,
        WAVE_TAG,
        FMT_TAG,
        WAV_FMT_CHUNK_BYTES,
        WAV_AUDIO_FORMAT_PCM,
        WAV_CHANNELS,
        WAV_SAMPLE_RATE_HZ,
        WAV_BYTE_RATE,
        WAV_BLOCK_ALIGN,
        WAV_BITS_PER_SAMPLE,
        DATA_TAG,
        data_length,
    )


def wrap_pcm(pcm_bytes: bytes) -> bytes:
    """
    Return header + samples as a single self-describing WAV buffer.
    """
    return build_wav_header(len(pcm_bytes)) + pcm_bytes


# -------------------------
# Decode
# -------------------------

def parse_wav_header(buf: bytes) -> WavHeader:
    """
    Read a canonical header back out of `buf`.

    Only the fixed 44-byte layout is understood; WAV files with extra
    chunks (LIST, fact, ...) are rejected rather than scanned.
    """
    if len(buf) < WAV_HEADER_BYTES:
        raise InvalidWavHeader(
            f"buffer length {len(buf)} < {WAV_HEADER_BYTES}"
        )

    (
        riff,
        chunk_size,
        wave,
        fmt,
        fmt_size,
        audio_format,
        num_channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        data,
        data_size,
    ) = _HEADER_STRUCT.unpack_from(buf, 0)

    for expected, actual in (
        (RIFF_TAG, riff),
        (WAVE_TAG, wave),
        (FMT_TAG, fmt),
        (DATA_TAG, data),
    ):
        if actual != expected:
            raise InvalidWavHeader(f"expected tag {expected!r}, got {actual!r}")

    if fmt_size != WAV_FMT_CHUNK_BYTES:
        raise InvalidWavHeader(f"fmt chunk size {fmt_size} != {WAV_FMT_CHUNK_BYTES}")

    return WavHeader(
        chunk_size=chunk_size,
        audio_format=audio_format,
        num_channels=num_channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits_per_sample,
        data_size=data_size,
    )
