"""Canonical 44-byte PCM WAV header parsing and synthesis."""

import struct
from dataclasses import dataclass

from pamphlet_podcast.constants import (
    WAV_HEADER_SIZE,
    WAV_PCM_FORMAT,
    WAV_FMT_CHUNK_SIZE,
    TTS_SAMPLE_RATE,
    TTS_NUM_CHANNELS,
    TTS_BITS_PER_SAMPLE,
)
from pamphlet_podcast.errors import InvalidInput

# RIFF size, WAVE, fmt chunk (size, tag, channels, rate, byte rate, align, bits), data size
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")

_WAV_MIME_TYPES = {"audio/wav", "audio/x-wav", "audio/wave", "audio/vnd.wave"}


@dataclass(frozen=True)
class WavHeader:
    sample_rate: int
    num_channels: int
    bits_per_sample: int
    data_size: int

    @property
    def format(self) -> tuple[int, int, int]:
        return (self.sample_rate, self.num_channels, self.bits_per_sample)


def parse_header(buffer: bytes) -> WavHeader:
    """Read format fields from fixed little-endian offsets.

    Assumes the canonical layout with no extra sub-chunks. Non-canonical
    files yield meaningless values; only a too-short buffer is rejected.
    """
    if len(buffer) < WAV_HEADER_SIZE:
        raise InvalidInput(f"WAV buffer is {len(buffer)} bytes, shorter than the {WAV_HEADER_SIZE}-byte header")
    (num_channels,) = struct.unpack_from("<H", buffer, 22)
    (sample_rate,) = struct.unpack_from("<I", buffer, 24)
    (bits_per_sample,) = struct.unpack_from("<H", buffer, 34)
    (data_size,) = struct.unpack_from("<I", buffer, 40)
    return WavHeader(
        sample_rate=sample_rate,
        num_channels=num_channels,
        bits_per_sample=bits_per_sample,
        data_size=data_size,
    )


def extract_payload(buffer: bytes) -> bytes:
    """Return the PCM bytes following the 44-byte header."""
    return bytes(buffer[WAV_HEADER_SIZE:])


def build_header(
    payload_size: int,
    sample_rate: int = TTS_SAMPLE_RATE,
    num_channels: int = TTS_NUM_CHANNELS,
    bits_per_sample: int = TTS_BITS_PER_SAMPLE,
) -> bytes:
    """Build a 44-byte RIFF/WAVE header for a PCM payload of payload_size bytes."""
    block_align = num_channels * (bits_per_sample // 8)
    byte_rate = sample_rate * block_align
    file_size = WAV_HEADER_SIZE + payload_size - 8
    return _HEADER.pack(
        b"RIFF",
        file_size,
        b"WAVE",
        b"fmt ",
        WAV_FMT_CHUNK_SIZE,
        WAV_PCM_FORMAT,
        num_channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        b"data",
        payload_size,
    )


def add_wav_header(
    pcm: bytes,
    sample_rate: int = TTS_SAMPLE_RATE,
    num_channels: int = TTS_NUM_CHANNELS,
    bits_per_sample: int = TTS_BITS_PER_SAMPLE,
) -> bytes:
    """Wrap raw PCM in a canonical WAV container."""
    return build_header(len(pcm), sample_rate, num_channels, bits_per_sample) + pcm


def parse_audio_mime_type(mime_type: str) -> tuple[int, int]:
    """Parse (sample_rate, bits_per_sample) from e.g. "audio/L16;codec=pcm;rate=24000"."""
    bits_per_sample = TTS_BITS_PER_SAMPLE
    rate = TTS_SAMPLE_RATE

    for param in mime_type.split(";"):
        param = param.strip()
        if param.lower().startswith("rate="):
            try:
                rate = int(param.split("=", 1)[1])
            except (ValueError, IndexError):
                pass
        elif param.startswith("audio/L"):
            try:
                bits_per_sample = int(param.split("L", 1)[1])
            except (ValueError, IndexError):
                pass

    return rate, bits_per_sample


def is_wav(data: bytes, mime_type: str = "") -> bool:
    base = mime_type.split(";")[0].strip().lower()
    return base in _WAV_MIME_TYPES or data[:4] == b"RIFF"


def ensure_wav(data: bytes, mime_type: str) -> bytes:
    """Return WAV bytes, adding a header when the service sent bare PCM."""
    if is_wav(data, mime_type):
        return data
    rate, bits = parse_audio_mime_type(mime_type)
    return add_wav_header(data, sample_rate=rate, num_channels=TTS_NUM_CHANNELS, bits_per_sample=bits)
