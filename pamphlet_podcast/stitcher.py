"""Join same-format WAV buffers into one continuous WAV file."""

import logging

from pamphlet_podcast.errors import InvalidInput, FormatMismatch
from pamphlet_podcast.media import decode_data_url, encode_data_url
from pamphlet_podcast.wav import parse_header, extract_payload, build_header

logger = logging.getLogger(__name__)


def stitch(wav_buffers: list[bytes]) -> bytes:
    """Concatenate PCM payloads in order under one recomputed header.

    Format is taken from the first buffer. Every other buffer must match it
    exactly; no resampling is attempted.
    """
    if not wav_buffers:
        raise InvalidInput("No audio files to stitch")

    if len(wav_buffers) == 1:
        return wav_buffers[0]

    first = parse_header(wav_buffers[0])
    for i, buf in enumerate(wav_buffers[1:], start=1):
        header = parse_header(buf)
        if header.format != first.format:
            raise FormatMismatch(
                f"WAV {i} is {header.sample_rate} Hz/{header.num_channels} ch/{header.bits_per_sample}-bit, "
                f"expected {first.sample_rate} Hz/{first.num_channels} ch/{first.bits_per_sample}-bit"
            )

    payload = b"".join(extract_payload(buf) for buf in wav_buffers)
    logger.info("Stitched %d WAV buffers into %d PCM bytes", len(wav_buffers), len(payload))

    return build_header(
        len(payload),
        first.sample_rate,
        first.num_channels,
        first.bits_per_sample,
    ) + payload


def stitch_wav_files(data_urls: list[str]) -> str:
    """Data-URL front end to stitch(); returns an audio/wav data URL."""
    if not data_urls:
        raise InvalidInput("No audio files to stitch")
    if len(data_urls) == 1:
        return data_urls[0]
    buffers = [decode_data_url(url)[0] for url in data_urls]
    return encode_data_url(stitch(buffers), "audio/wav")
