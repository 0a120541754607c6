"""Tests for WAV stitching."""

import pytest

from pamphlet_podcast.errors import FormatMismatch, InvalidInput
from pamphlet_podcast.media import decode_data_url, encode_data_url
from pamphlet_podcast.stitcher import stitch, stitch_wav_files
from pamphlet_podcast.wav import extract_payload, parse_header


def test_stitch_empty_fails():
    with pytest.raises(InvalidInput, match="No audio files"):
        stitch([])


def test_stitch_single_is_identity(make_wav):
    wav = make_wav(b"\x05\x06" * 4)
    assert stitch([wav]) is wav


def test_stitch_concatenates_in_order(make_wav):
    """Payloads are joined byte-exact, in input order."""
    w1, w2, w3 = make_wav(b"aa"), make_wav(b"bbbb"), make_wav(b"cc")
    result = stitch([w1, w2, w3])
    assert extract_payload(result) == b"aabbbbcc"
    header = parse_header(result)
    assert header.data_size == 8
    assert header.format == (24000, 1, 16)
    assert len(result) == 44 + 8


def test_stitch_keeps_first_format(make_wav):
    w1 = make_wav(b"ab", sample_rate=44100, num_channels=2)
    w2 = make_wav(b"cd", sample_rate=44100, num_channels=2)
    assert parse_header(stitch([w1, w2])).format == (44100, 2, 16)


@pytest.mark.parametrize("kwargs", [
    {"sample_rate": 16000},
    {"num_channels": 2},
    {"bits_per_sample": 8},
])
def test_stitch_rejects_format_mismatch(make_wav, kwargs):
    with pytest.raises(FormatMismatch):
        stitch([make_wav(b"ab"), make_wav(b"cd", **kwargs)])


def test_stitch_short_buffer(make_wav):
    with pytest.raises(InvalidInput):
        stitch([make_wav(b"ab"), b"RIFF"])


def test_stitch_wav_files(make_wav):
    urls = [encode_data_url(make_wav(b"11"), "audio/wav"), encode_data_url(make_wav(b"22"), "audio/wav")]
    result = stitch_wav_files(urls)
    assert result.startswith("data:audio/wav;base64,")
    data, mime = decode_data_url(result)
    assert mime == "audio/wav"
    assert extract_payload(data) == b"1122"


def test_stitch_wav_files_single_passthrough(make_wav):
    url = encode_data_url(make_wav(), "audio/wav")
    assert stitch_wav_files([url]) == url


def test_stitch_wav_files_empty():
    with pytest.raises(InvalidInput):
        stitch_wav_files([])
