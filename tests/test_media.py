"""Tests for data URLs and media placement."""

import asyncio
import base64
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import requests

from pamphlet_podcast.errors import InvalidInput, UpstreamError
from pamphlet_podcast.media import (
    VercelBlobStore,
    decode_data_url,
    download_media_if_needed,
    encode_data_url,
    is_hosted,
    media_reference_to_part,
    strip_data_url_prefix,
    upload_media_if_needed,
)
from pamphlet_podcast.models import MediaReference

BIG = base64.b64encode(b"\x00" * 4096).decode()


def test_data_url_round_trip():
    url = encode_data_url(b"hello", "audio/wav")
    assert url == "data:audio/wav;base64,aGVsbG8="
    assert decode_data_url(url) == (b"hello", "audio/wav")


def test_decode_bare_base64():
    assert decode_data_url("aGVsbG8=") == (b"hello", "application/octet-stream")


@pytest.mark.parametrize("bad", ["data:audio/wav;base64", "data:audio/wav;base64,@@@!", "not base64!"])
def test_decode_malformed(bad):
    with pytest.raises(InvalidInput):
        decode_data_url(bad)


def test_strip_data_url_prefix():
    assert strip_data_url_prefix("data:image/png;base64,QUJD") == "QUJD"
    assert strip_data_url_prefix("QUJD") == "QUJD"


@pytest.mark.parametrize("env,expected", [
    ({"VERCEL": "1"}, True),
    ({"VERCEL_ENV": "production"}, True),
    ({"NEXT_PUBLIC_VERCEL_ENV": "preview"}, True),
    ({}, False),
])
def test_is_hosted(monkeypatch, env, expected):
    for name in ("VERCEL", "VERCEL_ENV", "NEXT_PUBLIC_VERCEL_ENV"):
        monkeypatch.delenv(name, raising=False)
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    assert is_hosted() is expected


def test_upload_stays_inline_when_not_hosted():
    store = MagicMock()
    store.put = AsyncMock()
    ref = asyncio.run(upload_media_if_needed(BIG, "audio/wav", "a.wav", blob_store=store, max_inline_size=10, hosted=False))
    assert ref.type == "inline"
    assert ref.data == BIG
    store.put.assert_not_called()


def test_upload_stays_inline_when_small():
    store = MagicMock()
    store.put = AsyncMock()
    ref = asyncio.run(upload_media_if_needed("data:audio/wav;base64,QUJD", "audio/wav", "a.wav", blob_store=store, hosted=True))
    assert ref == MediaReference(type="inline", mime_type="audio/wav", data="QUJD")
    store.put.assert_not_called()


def test_upload_stays_inline_without_store():
    ref = asyncio.run(upload_media_if_needed(BIG, "audio/wav", "a.wav", max_inline_size=10, hosted=True))
    assert ref.type == "inline"


def test_upload_large_hosted_goes_to_blob():
    store = MagicMock()
    store.put = AsyncMock(return_value="https://blob.example/a.wav")
    ref = asyncio.run(upload_media_if_needed(BIG, "audio/wav", "a.wav", blob_store=store, max_inline_size=10, hosted=True))
    assert ref == MediaReference(type="blob", mime_type="audio/wav", url="https://blob.example/a.wav")
    store.put.assert_awaited_once_with("a.wav", b"\x00" * 4096, "audio/wav")


def test_upload_failure_falls_back_to_inline():
    store = MagicMock()
    store.put = AsyncMock(side_effect=UpstreamError("boom", status=500))
    ref = asyncio.run(upload_media_if_needed(BIG, "audio/wav", "a.wav", blob_store=store, max_inline_size=10, hosted=True))
    assert ref.type == "inline"
    assert ref.data == BIG


def test_download_inline():
    ref = MediaReference(type="inline", mime_type="image/png", data="QUJD")
    assert asyncio.run(download_media_if_needed(ref)) == "QUJD"


@patch("pamphlet_podcast.media.requests.get")
def test_download_blob(mock_get):
    mock_get.return_value = MagicMock(content=b"ABC", raise_for_status=MagicMock())
    ref = MediaReference(type="blob", mime_type="image/png", url="https://blob.example/x.png")
    assert asyncio.run(download_media_if_needed(ref)) == "QUJD"
    assert mock_get.call_args[0][0] == "https://blob.example/x.png"


@patch("pamphlet_podcast.media.requests.get")
def test_download_blob_failure(mock_get):
    mock_get.side_effect = requests.ConnectionError("down")
    ref = MediaReference(type="blob", mime_type="image/png", url="https://blob.example/x.png")
    with pytest.raises(UpstreamError, match="Failed to retrieve media file"):
        asyncio.run(download_media_if_needed(ref))


def test_media_reference_to_part():
    ref = MediaReference(type="inline", mime_type="image/png", data="QUJD")
    assert media_reference_to_part(ref) == {"inline_data": {"data": "QUJD", "mime_type": "image/png"}}
    with pytest.raises(InvalidInput):
        media_reference_to_part(MediaReference(type="blob", mime_type="image/png", url="https://x"))


@patch("pamphlet_podcast.media.requests.put")
def test_blob_store_put(mock_put):
    mock_put.return_value = MagicMock(status_code=200, json=MagicMock(return_value={"url": "https://blob.example/a.wav"}))
    store = VercelBlobStore("tok", api_url="https://blob.example/")
    assert asyncio.run(store.put("a.wav", b"data", "audio/wav")) == "https://blob.example/a.wav"
    args, kwargs = mock_put.call_args
    assert args[0] == "https://blob.example/a.wav"
    assert kwargs["headers"]["authorization"] == "Bearer tok"
    assert kwargs["headers"]["x-content-type"] == "audio/wav"


@patch("pamphlet_podcast.media.requests.put")
def test_blob_store_put_error(mock_put):
    mock_put.return_value = MagicMock(status_code=403, text="forbidden")
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(VercelBlobStore("tok").put("a.wav", b"data", "audio/wav"))
    assert exc_info.value.status == 403


def test_blob_store_from_env(monkeypatch):
    monkeypatch.delenv("BLOB_READ_WRITE_TOKEN", raising=False)
    assert VercelBlobStore.from_env() is None
    monkeypatch.setenv("BLOB_READ_WRITE_TOKEN", "tok")
    assert VercelBlobStore.from_env().token == "tok"
