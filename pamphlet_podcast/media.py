"""Data URLs and inline-vs-object-storage media placement."""

import asyncio
import base64
import binascii
import logging
import os

import requests

from pamphlet_podcast.constants import MAX_INLINE_SIZE, BLOB_API_URL, BLOB_TIMEOUT_SECONDS
from pamphlet_podcast.errors import InvalidInput, UpstreamError
from pamphlet_podcast.models import MediaReference

logger = logging.getLogger(__name__)


def encode_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_url(data_url: str) -> tuple[bytes, str]:
    """Decode "data:<mime>;base64,<payload>" (or bare base64) into (bytes, mime)."""
    mime_type = "application/octet-stream"
    payload = data_url
    if data_url.startswith("data:"):
        head, sep, payload = data_url.partition(",")
        if not sep:
            raise InvalidInput("Invalid data URL format")
        mime_type = head[len("data:"):].split(";")[0] or mime_type
    try:
        return base64.b64decode(payload, validate=True), mime_type
    except (binascii.Error, ValueError) as e:
        raise InvalidInput(f"Invalid base64 payload: {e}") from e


def strip_data_url_prefix(data: str) -> str:
    return data.split(",", 1)[1] if "," in data else data


def is_hosted() -> bool:
    """True on the hosted deployment, where request bodies are size-capped."""
    return (
        os.environ.get("VERCEL") == "1"
        or bool(os.environ.get("VERCEL_ENV"))
        or bool(os.environ.get("NEXT_PUBLIC_VERCEL_ENV"))
    )


class VercelBlobStore:
    """Object storage: put(name, bytes, content_type) -> public URL."""

    def __init__(self, token: str, api_url: str = BLOB_API_URL):
        self.token = token
        self.api_url = api_url.rstrip("/")

    @classmethod
    def from_env(cls) -> "VercelBlobStore | None":
        token = os.environ.get("BLOB_READ_WRITE_TOKEN")
        return cls(token) if token else None

    def _put(self, name: str, data: bytes, content_type: str) -> str:
        response = requests.put(
            f"{self.api_url}/{name}",
            data=data,
            headers={
                "authorization": f"Bearer {self.token}",
                "x-content-type": content_type,
                "x-api-version": "7",
            },
            timeout=BLOB_TIMEOUT_SECONDS,
        )
        if response.status_code != 200:
            raise UpstreamError(f"Blob upload failed: {response.text[:200]}", status=response.status_code)
        return response.json()["url"]

    async def put(self, name: str, data: bytes, content_type: str) -> str:
        return await asyncio.to_thread(self._put, name, data, content_type)


def _fetch(url: str) -> bytes:
    response = requests.get(url, timeout=BLOB_TIMEOUT_SECONDS)
    response.raise_for_status()
    return response.content


async def upload_media_if_needed(
    data: str,
    mime_type: str,
    filename: str,
    blob_store: VercelBlobStore | None = None,
    max_inline_size: int = MAX_INLINE_SIZE,
    hosted: bool | None = None,
) -> MediaReference:
    """Keep media inline unless a hosted deployment has to offload a large file.

    data is base64 with or without a data URL prefix. Upload failures fall
    back to an inline reference.
    """
    base64_data = strip_data_url_prefix(data)
    size_bytes = len(base64_data) * 3 // 4
    if hosted is None:
        hosted = is_hosted()

    if not hosted or size_bytes < max_inline_size or blob_store is None:
        return MediaReference(type="inline", mime_type=mime_type, data=base64_data)

    try:
        raw = base64.b64decode(base64_data)
        url = await blob_store.put(filename, raw, mime_type)
    except Exception:
        logger.warning("Blob upload of %s failed, falling back to inline", filename, exc_info=True)
        return MediaReference(type="inline", mime_type=mime_type, data=base64_data)

    logger.info("Uploaded %s (%d bytes) to blob storage", filename, size_bytes)
    return MediaReference(type="blob", mime_type=mime_type, url=url)


async def download_media_if_needed(ref: MediaReference) -> str:
    """Return base64 data for a reference, fetching blob-stored media."""
    if ref.type == "inline":
        return ref.data or ""

    try:
        raw = await asyncio.to_thread(_fetch, ref.url)
    except requests.RequestException as e:
        logger.error("Failed to download %s from blob storage: %s", ref.url, e)
        raise UpstreamError("Failed to retrieve media file") from e
    return base64.b64encode(raw).decode("ascii")


def media_reference_to_part(ref: MediaReference) -> dict:
    """Inline-data content part for the generation service."""
    if ref.type != "inline":
        raise InvalidInput("Blob references must be downloaded before sending to Gemini")
    return {"inline_data": {"data": ref.data, "mime_type": ref.mime_type}}
