"""Namespaced key/value persistence for generated audio, album art, and banners."""

import asyncio
import json
import logging
import os
import re

from pamphlet_podcast.constants import STORE_DIR

logger = logging.getLogger(__name__)

AUDIO_NAMESPACE = "audioFiles"
ART_NAMESPACE = "albumArt"
BANNER_NAMESPACE = "bannerImages"
META_NAMESPACE = "podcastMeta"


def podcast_key(review_id: str) -> str:
    return f"podcast-{review_id}"


def banner_key(content_id: str) -> str:
    return f"banner-{content_id}"


class MemoryKeyValueStore:
    def __init__(self):
        self._data: dict[str, dict[str, object]] = {}

    async def get(self, namespace: str, key: str):
        return self._data.get(namespace, {}).get(key)

    async def put(self, namespace: str, key: str, value) -> None:
        self._data.setdefault(namespace, {})[key] = value

    async def delete(self, namespace: str, key: str) -> None:
        self._data.get(namespace, {}).pop(key, None)

    async def keys(self, namespace: str) -> list[str]:
        return sorted(self._data.get(namespace, {}))


def _filename(key: str) -> str:
    """Filesystem-safe name for a key: "podcast-a/b" -> "podcast-a_b.json"."""
    return re.sub(r"[^A-Za-z0-9._-]+", "_", key).strip("_") + ".json"


class FileKeyValueStore:
    """One JSON file per key under <root>/<namespace>/."""

    def __init__(self, root: str = STORE_DIR):
        self.root = root

    @classmethod
    def from_env(cls) -> "FileKeyValueStore":
        return cls(os.environ.get("PAMPHLET_STORE_DIR", STORE_DIR))

    def _path(self, namespace: str, key: str) -> str:
        return os.path.join(self.root, namespace, _filename(key))

    def _read(self, namespace: str, key: str):
        path = self._path(namespace, key)
        if not os.path.exists(path):
            return None
        with open(path) as f:
            record = json.load(f)
        return record.get("value")

    def _write(self, namespace: str, key: str, value) -> None:
        os.makedirs(os.path.join(self.root, namespace), exist_ok=True)
        path = self._path(namespace, key)
        tmp = path + ".tmp"
        with open(tmp, "w") as f:
            json.dump({"key": key, "value": value}, f)
        os.replace(tmp, path)

    def _delete(self, namespace: str, key: str) -> None:
        path = self._path(namespace, key)
        if os.path.exists(path):
            os.remove(path)

    def _keys(self, namespace: str) -> list[str]:
        ns_dir = os.path.join(self.root, namespace)
        if not os.path.isdir(ns_dir):
            return []
        keys = []
        for name in os.listdir(ns_dir):
            if not name.endswith(".json"):
                continue
            with open(os.path.join(ns_dir, name)) as f:
                keys.append(json.load(f).get("key", name[:-5]))
        return sorted(keys)

    async def get(self, namespace: str, key: str):
        return await asyncio.to_thread(self._read, namespace, key)

    async def put(self, namespace: str, key: str, value) -> None:
        await asyncio.to_thread(self._write, namespace, key, value)

    async def delete(self, namespace: str, key: str) -> None:
        await asyncio.to_thread(self._delete, namespace, key)

    async def keys(self, namespace: str) -> list[str]:
        return await asyncio.to_thread(self._keys, namespace)


class PodcastStore:
    """Podcast-specific helpers over a key/value store."""

    def __init__(self, kv: MemoryKeyValueStore | FileKeyValueStore | None = None):
        self.kv = kv if kv is not None else MemoryKeyValueStore()

    async def save_podcast_audio(self, review_id: str, audio_data_url: str) -> None:
        await self.kv.put(AUDIO_NAMESPACE, podcast_key(review_id), audio_data_url)

    async def get_podcast_audio(self, review_id: str) -> str | None:
        return await self.kv.get(AUDIO_NAMESPACE, podcast_key(review_id))

    async def delete_podcast_audio(self, review_id: str) -> None:
        await self.kv.delete(AUDIO_NAMESPACE, podcast_key(review_id))

    async def save_album_art(self, review_id: str, image_data: str, mime_type: str) -> None:
        """image_data is base64."""
        await self.kv.put(ART_NAMESPACE, podcast_key(review_id), {"imageData": image_data, "mimeType": mime_type})

    async def get_album_art(self, review_id: str) -> dict | None:
        return await self.kv.get(ART_NAMESPACE, podcast_key(review_id))

    async def delete_album_art(self, review_id: str) -> None:
        await self.kv.delete(ART_NAMESPACE, podcast_key(review_id))

    async def save_podcast_metadata(self, review_id: str, metadata: dict) -> None:
        await self.kv.put(META_NAMESPACE, podcast_key(review_id), metadata)

    async def get_podcast_metadata(self, review_id: str) -> dict | None:
        return await self.kv.get(META_NAMESPACE, podcast_key(review_id))

    async def save_banner(self, content_id: str, image_data: str, mime_type: str) -> None:
        await self.kv.put(BANNER_NAMESPACE, banner_key(content_id), {"imageData": image_data, "mimeType": mime_type})

    async def get_banner(self, content_id: str) -> dict | None:
        return await self.kv.get(BANNER_NAMESPACE, banner_key(content_id))

    async def delete_banner(self, content_id: str) -> None:
        await self.kv.delete(BANNER_NAMESPACE, banner_key(content_id))

    async def delete_podcast(self, review_id: str) -> None:
        """Remove audio, art and metadata for a review."""
        for namespace in (AUDIO_NAMESPACE, ART_NAMESPACE, META_NAMESPACE):
            await self.kv.delete(namespace, podcast_key(review_id))
        logger.info("Deleted stored podcast for %s", review_id)

    async def list_podcasts(self) -> list[str]:
        """Review ids with stored audio."""
        prefix = podcast_key("")
        return [k[len(prefix):] for k in await self.kv.keys(AUDIO_NAMESPACE) if k.startswith(prefix)]
