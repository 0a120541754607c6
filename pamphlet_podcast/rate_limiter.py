"""Fixed-window per-key request limiter with bounded memory."""

import logging
import time
from typing import Callable, Iterator, Protocol

from pamphlet_podcast.constants import RATE_LIMIT, RATE_WINDOW_SECONDS, RATE_LIMIT_MAX_ENTRIES
from pamphlet_podcast.errors import RateLimitExceeded
from pamphlet_podcast.models import RateLimitRecord

logger = logging.getLogger(__name__)


class RateLimitStore(Protocol):
    """Record table the limiter reads and writes; a shared store lets several workers agree."""

    def get(self, key: str) -> RateLimitRecord | None: ...

    def set(self, key: str, record: RateLimitRecord) -> None: ...

    def delete(self, key: str) -> None: ...

    def size(self) -> int: ...

    def items(self) -> Iterator[tuple[str, RateLimitRecord]]: ...

    def clear(self) -> None: ...


class MemoryRateLimitStore:
    """In-process record table. Swap for a shared store when running several workers."""

    def __init__(self):
        self._records: dict[str, RateLimitRecord] = {}

    def get(self, key: str) -> RateLimitRecord | None:
        return self._records.get(key)

    def set(self, key: str, record: RateLimitRecord) -> None:
        self._records[key] = record

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def size(self) -> int:
        return len(self._records)

    def items(self) -> Iterator[tuple[str, RateLimitRecord]]:
        return iter(list(self._records.items()))

    def clear(self) -> None:
        self._records.clear()


class RateLimiter:
    def __init__(
        self,
        limit: int = RATE_LIMIT,
        window_seconds: float = RATE_WINDOW_SECONDS,
        max_entries: int = RATE_LIMIT_MAX_ENTRIES,
        store: RateLimitStore | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.max_entries = max_entries
        self.store = store if store is not None else MemoryRateLimitStore()
        self.clock = clock

    def _evict_expired(self, now: float) -> int:
        evicted = 0
        for key, record in self.store.items():
            if now > record.reset_time:
                self.store.delete(key)
                evicted += 1
        if evicted:
            logger.info("Rate limit: cleaned up %d expired entries", evicted)
        return evicted

    def _enforce_capacity(self, now: float) -> None:
        if self.store.size() <= self.max_entries:
            return
        self._evict_expired(now)
        if self.store.size() > self.max_entries:
            logger.warning("Rate limit: table size exceeded %d, clearing all entries", self.max_entries)
            self.store.clear()

    def check_and_consume(self, key: str) -> bool:
        """Count one request for key. Returns False, without counting, once the window's budget is spent."""
        now = self.clock()
        self._enforce_capacity(now)

        record = self.store.get(key)
        if record is None or now > record.reset_time:
            self.store.set(key, RateLimitRecord(count=1, reset_time=now + self.window_seconds))
            return True

        if record.count >= self.limit:
            return False

        record.count += 1
        self.store.set(key, record)
        return True

    def enforce(self, key: str) -> None:
        """Like check_and_consume(), but raises RateLimitExceeded on denial."""
        if not self.check_and_consume(key):
            raise RateLimitExceeded(key)
