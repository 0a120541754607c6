"""Tests for the fixed-window rate limiter."""

import pytest

from pamphlet_podcast.errors import RateLimitExceeded
from pamphlet_podcast.models import RateLimitRecord
from pamphlet_podcast.rate_limiter import MemoryRateLimitStore, RateLimiter


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def test_window_allows_limit_then_denies(clock):
    limiter = RateLimiter(limit=3, window_seconds=60, clock=clock)
    assert [limiter.check_and_consume("1.2.3.4") for _ in range(4)] == [True, True, True, False]


def test_denial_does_not_mutate(clock):
    limiter = RateLimiter(limit=2, window_seconds=60, clock=clock)
    limiter.check_and_consume("k")
    limiter.check_and_consume("k")
    before = limiter.store.get("k")
    assert not limiter.check_and_consume("k")
    assert limiter.store.get("k") == RateLimitRecord(count=2, reset_time=before.reset_time)


def test_window_expiry_resets_count(clock):
    limiter = RateLimiter(limit=3, window_seconds=60, clock=clock)
    for _ in range(3):
        limiter.check_and_consume("k")
    assert not limiter.check_and_consume("k")

    clock.now += 61
    assert limiter.check_and_consume("k")
    assert limiter.store.get("k").count == 1
    assert limiter.store.get("k").reset_time == clock.now + 60


def test_window_boundary_is_inclusive(clock):
    """At exactly reset_time the old window still applies."""
    limiter = RateLimiter(limit=1, window_seconds=60, clock=clock)
    limiter.check_and_consume("k")
    clock.now += 60
    assert not limiter.check_and_consume("k")


def test_keys_are_independent(clock):
    limiter = RateLimiter(limit=1, window_seconds=60, clock=clock)
    assert limiter.check_and_consume("a")
    assert limiter.check_and_consume("b")
    assert not limiter.check_and_consume("a")


def test_eviction_of_expired_entries(clock):
    """Over capacity with all entries expired: table shrinks back under the bound."""
    limiter = RateLimiter(limit=5, window_seconds=10, max_entries=100, clock=clock)
    for i in range(150):
        limiter.store.set(f"old-{i}", RateLimitRecord(count=1, reset_time=clock.now - 1))

    assert limiter.check_and_consume("fresh")
    assert limiter.store.size() <= 100
    assert limiter.store.get("old-0") is None
    assert limiter.store.get("fresh").count == 1


def test_eviction_keeps_live_entries(clock):
    limiter = RateLimiter(limit=5, window_seconds=10, max_entries=10, clock=clock)
    for i in range(5):
        limiter.store.set(f"live-{i}", RateLimitRecord(count=2, reset_time=clock.now + 5))
    for i in range(10):
        limiter.store.set(f"old-{i}", RateLimitRecord(count=1, reset_time=clock.now - 1))

    limiter.check_and_consume("live-0")
    assert limiter.store.size() == 5
    assert limiter.store.get("live-0").count == 3


def test_full_clear_when_still_over_capacity(clock):
    limiter = RateLimiter(limit=5, window_seconds=10, max_entries=10, clock=clock)
    for i in range(20):
        limiter.store.set(f"live-{i}", RateLimitRecord(count=2, reset_time=clock.now + 5))

    assert limiter.check_and_consume("live-0")
    assert limiter.store.size() == 1
    assert limiter.store.get("live-0").count == 1


def test_enforce_raises(clock):
    limiter = RateLimiter(limit=1, window_seconds=60, clock=clock)
    limiter.enforce("10.0.0.1")
    with pytest.raises(RateLimitExceeded) as exc_info:
        limiter.enforce("10.0.0.1")
    assert exc_info.value.key == "10.0.0.1"


def test_shared_store(clock):
    """Two limiters over one store see each other's counts."""
    store = MemoryRateLimitStore()
    a = RateLimiter(limit=2, window_seconds=60, store=store, clock=clock)
    b = RateLimiter(limit=2, window_seconds=60, store=store, clock=clock)
    assert a.check_and_consume("k")
    assert b.check_and_consume("k")
    assert not a.check_and_consume("k")


class ExternalStore:
    """Stand-in for a shared table kept outside the process, e.g. a cache service."""

    def __init__(self):
        self.rows = {}
        self.writes = 0

    def get(self, key):
        row = self.rows.get(key)
        return RateLimitRecord(*row) if row else None

    def set(self, key, record):
        self.writes += 1
        self.rows[key] = (record.count, record.reset_time)

    def delete(self, key):
        self.rows.pop(key, None)

    def size(self):
        return len(self.rows)

    def items(self):
        return iter([(k, RateLimitRecord(*v)) for k, v in list(self.rows.items())])

    def clear(self):
        self.rows.clear()


def test_any_store_with_the_record_interface(clock):
    """Counts persist through set() even when get() hands back copies."""
    store = ExternalStore()
    limiter = RateLimiter(limit=2, window_seconds=60, max_entries=1, store=store, clock=clock)
    assert limiter.check_and_consume("k")
    assert limiter.check_and_consume("k")
    assert not limiter.check_and_consume("k")
    assert store.rows["k"] == (2, 1060.0)

    clock.now = 1061.0
    assert limiter.check_and_consume("other")
    assert limiter.check_and_consume("third")
    assert "k" not in store.rows
    assert set(store.rows) == {"other", "third"}
