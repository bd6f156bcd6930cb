"""Tests for the reference-data TTL cache."""

import pytest

from mcp_linear.linear.cache import ReferenceCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ReferenceCache(default_ttl=300, clock=clock)


def counting_fetcher(value):
    calls = []

    async def fetch():
        calls.append(1)
        return value

    fetch.calls = calls
    return fetch


@pytest.mark.asyncio
async def test_second_lookup_is_served_from_cache(cache):
    fetch = counting_fetcher(["Engineering"])
    assert await cache.get_or_fetch("teams", fetch) == ["Engineering"]
    assert await cache.get_or_fetch("teams", fetch) == ["Engineering"]
    assert len(fetch.calls) == 1


@pytest.mark.asyncio
async def test_entry_expires_exactly_at_ttl(cache, clock):
    fetch = counting_fetcher("value")
    await cache.get_or_fetch("users", fetch)

    clock.now += 299.999
    await cache.get_or_fetch("users", fetch)
    assert len(fetch.calls) == 1

    clock.now = 1000.0 + 300
    await cache.get_or_fetch("users", fetch)
    assert len(fetch.calls) == 2


@pytest.mark.asyncio
async def test_custom_ttl_per_entry(cache, clock):
    fetch = counting_fetcher("value")
    await cache.get_or_fetch("labels", fetch, ttl=10)
    clock.now += 10
    await cache.get_or_fetch("labels", fetch, ttl=10)
    assert len(fetch.calls) == 2


@pytest.mark.asyncio
async def test_failed_fetch_is_not_cached(cache):
    async def failing():
        raise RuntimeError("down")

    with pytest.raises(RuntimeError):
        await cache.get_or_fetch("teams", failing)
    assert cache.get("teams") is None
    assert len(cache) == 0


def test_get_drops_expired_entry(cache, clock):
    cache.set("teams", [1])
    assert cache.get("teams") == [1]
    clock.now += 300
    assert cache.get("teams") is None
    assert len(cache) == 0


def test_clear_single_key_and_everything(cache):
    cache.set("teams", 1)
    cache.set("users", 2)
    cache.clear("teams")
    assert cache.get("teams") is None
    assert cache.get("users") == 2
    cache.clear()
    assert len(cache) == 0


def test_cleanup_removes_only_expired(cache, clock):
    cache.set("short", 1, ttl=5)
    cache.set("long", 2, ttl=500)
    clock.now += 100
    assert cache.cleanup() == 1
    assert cache.get("long") == 2


def test_capacity_is_bounded(clock):
    cache = ReferenceCache(default_ttl=300, clock=clock, maxsize=2)
    cache.set("teams", 1)
    cache.set("users", 2)
    cache.set("labels", 3)
    assert len(cache) == 2
    assert cache.get("labels") == 3


def test_zero_ttl_is_not_stored(cache):
    cache.set("teams", [1], ttl=0)
    assert cache.get("teams") is None
