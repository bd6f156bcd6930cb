"""In-memory TTL cache for Linear reference data (teams, users, labels, ...)."""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, NamedTuple, TypeVar

from cachetools import TLRUCache

from .constants import DEFAULT_CACHE_TTL_SECONDS

logger = logging.getLogger("mcp-linear.cache")

T = TypeVar("T")

MAX_CACHE_ENTRIES = 1024


class CacheEntry(NamedTuple):
    ttl: float
    value: Any


def _entry_expiry(key: str, entry: CacheEntry, now: float) -> float:
    return now + entry.ttl


class ReferenceCache:
    """Keyed TTL cache.

    An entry is served only while ``clock() < stored_at + ttl``. There is no
    in-flight de-duplication: two concurrent misses for the same key both
    fetch, and the last one to finish wins.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        maxsize: int = MAX_CACHE_ENTRIES,
    ) -> None:
        self.default_ttl = default_ttl
        self._entries: TLRUCache[str, CacheEntry] = TLRUCache(
            maxsize=maxsize, ttu=_entry_expiry, timer=clock
        )

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        lifetime = self.default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(ttl=lifetime, value=value)

    async def get_or_fetch(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        ttl: float | None = None,
    ) -> T:
        """Return the cached value for ``key`` or fetch, store and return it.

        Args:
            key: Cache key, e.g. ``"teams"`` or ``"states:<team id>"``
            fetcher: Coroutine factory producing the value on a miss
            ttl: Lifetime in seconds; defaults to the cache's default TTL

        Returns:
            The cached or freshly fetched value
        """
        entry = self._entries.get(key)
        if entry is not None:
            logger.debug(f"Cache hit: {key}")
            return entry.value
        logger.debug(f"Cache miss: {key}")
        value = await fetcher()
        self.set(key, value, ttl)
        return value

    def clear(self, key: str | None = None) -> None:
        """Drop one key, or everything when ``key`` is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def cleanup(self) -> int:
        """Remove expired entries.

        Returns:
            The number of entries removed
        """
        return len(self._entries.expire())
