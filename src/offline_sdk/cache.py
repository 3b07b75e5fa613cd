"""
Response cache for the request pipeline.

`CacheStore` maps a request fingerprint (see `offline_sdk.models.cache_key`)
to a response snapshot with an absolute expiry. Storage is delegated to an
aiocache backend (in-memory by default). Responses are deep-copied on the way
in and on the way out, so callers never alias cached state and a cached copy
equals what was stored, whatever Python values the payload holds.

Expiry is checked lazily against an injectable clock: reading an entry at or
past its expiry is a miss and evicts it.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Callable
from typing import Optional

from aiocache import SimpleMemoryCache
from aiocache.base import BaseCache
from aiocache.serializers import NullSerializer

from offline_sdk.models import CacheEntry
from offline_sdk.models import CacheStats
from offline_sdk.models import Response

logger = logging.getLogger("offline_sdk.cache")


class CacheStore:
    """
    Async, lock-protected response cache.

    Args:
        backend (BaseCache | None): aiocache backend used for storage.
            Defaults to a private `SimpleMemoryCache`. The backend must
            hold `CacheEntry` objects, so use a pickling serializer for
            out-of-process backends.
        clock (Callable[[], float]): Returns the current epoch time in seconds.
        max_entries (int | None): Upper bound on live keys; the least recently
            used key is evicted when a new key would exceed it.

    Example:
        store = CacheStore()
        await store.put("GET:/products:{}", response, ttl=300)
        cached = await store.get("GET:/products:{}")
    """

    def __init__(
        self,
        backend: Optional[BaseCache] = None,
        clock: Callable[[], float] = time.time,
        max_entries: Optional[int] = None,
    ):
        self._backend = (
            backend
            if backend is not None
            else SimpleMemoryCache(serializer=NullSerializer())
        )
        self._clock = clock
        self._max_entries = max_entries
        self._lock = asyncio.Lock()
        # Keys written by this store, least recently used first
        self._keys: OrderedDict[str, None] = OrderedDict()
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> Optional[Response]:
        """
        Return a copy of the cached response for `key`, flagged `from_cache`.

        Returns None on a miss. An expired entry counts as a miss and is
        removed from the backend.
        """
        async with self._lock:
            entry = await self._backend.get(key)
            if entry is None:
                self._misses += 1
                self._keys.pop(key, None)
                logger.debug(f"Cache MISS for {key}")
                return None

            if entry.is_expired(self._clock()):
                await self._backend.delete(key)
                self._keys.pop(key, None)
                self._misses += 1
                logger.debug(f"Cache EXPIRED for {key}")
                return None

            self._hits += 1
            if key in self._keys:
                self._keys.move_to_end(key)
            logger.debug(f"Cache HIT for {key}")
            return entry.response.model_copy(update={"from_cache": True}, deep=True)

    async def put(self, key: str, response: Response, ttl: float) -> None:
        """Store a snapshot of `response` under `key` for `ttl` seconds."""
        entry = CacheEntry(
            response=response.model_copy(
                update={"from_cache": False, "request": None}, deep=True
            ),
            expires_at=self._clock() + ttl,
        )
        async with self._lock:
            await self._backend.set(key, entry)
            self._keys[key] = None
            self._keys.move_to_end(key)
            await self._evict_over_limit()

    async def invalidate(self, key: str) -> bool:
        """Remove `key`. Returns True when an entry was removed."""
        async with self._lock:
            self._keys.pop(key, None)
            removed = await self._backend.delete(key)
            return bool(removed)

    async def invalidate_prefix(self, prefix: str) -> int:
        """Remove every key known to this store that starts with `prefix`."""
        async with self._lock:
            matching = [key for key in self._keys if key.startswith(prefix)]
            for key in matching:
                del self._keys[key]
                await self._backend.delete(key)
            if matching:
                logger.info(f"Invalidated {len(matching)} cache entries for {prefix}")
            return len(matching)

    async def clear(self) -> None:
        async with self._lock:
            await self._backend.clear()
            self._keys.clear()

    async def purge_expired(self) -> int:
        """Drop every expired entry known to this store. Returns the count."""
        now = self._clock()
        removed = 0
        async with self._lock:
            for key in list(self._keys):
                entry = await self._backend.get(key)
                if entry is None or entry.is_expired(now):
                    await self._backend.delete(key)
                    del self._keys[key]
                    removed += 1
        return removed

    async def stats(self) -> CacheStats:
        async with self._lock:
            return CacheStats(
                total_entries=len(self._keys),
                hit_count=self._hits,
                miss_count=self._misses,
            )

    async def _evict_over_limit(self) -> None:
        if self._max_entries is None:
            return
        while len(self._keys) > self._max_entries:
            oldest, _ = self._keys.popitem(last=False)
            await self._backend.delete(oldest)
            logger.debug(f"Evicted least recently used cache entry {oldest}")
