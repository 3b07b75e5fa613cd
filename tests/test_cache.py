"""
Tests for CacheStore.

This module tests:
- Round-trip of response snapshots
- Expiry boundary and lazy eviction
- Isolation between cached state and caller-visible copies
- Invalidation, clearing and purging
- LRU bound and statistics
"""

import asyncio
from datetime import date

import pytest

from offline_sdk.cache import CacheStore
from offline_sdk.models import Request
from offline_sdk.models import Response
from tests.fakes import FakeClock

KEY = 'GET:/products:{}'


def make_response(payload=None, status=200):
    return Response(payload=payload if payload is not None else {"items": [1, 2]}, status=status)


@pytest.mark.asyncio
async def test_put_then_get_returns_copy_flagged_from_cache():
    store = CacheStore(clock=FakeClock())

    await store.put(KEY, make_response(), ttl=300)
    cached = await store.get(KEY)

    assert cached is not None
    assert cached.payload == {"items": [1, 2]}
    assert cached.status == 200
    assert cached.from_cache is True


@pytest.mark.asyncio
async def test_get_missing_key_returns_none():
    store = CacheStore()

    assert await store.get("GET:/nothing:{}") is None


@pytest.mark.asyncio
async def test_expiry_boundary():
    """
    GIVEN: an entry written with TTL=1s
    WHEN: it is read just before and exactly at expiry
    THEN: the first read hits and the second read misses and evicts
    """
    clock = FakeClock()
    store = CacheStore(clock=clock)
    await store.put(KEY, make_response(), ttl=1)

    clock.advance(0.5)
    assert await store.get(KEY) is not None

    clock.advance(0.5)
    assert await store.get(KEY) is None

    # evicted: rewinding the clock does not bring it back
    clock.now -= 10
    assert await store.get(KEY) is None
    assert (await store.stats()).total_entries == 0


@pytest.mark.asyncio
async def test_cached_state_is_not_aliased():
    store = CacheStore()
    original = make_response({"items": [1]})

    await store.put(KEY, original, ttl=60)
    original.payload["items"].append(2)
    first = await store.get(KEY)
    first.payload["items"].append(3)
    second = await store.get(KEY)

    assert second.payload == {"items": [1]}


@pytest.mark.asyncio
async def test_cached_copy_keeps_non_json_payload_values():
    """
    GIVEN: a response whose payload holds int keys, tuples and dates
    WHEN: it is cached and read back
    THEN: the cached copy equals what was stored, types included
    """
    store = CacheStore()
    payload = {1: ("a", date(2024, 1, 2))}

    await store.put(KEY, make_response(payload), ttl=60)
    cached = await store.get(KEY)

    assert cached.payload == {1: ("a", date(2024, 1, 2))}
    assert cached.payload is not payload


@pytest.mark.asyncio
async def test_put_does_not_persist_back_reference():
    store = CacheStore()
    response = Response(status=200, payload=1, request=Request(path="/products"))

    await store.put(KEY, response, ttl=60)

    assert (await store.get(KEY)).request is None


@pytest.mark.asyncio
async def test_put_overwrites_wholesale():
    clock = FakeClock()
    store = CacheStore(clock=clock)
    await store.put(KEY, make_response({"v": 1}), ttl=1)

    await store.put(KEY, make_response({"v": 2}), ttl=100)
    clock.advance(50)

    assert (await store.get(KEY)).payload == {"v": 2}


@pytest.mark.asyncio
async def test_invalidate():
    store = CacheStore()
    await store.put(KEY, make_response(), ttl=60)

    assert await store.invalidate(KEY) is True
    assert await store.get(KEY) is None
    assert await store.invalidate(KEY) is False


@pytest.mark.asyncio
async def test_invalidate_prefix_drops_every_query_variant():
    store = CacheStore()
    await store.put('GET:/products:{"page":1}', make_response(), ttl=60)
    await store.put('GET:/products:{"page":2}', make_response(), ttl=60)
    await store.put("GET:/profile:{}", make_response(), ttl=60)

    removed = await store.invalidate_prefix("GET:/products:")

    assert removed == 2
    assert await store.get("GET:/profile:{}") is not None


@pytest.mark.asyncio
async def test_clear():
    store = CacheStore()
    await store.put(KEY, make_response(), ttl=60)
    await store.put("GET:/other:{}", make_response(), ttl=60)

    await store.clear()

    assert await store.get(KEY) is None
    assert (await store.stats()).total_entries == 0


@pytest.mark.asyncio
async def test_purge_expired():
    clock = FakeClock()
    store = CacheStore(clock=clock)
    await store.put("GET:/short:{}", make_response(), ttl=1)
    await store.put("GET:/long:{}", make_response(), ttl=100)

    clock.advance(5)

    assert await store.purge_expired() == 1
    assert (await store.stats()).total_entries == 1


@pytest.mark.asyncio
async def test_max_entries_evicts_least_recently_used():
    store = CacheStore(max_entries=2)
    await store.put("GET:/a:{}", make_response(), ttl=60)
    await store.put("GET:/b:{}", make_response(), ttl=60)
    await store.get("GET:/a:{}")  # /b is now least recently used

    await store.put("GET:/c:{}", make_response(), ttl=60)

    assert await store.get("GET:/b:{}") is None
    assert await store.get("GET:/a:{}") is not None
    assert await store.get("GET:/c:{}") is not None


@pytest.mark.asyncio
async def test_stats_count_hits_and_misses():
    store = CacheStore()
    await store.put(KEY, make_response(), ttl=60)

    await store.get(KEY)
    await store.get(KEY)
    await store.get("GET:/missing:{}")
    stats = await store.stats()

    assert stats.hit_count == 2
    assert stats.miss_count == 1
    assert stats.total_entries == 1
    assert stats.hit_rate == pytest.approx(2 / 3)


@pytest.mark.asyncio
async def test_concurrent_writers_leave_one_complete_entry():
    store = CacheStore()

    await asyncio.gather(
        *(store.put(KEY, make_response({"writer": i}), ttl=60) for i in range(20))
    )
    cached = await store.get(KEY)

    assert cached.payload["writer"] in range(20)
    assert (await store.stats()).total_entries == 1
