from __future__ import annotations

import asyncio
import os
import uuid

import pytest

from lockedvalue import OnContention, ProducedValue, ResolveOptions, resolve
from lockedvalue.core.models import Acquired, Contended, Entry
from lockedvalue.core.store_redis import RedisStore


REDIS_URL = os.getenv("REDIS_URL")

pytestmark = pytest.mark.skipif(not REDIS_URL, reason="REDIS_URL not set; Redis integration tests skipped")

T = 1_700_000_000_000


def _store() -> RedisStore:
    # Fixed caller clock keeps the lock comparisons deterministic.
    return RedisStore(REDIS_URL, key_prefix=f"test:{uuid.uuid4().hex}:", use_server_time=False)


@pytest.mark.asyncio
async def test_entry_round_trip():
    store = _store()
    try:
        assert await store.read_entry("token") is None
        await store.write_entry("token", "v1", T)
        assert await store.read_entry("token") == Entry(key="token", value="v1", expiry=T)
    finally:
        await store.aclose()


@pytest.mark.asyncio
async def test_conditional_acquisition():
    store = _store()
    try:
        assert isinstance(await store.try_acquire_lock("token:initial", T + 5000, T), Acquired)
        assert await store.try_acquire_lock("token:initial", T + 6000, T + 1) == Contended(T + 5000)
        assert isinstance(await store.try_acquire_lock("token:initial", T + 9001, T + 5001), Acquired)
        await store.release_lock("token:initial")
        await store.release_lock("token:initial")
        assert isinstance(await store.try_acquire_lock("token:initial", T + 5000, T), Acquired)
    finally:
        await store.aclose()


@pytest.mark.asyncio
async def test_release_only_deletes_the_expected_lock():
    store = _store()
    try:
        await store.try_acquire_lock("token:1", T + 5000, T)
        await store.release_lock("token:1", expected_held_until=T - 1)
        assert await store.try_acquire_lock("token:1", T + 6000, T + 1) == Contended(T + 5000)

        await store.release_lock("token:1", expected_held_until=T + 5000)
        await store.release_lock("token:1", expected_held_until=T + 5000)
        assert isinstance(await store.try_acquire_lock("token:1", T + 6000, T + 1), Acquired)
    finally:
        await store.aclose()


@pytest.mark.asyncio
async def test_single_flight_against_redis():
    store = _store()
    calls = 0

    async def produce() -> ProducedValue:
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.05)
        return ProducedValue(value="value", expiry=T + 1000)

    # A zero refresh window lets late readers take the fast path once the winner has written.
    options = ResolveOptions(refresh_window=0, on_contention=OnContention.RETURN_EMPTY)
    try:
        values = await asyncio.gather(*(resolve(store, "token", T, produce, options) for _ in range(10)))
    finally:
        await store.aclose()

    assert {value for value in values if value is not None} == {"value"}
    assert calls == 1
