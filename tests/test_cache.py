"""
Tests for the read-through transaction cache.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone

from conftest import WATCHED, make_transfer_tx
from tron_custody.tron_listener.cache import InMemoryCacheStore, TransactionCache, cache_key
from tron_custody.tron_listener.parser import parse

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class RecordingStore(InMemoryCacheStore):
    def __init__(self) -> None:
        super().__init__()
        self.ttls: list[int] = []

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        self.ttls.append(ttl_seconds)
        await super().set_with_expiry(key, value, ttl_seconds)


class BrokenStore:
    async def get(self, key):
        raise ConnectionError("redis down")

    async def set_with_expiry(self, key, value, ttl_seconds):
        raise ConnectionError("redis down")

    async def close(self):
        pass


def _transactions():
    return [parse(make_transfer_tx("aa" * 32, amount=1_500_000))]


def test_cache_key_format():
    assert cache_key("TAbc") == "wallet:TAbc:transactions:tron"


def test_entry_fresh_before_expiration_and_stale_after():
    """Written at T, read at T+29min is a hit; at T+31min it is a miss."""
    clock = Clock(T0)
    store = RecordingStore()
    cache = TransactionCache(store, expiration_minutes=30, clock=clock)

    asyncio.run(cache.put(WATCHED, _transactions()))
    assert store.ttls == [1800]

    clock.now = T0 + timedelta(minutes=29)
    hit = asyncio.run(cache.get(WATCHED))
    assert hit is not None
    assert [t.amount for t in hit] == ["1.5"]

    clock.now = T0 + timedelta(minutes=31)
    assert asyncio.run(cache.get(WATCHED)) is None


def test_stored_entry_shape():
    clock = Clock(T0)
    store = InMemoryCacheStore()
    cache = TransactionCache(store, clock=clock)
    asyncio.run(cache.put(WATCHED, _transactions()))

    payload = json.loads(asyncio.run(store.get(cache_key(WATCHED))))
    assert payload["timestamp"] == T0.isoformat()
    assert payload["transactions"][0]["hash"] == "aa" * 32
    assert payload["transactions"][0]["isError"] == "0"


def test_miss_when_absent():
    cache = TransactionCache(InMemoryCacheStore())
    assert asyncio.run(cache.get(WATCHED)) is None


def test_empty_list_is_cached():
    cache = TransactionCache(InMemoryCacheStore(), clock=Clock(T0))
    asyncio.run(cache.put(WATCHED, []))
    assert asyncio.run(cache.get(WATCHED)) == []


def test_store_failures_degrade_to_miss():
    cache = TransactionCache(BrokenStore())
    asyncio.run(cache.put(WATCHED, _transactions()))
    assert asyncio.run(cache.get(WATCHED)) is None


def test_corrupt_entry_is_a_miss():
    store = InMemoryCacheStore()
    asyncio.run(store.set_with_expiry(cache_key(WATCHED), "{not json", 60))
    assert asyncio.run(TransactionCache(store).get(WATCHED)) is None

    asyncio.run(store.set_with_expiry(cache_key(WATCHED), json.dumps({"transactions": []}), 60))
    assert asyncio.run(TransactionCache(store).get(WATCHED)) is None


def test_in_memory_store_expires_keys():
    now = [0.0]
    store = InMemoryCacheStore(clock=lambda: now[0])
    asyncio.run(store.set_with_expiry("k", "v", 10))
    now[0] = 9.0
    assert asyncio.run(store.get("k")) == "v"
    now[0] = 10.0
    assert asyncio.run(store.get("k")) is None
