"""
Read-through cache of parsed transaction lists per address.

Entries are JSON {"transactions": [...], "timestamp": ISO-8601}. Freshness is
decided at read time against the configured expiration window; the store's
own TTL only reclaims space. The cache is advisory: store failures degrade
to a miss, and the deposit monitor never reads from it.
"""

from __future__ import annotations

import json
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Protocol

from tron_custody.custody_logging import get_logger
from tron_custody.tron_listener.models import ParsedTransaction

logger = get_logger(__name__)

DEFAULT_EXPIRATION_MINUTES = 30


def cache_key(address: str) -> str:
    return f"wallet:{address}:transactions:tron"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def close(self) -> None: ...


class InMemoryCacheStore:
    """Process-local CacheStore. Expired keys are dropped on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._data: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    async def get(self, key: str) -> str | None:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            value, expires_at = item
            if self._clock() >= expires_at:
                del self._data[key]
                return None
            return value

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._data[key] = (value, self._clock() + ttl_seconds)

    async def close(self) -> None:
        with self._lock:
            self._data.clear()


class RedisCacheStore:
    """CacheStore backed by Redis (SETEX)."""

    def __init__(self, url: str) -> None:
        import redis.asyncio as aioredis

        self._redis = aioredis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> str | None:
        return await self._redis.get(key)

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.setex(key, ttl_seconds, value)

    async def close(self) -> None:
        await self._redis.aclose()


class TransactionCache:
    """TTL-gated cache of ParsedTransaction lists keyed by address."""

    def __init__(
        self,
        store: CacheStore,
        *,
        expiration_minutes: int = DEFAULT_EXPIRATION_MINUTES,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._expiration = timedelta(minutes=expiration_minutes)
        self._expiration_minutes = expiration_minutes
        self._clock = clock

    async def get(self, address: str) -> list[ParsedTransaction] | None:
        """Return the cached list if written less than expiration_minutes ago; else None."""
        try:
            payload = await self._store.get(cache_key(address))
        except Exception as e:
            logger.warning("cache_read_failed", address=address, error=str(e))
            return None
        if not payload:
            return None
        try:
            entry: dict[str, Any] = json.loads(payload)
            cached_at = datetime.fromisoformat(entry["timestamp"])
            transactions = [ParsedTransaction.from_dict(t) for t in entry.get("transactions") or []]
            age = self._clock() - cached_at
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("cache_entry_invalid", address=address, error=str(e))
            return None
        if age >= self._expiration:
            return None
        return transactions

    async def put(self, address: str, transactions: list[ParsedTransaction]) -> None:
        """Overwrite the entry for address with a fresh timestamp."""
        entry = {
            "transactions": [t.to_dict() for t in transactions],
            "timestamp": self._clock().isoformat(),
        }
        try:
            await self._store.set_with_expiry(
                cache_key(address),
                json.dumps(entry),
                self._expiration_minutes * 60,
            )
        except Exception as e:
            logger.warning("cache_write_failed", address=address, error=str(e))
