"""Redis-backed store adapter using a Lua script for conditional lock acquisition."""

from __future__ import annotations

import os
from typing import Optional

from redis.asyncio import Redis

from .models import Acquired, AcquireResult, Contended, Entry
from .store import StoreAdapter
from ..utils.logging import get_logger


# KEYS[1] lock key; ARGV: held_until, caller now, use server TIME (1/0), retention ms.
# Returns {1} when acquired, {0, prior} when an unexpired (or unreadable) lock is in the way.
_ACQUIRE_LUA = """
local now = tonumber(ARGV[2])
if ARGV[3] == '1' then
    local t = redis.call('TIME')
    now = tonumber(t[1]) * 1000 + math.floor(tonumber(t[2]) / 1000)
end
local prior = redis.call('GET', KEYS[1])
if prior then
    local held = tonumber(prior)
    if held == nil or held >= now then
        return {0, prior}
    end
end
local held_until = tonumber(ARGV[1])
local ttl = held_until - now
if ttl < 1 then
    ttl = 1
end
redis.call('SET', KEYS[1], ARGV[1], 'PX', ttl + tonumber(ARGV[4]))
return {1}
"""

# Delete the lock only if it still holds the held_until value the caller saw expire.
_RELEASE_LUA = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
else
    return 0
end
"""


class RedisStore(StoreAdapter):
    """Entries live in hashes (``value``/``expiry`` fields), locks in plain string keys.

    Lock keys carry a Redis TTL of the lock duration plus ``lock_retention_ms`` so locks
    left behind by finished generations are garbage collected.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        client: Optional[Redis] = None,
        key_prefix: str = "lockedvalue:",
        use_server_time: bool = True,
        lock_retention_ms: int = 60000,
    ) -> None:
        self._redis = client or Redis.from_url(
            url or os.getenv("REDIS_URL", "redis://localhost:6379/0"), decode_responses=True
        )
        self._prefix = key_prefix
        self._use_server_time = use_server_time
        self._retention_ms = lock_retention_ms
        self.logger = get_logger(__name__)

    def _entry_key(self, key: str) -> str:
        return f"{self._prefix}value:{key}"

    def _lock_key(self, lock_key: str) -> str:
        return f"{self._prefix}lock:{lock_key}"

    async def read_entry(self, key: str) -> Optional[Entry]:
        fields = await self._redis.hgetall(self._entry_key(key))
        value = fields.get("value")
        expiry = fields.get("expiry")
        if value is None or expiry is None:
            return None
        try:
            return Entry(key=key, value=value, expiry=int(expiry))
        except ValueError:
            self.logger.warning("Ignoring entry %s with non-numeric expiry %r", key, expiry)
            return None

    async def try_acquire_lock(self, lock_key: str, held_until: int, now: int) -> AcquireResult:
        reply = await self._redis.eval(
            _ACQUIRE_LUA,
            1,
            self._lock_key(lock_key),
            held_until,
            now,
            1 if self._use_server_time else 0,
            self._retention_ms,
        )
        if int(reply[0]) == 1:
            return Acquired()
        prior = reply[1] if len(reply) > 1 else None
        try:
            return Contended(prior_held_until=int(prior))
        except (TypeError, ValueError):
            return Contended(prior_held_until=None)

    async def release_lock(self, lock_key: str, *, expected_held_until: Optional[int] = None) -> None:
        if expected_held_until is None:
            await self._redis.delete(self._lock_key(lock_key))
            return
        released = await self._redis.eval(_RELEASE_LUA, 1, self._lock_key(lock_key), str(expected_held_until))
        if not released:
            self.logger.debug("Lock %s changed hands before release; left in place", lock_key)

    async def write_entry(self, key: str, value: str, expiry: int) -> None:
        await self._redis.hset(self._entry_key(key), mapping={"value": value, "expiry": expiry})

    async def aclose(self) -> None:
        await self._redis.aclose()
