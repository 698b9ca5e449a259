"""Share one externally issued access token across many workers.

Retrying on contention is the caller's business; this example retries a few times with a
short pause, which is usually enough for the lock holder to finish.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import os
from typing import Awaitable, Callable, TypeVar

from lockedvalue import ContentionError, ProducedValue, ResolveOptions, resolve
from lockedvalue.core.store_redis import RedisStore


T = TypeVar("T")

store = RedisStore(os.getenv("REDIS_URL", "redis://localhost:6379/0"), key_prefix="tokens:")
options = ResolveOptions(lock_duration=dt.timedelta(seconds=3))


async def retry(callback: Callable[[], Awaitable[T]], *, attempts: int = 5, delay: float = 0.5) -> T:
    for _ in range(attempts - 1):
        try:
            return await callback()
        except ContentionError:
            await asyncio.sleep(delay)
    # Last attempt: let a ContentionError reach the caller.
    return await callback()


async def fetch_token() -> ProducedValue:
    # Stand-in for a call to an identity provider.
    await asyncio.sleep(0.2)
    issued = dt.datetime.now(dt.timezone.utc)
    return ProducedValue(value=f"token-{issued:%H%M%S}", expiry=issued + dt.timedelta(hours=1))


async def get_token(key: str = "api-token") -> str:
    value = await retry(lambda: resolve(store, key, dt.datetime.now(dt.timezone.utc), fetch_token, options))
    if value is None:
        raise RuntimeError(f"No value available for {key}")
    return value


async def main() -> None:
    tokens = await asyncio.gather(*(get_token() for _ in range(10)))
    print(sorted(set(tokens)))
    await store.aclose()


if __name__ == "__main__":
    asyncio.run(main())
