"""Store adapter contract and an in-process implementation."""

from __future__ import annotations

import abc
import asyncio
from typing import Callable, Dict, Optional

from .models import Acquired, AcquireResult, Contended, Entry


class StoreAdapter(abc.ABC):
    """Conditional-write key-value store the coordinator negotiates with.

    Implementations must make ``try_acquire_lock`` atomic. The ``now`` it receives is used to
    build the expiry comparison; adapters backed by a store with its own clock should prefer
    that clock.
    """

    @abc.abstractmethod
    async def read_entry(self, key: str) -> Optional[Entry]:  # pragma: no cover - interface
        """Return the entry for ``key`` or None. May lag behind recent writes."""
        raise NotImplementedError

    @abc.abstractmethod
    async def try_acquire_lock(
        self, lock_key: str, held_until: int, now: int
    ) -> AcquireResult:  # pragma: no cover - interface
        """Write ``held_until`` under ``lock_key`` if no lock exists or the existing one expired.

        On failure return the conflicting lock's ``held_until``.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def release_lock(
        self, lock_key: str, *, expected_held_until: Optional[int] = None
    ) -> None:  # pragma: no cover - interface
        """Delete ``lock_key``. Releasing a missing lock is not an error.

        With ``expected_held_until`` the delete is a compare-and-delete: a lock holding any
        other value is left alone.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def write_entry(self, key: str, value: str, expiry: int) -> None:  # pragma: no cover - interface
        """Unconditionally overwrite the entry for ``key``."""
        raise NotImplementedError


class MemoryStore(StoreAdapter):
    """asyncio-safe in-memory store.

    Shared by every task in one event loop, which makes it a faithful stand-in for a remote
    store in tests: each call yields once, so concurrent callers interleave at round-trips.
    Pass ``clock`` (returning epoch ms) to evaluate lock expiry against the store's own time
    instead of the caller's.
    """

    def __init__(self, *, clock: Optional[Callable[[], int]] = None) -> None:
        self._entries: Dict[str, Entry] = {}
        self._locks: Dict[str, int] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    async def read_entry(self, key: str) -> Optional[Entry]:
        await asyncio.sleep(0)
        async with self._lock:
            return self._entries.get(key)

    async def try_acquire_lock(self, lock_key: str, held_until: int, now: int) -> AcquireResult:
        await asyncio.sleep(0)
        async with self._lock:
            store_now = self._clock() if self._clock is not None else now
            prior = self._locks.get(lock_key)
            if prior is not None and not prior < store_now:
                return Contended(prior_held_until=prior)
            self._locks[lock_key] = held_until
            return Acquired()

    async def release_lock(self, lock_key: str, *, expected_held_until: Optional[int] = None) -> None:
        await asyncio.sleep(0)
        async with self._lock:
            if expected_held_until is not None and self._locks.get(lock_key) != expected_held_until:
                return
            self._locks.pop(lock_key, None)

    async def write_entry(self, key: str, value: str, expiry: int) -> None:
        await asyncio.sleep(0)
        async with self._lock:
            self._entries[key] = Entry(key=key, value=value, expiry=expiry)

    def lock_held_until(self, lock_key: str) -> Optional[int]:
        return self._locks.get(lock_key)

    def entries(self) -> Dict[str, Entry]:
        return dict(self._entries)
