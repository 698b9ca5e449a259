"""Single-flight, refresh-ahead resolution of a shared value.

The coordinator holds no state between store round-trips. Every ``resolve`` call renegotiates
with the store from scratch, so any number of processes can share one store safely as long
as the adapter's lock acquisition is atomic.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from .errors import ContentionError, RetryBudgetExceededError
from .lock_keys import (
    derive_lock_key,
    held_until,
    is_expired,
    is_reclaimable,
    lock_tag_for,
    needs_refresh,
)
from .models import Acquired, OnContention, ProducedValue, ResolveOptions
from .store import StoreAdapter
from .timestamps import Timestamp, to_millis
from ..utils.logging import get_logger


Producer = Callable[[], Awaitable[Union[ProducedValue, Mapping[str, Any]]]]

logger = get_logger(__name__)

# Returned by a single attempt when the whole procedure has to start over.
_RETRY = object()


async def resolve(
    store: StoreAdapter,
    key: str,
    now: Timestamp,
    producer: Producer,
    options: Optional[ResolveOptions] = None,
) -> Optional[str]:
    """Return the cached or freshly produced value for ``key``.

    Returns None only when ``options.on_contention`` is ``RETURN_EMPTY`` and another caller is
    already producing a value this caller cannot fall back on. Raises ``ContentionError`` in
    the same situation under ``FAIL``. Producer errors propagate unchanged and leave the lock
    to expire on its own.
    """
    if not key:
        raise ValueError("key must be a non-empty string")
    options = options or ResolveOptions()
    now_ms = to_millis(now)

    attempts = options.max_retries + 1
    for attempt in range(1, attempts + 1):
        outcome = await _attempt(store, key, now_ms, producer, options)
        if outcome is not _RETRY:
            return outcome
        logger.debug("Retrying key:%s after reclaiming an expired lock (attempt %d/%d)", key, attempt, attempts)

    logger.warning("Retry budget exhausted for key:%s after %d attempts", key, attempts)
    raise RetryBudgetExceededError(key, attempts)


async def _attempt(
    store: StoreAdapter,
    key: str,
    now: int,
    producer: Producer,
    options: ResolveOptions,
) -> Any:
    entry = await store.read_entry(key)

    if entry is not None and not needs_refresh(entry, now, options.refresh_window):
        logger.debug("Serving fresh value for key:%s (expiry=%d)", key, entry.expiry)
        return entry.value

    # No entry at all behaves like an expired one: there is nothing safe to serve.
    expired = entry is None or is_expired(entry, now)
    lock_key = derive_lock_key(key, lock_tag_for(entry))
    result = await store.try_acquire_lock(lock_key, held_until(now, options.lock_duration), now)

    if isinstance(result, Acquired):
        logger.debug("Acquired lock %s", lock_key)
        return await _produce(store, key, now, producer)

    if is_reclaimable(result.prior_held_until, now):
        logger.debug("Reclaiming expired lock %s (held until %s)", lock_key, result.prior_held_until)
        # Only the lock we saw expire is deleted; a fresh holder that replaced it keeps its lock.
        await store.release_lock(lock_key, expected_held_until=result.prior_held_until)
        if expired:
            return _RETRY
        return entry.value

    if not expired:
        logger.debug("Refresh of key:%s in flight elsewhere; serving cached value", key)
        return entry.value

    return _on_contention(key, lock_key, options)


async def _produce(store: StoreAdapter, key: str, now: int, producer: Producer) -> str:
    produced = await producer()
    if not isinstance(produced, ProducedValue):
        produced = ProducedValue.model_validate(produced)
    if produced.expiry <= now:
        logger.warning("Producer for key:%s returned expiry %d which is not after now=%d", key, produced.expiry, now)
    await store.write_entry(key, produced.value, produced.expiry)
    logger.info("Refreshed key:%s (expiry=%d)", key, produced.expiry)
    return produced.value


def _on_contention(key: str, lock_key: str, options: ResolveOptions) -> Optional[str]:
    if options.on_contention is OnContention.RETURN_EMPTY:
        logger.debug("Lock %s is held elsewhere; returning empty", lock_key)
        return None
    raise ContentionError(key, lock_key)

