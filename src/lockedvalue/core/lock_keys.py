"""Lock key derivation and expiry arithmetic.

Everything here is pure: no I/O, no clock reads. Timestamps are integer epoch milliseconds.
"""

from __future__ import annotations

from typing import Optional

from .models import Entry, InitialLock, LockTag, RefreshLock

INITIAL_DISCRIMINATOR = "initial"


def derive_lock_key(key: str, tag: LockTag) -> str:
    """``key:initial`` before the first write, ``key:<expiry>`` when refreshing a generation."""
    if not key:
        raise ValueError("key must be a non-empty string")
    if isinstance(tag, InitialLock):
        return f"{key}:{INITIAL_DISCRIMINATOR}"
    if isinstance(tag, RefreshLock):
        return f"{key}:{tag.expiry}"
    raise TypeError(f"Unknown lock tag: {tag!r}")


def lock_tag_for(entry: Optional[Entry]) -> LockTag:
    if entry is None:
        return InitialLock()
    return RefreshLock(expiry=entry.expiry)


def held_until(now: int, lock_duration: int) -> int:
    return now + lock_duration


def is_expired(entry: Entry, now: int) -> bool:
    return entry.expiry < now


def needs_refresh(entry: Entry, now: int, refresh_window: int) -> bool:
    """True once ``now`` falls inside the refresh window, including after expiry."""
    return entry.expiry < now + refresh_window


def is_reclaimable(prior_held_until: Optional[int], now: int) -> bool:
    # A lock is dead once now reaches held_until; an unknown holder counts as live.
    if prior_held_until is None:
        return False
    return prior_held_until <= now
