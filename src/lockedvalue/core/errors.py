"""Error taxonomy for lock negotiation."""

from __future__ import annotations

from typing import Optional


class LockedValueError(Exception):
    """Base class for every error raised by lockedvalue."""


class ContentionError(LockedValueError):
    """Another caller holds a live lock and there is no usable value to serve instead.

    Retryable: the holder either finishes and writes a fresh entry, or its lock expires.
    """

    def __init__(self, key: str, lock_key: str) -> None:
        super().__init__(f"Another process is updating key:{key} value. You should retry.")
        self.key = key
        self.lock_key = lock_key


class RetryBudgetExceededError(LockedValueError):
    """Stale locks kept reappearing after reclamation; the store looks inconsistent."""

    def __init__(self, key: str, attempts: int) -> None:
        super().__init__(
            f"Gave up resolving key:{key} after {attempts} attempts reclaiming expired locks."
        )
        self.key = key
        self.attempts = attempts


class ProducerError(LockedValueError):
    """Raised by value producers that fail to compute a fresh value.

    The coordinator never wraps producer failures; this class exists so producers have a
    conventional error to raise. Any exception a producer raises reaches the caller as-is.
    """

    def __init__(self, message: str, *, exit_code: Optional[int] = None, stderr: str = "") -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr
