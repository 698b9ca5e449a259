"""Data models shared by the coordinator and store adapters."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .timestamps import duration_millis, to_millis


class OnContention(str, Enum):
    """What a caller gets when it loses the race and has no cached value to fall back on."""

    FAIL = "fail"
    RETURN_EMPTY = "return_empty"


class Entry(BaseModel):
    """The shared cached value plus its absolute expiry (epoch milliseconds)."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str
    expiry: int


class ProducedValue(BaseModel):
    """Result of a value producer: a fresh value and when it stops being valid."""

    model_config = ConfigDict(frozen=True)

    value: str
    expiry: int

    @field_validator("expiry", mode="before")
    @classmethod
    def _coerce_expiry(cls, value: object) -> object:
        if isinstance(value, dt.datetime):
            return to_millis(value)
        return value


class ResolveOptions(BaseModel):
    """Per-call policy knobs. Durations are milliseconds; ``timedelta`` is accepted too."""

    model_config = ConfigDict(frozen=True)

    refresh_window: int = Field(default=3 * 60 * 1000, ge=0)
    lock_duration: int = Field(default=5000, ge=0)
    on_contention: OnContention = OnContention.FAIL
    max_retries: int = Field(default=2, ge=0, le=10)

    @field_validator("refresh_window", "lock_duration", mode="before")
    @classmethod
    def _coerce_duration(cls, value: object) -> object:
        if isinstance(value, dt.timedelta):
            return duration_millis(value)
        return value


@dataclass(frozen=True, slots=True)
class InitialLock:
    """Guards the very first computation of a key that has no entry yet."""


@dataclass(frozen=True, slots=True)
class RefreshLock:
    """Guards the replacement of one specific entry generation, identified by its expiry."""

    expiry: int


LockTag = Union[InitialLock, RefreshLock]


@dataclass(frozen=True, slots=True)
class Acquired:
    """The conditional write succeeded; the caller now holds the lock."""


@dataclass(frozen=True, slots=True)
class Contended:
    """The conditional write was defeated by an existing lock.

    ``prior_held_until`` is the conflicting lock's expiry, or None when the store could not
    report one.
    """

    prior_held_until: Optional[int] = None


AcquireResult = Union[Acquired, Contended]
