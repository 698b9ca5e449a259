"""Timestamp and duration normalisation. Everything downstream works in epoch milliseconds."""

from __future__ import annotations

import datetime as dt
from typing import Union

Timestamp = Union[int, dt.datetime]
Duration = Union[int, dt.timedelta]


def to_millis(now: Timestamp) -> int:
    """Normalise an epoch-ms integer or a datetime to epoch milliseconds."""
    if isinstance(now, dt.datetime):
        return int(now.timestamp() * 1000)
    if isinstance(now, bool) or not isinstance(now, int):
        raise TypeError(f"Expected epoch milliseconds or datetime, got {type(now).__name__}")
    return now


def duration_millis(duration: Duration) -> int:
    if isinstance(duration, dt.timedelta):
        return int(duration.total_seconds() * 1000)
    return int(duration)
