from __future__ import annotations

import datetime as dt

import pytest
from pydantic import ValidationError

from lockedvalue.core.lock_keys import (
    derive_lock_key,
    held_until,
    is_expired,
    is_reclaimable,
    lock_tag_for,
    needs_refresh,
)
from lockedvalue.core.models import Entry, InitialLock, OnContention, ProducedValue, RefreshLock, ResolveOptions
from lockedvalue.core.timestamps import duration_millis, to_millis


T = 1_700_000_000_000


def test_initial_and_refresh_lock_keys():
    assert derive_lock_key("token", InitialLock()) == "token:initial"
    assert derive_lock_key("token", RefreshLock(expiry=T)) == f"token:{T}"


def test_each_generation_gets_its_own_lock_key():
    first = derive_lock_key("token", lock_tag_for(Entry(key="token", value="a", expiry=T)))
    second = derive_lock_key("token", lock_tag_for(Entry(key="token", value="b", expiry=T + 1)))
    assert first != second
    assert derive_lock_key("token", lock_tag_for(None)) == "token:initial"


def test_empty_key_is_rejected():
    with pytest.raises(ValueError):
        derive_lock_key("", InitialLock())


def test_to_millis_accepts_int_and_datetime():
    assert to_millis(T) == T
    moment = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
    assert to_millis(moment) == 1_704_067_200_000
    with pytest.raises(TypeError):
        to_millis(True)
    with pytest.raises(TypeError):
        to_millis("1700000000000")  # type: ignore[arg-type]


def test_duration_millis():
    assert duration_millis(dt.timedelta(minutes=3)) == 180_000
    assert duration_millis(5000) == 5000


def test_expiry_boundaries():
    entry = Entry(key="k", value="v", expiry=T)
    assert not is_expired(entry, T)
    assert is_expired(entry, T + 1)
    # Exactly at the window edge the entry is still comfortably fresh.
    assert not needs_refresh(entry, T - 1000, 1000)
    assert needs_refresh(entry, T - 999, 1000)
    assert needs_refresh(entry, T + 10, 1000)
    assert held_until(T, 5000) == T + 5000


def test_lock_is_reclaimable_once_now_reaches_held_until():
    assert is_reclaimable(T - 1, T)
    assert is_reclaimable(T, T)
    assert not is_reclaimable(T + 1, T)
    assert not is_reclaimable(None, T)


def test_resolve_options_defaults_and_timedelta():
    options = ResolveOptions()
    assert options.refresh_window == 180_000
    assert options.lock_duration == 5000
    assert options.on_contention is OnContention.FAIL
    assert options.max_retries == 2

    options = ResolveOptions(refresh_window=dt.timedelta(seconds=30), lock_duration=dt.timedelta(seconds=1))
    assert options.refresh_window == 30_000
    assert options.lock_duration == 1000

    assert ResolveOptions(on_contention="return_empty").on_contention is OnContention.RETURN_EMPTY


def test_resolve_options_rejects_negative_durations():
    with pytest.raises(ValidationError):
        ResolveOptions(lock_duration=-1)
    with pytest.raises(ValidationError):
        ResolveOptions(max_retries=-1)


def test_produced_value_accepts_datetime_expiry():
    moment = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
    produced = ProducedValue(value="v", expiry=moment)
    assert produced.expiry == 1_704_067_200_000
