from __future__ import annotations

import pytest

from lockedvalue import MemoryStore, ProducerError, resolve
from lockedvalue.producers import command_producer


@pytest.mark.asyncio
async def test_command_producer_uses_stdout():
    produce = command_producer("echo hello", 1000, clock=lambda: 5)
    produced = await produce()
    assert produced.value == "hello"
    assert produced.expiry == 1005


@pytest.mark.asyncio
async def test_command_producer_failure():
    produce = command_producer("echo oops >&2; exit 3", 1000)
    with pytest.raises(ProducerError) as excinfo:
        await produce()
    assert excinfo.value.exit_code == 3
    assert excinfo.value.stderr == "oops"


@pytest.mark.asyncio
async def test_command_producer_failure_writes_no_entry():
    store = MemoryStore()
    with pytest.raises(ProducerError):
        await resolve(store, "token", 1_000, command_producer("exit 1", 1000, clock=lambda: 1_000))
    assert store.entries() == {}
