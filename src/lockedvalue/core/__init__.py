"""Core protocol: models, lock keys, store adapters and the coordinator."""

from .coordinator import resolve
from .models import (
    Acquired,
    Contended,
    Entry,
    InitialLock,
    OnContention,
    ProducedValue,
    RefreshLock,
    ResolveOptions,
)
from .store import MemoryStore, StoreAdapter

__all__ = [
    "resolve",
    "Acquired",
    "Contended",
    "Entry",
    "InitialLock",
    "OnContention",
    "ProducedValue",
    "RefreshLock",
    "ResolveOptions",
    "MemoryStore",
    "StoreAdapter",
]
