"""Single-flight, refresh-ahead shared values on top of a conditional-write store."""

from .core.coordinator import Producer, resolve
from .core.errors import (
    ContentionError,
    LockedValueError,
    ProducerError,
    RetryBudgetExceededError,
)
from .core.models import Entry, OnContention, ProducedValue, ResolveOptions
from .core.store import MemoryStore, StoreAdapter

__all__ = [
    "__version__",
    "resolve",
    "Producer",
    "Entry",
    "OnContention",
    "ProducedValue",
    "ResolveOptions",
    "StoreAdapter",
    "MemoryStore",
    "LockedValueError",
    "ContentionError",
    "ProducerError",
    "RetryBudgetExceededError",
]

__version__ = "0.1.0"
