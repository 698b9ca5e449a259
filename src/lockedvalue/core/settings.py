"""Settings loader for resolve policy and store selection."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .models import OnContention, ResolveOptions
from .store import MemoryStore, StoreAdapter
from ..utils.env import get_bool_env, get_int_env, get_str_env


class LockedValueSettings(BaseModel):
    redis_url: Optional[str] = None
    key_prefix: str = "lockedvalue:"
    refresh_window_ms: int = Field(default=3 * 60 * 1000, ge=0)
    lock_duration_ms: int = Field(default=5000, ge=0)
    on_contention: OnContention = OnContention.FAIL
    max_retries: int = Field(default=2, ge=0, le=10)
    use_server_time: bool = True  # compare lock expiry against Redis TIME, not the caller's clock
    lock_retention_ms: int = Field(default=60000, ge=0)

    @classmethod
    def from_file(cls, path: Path) -> "LockedValueSettings":
        data = yaml.safe_load(path.read_text()) or {}
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid lockedvalue settings: {exc}") from exc

    @classmethod
    def from_env(cls) -> "LockedValueSettings":
        defaults = cls()
        data = {
            "redis_url": get_str_env("LOCKEDVALUE_REDIS_URL", "REDIS_URL"),
            "key_prefix": get_str_env("LOCKEDVALUE_KEY_PREFIX", default=defaults.key_prefix),
            "refresh_window_ms": get_int_env("LOCKEDVALUE_REFRESH_WINDOW_MS", default=defaults.refresh_window_ms),
            "lock_duration_ms": get_int_env("LOCKEDVALUE_LOCK_DURATION_MS", default=defaults.lock_duration_ms),
            "on_contention": get_str_env("LOCKEDVALUE_ON_CONTENTION", default=defaults.on_contention.value),
            "max_retries": get_int_env("LOCKEDVALUE_MAX_RETRIES", default=defaults.max_retries),
            "use_server_time": get_bool_env("LOCKEDVALUE_USE_SERVER_TIME", default=defaults.use_server_time),
        }
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid lockedvalue settings: {exc}") from exc

    def resolve_options(self) -> ResolveOptions:
        return ResolveOptions(
            refresh_window=self.refresh_window_ms,
            lock_duration=self.lock_duration_ms,
            on_contention=self.on_contention,
            max_retries=self.max_retries,
        )

    def build_store(self) -> StoreAdapter:
        """Redis when a URL is configured, otherwise a process-local memory store."""
        if not self.redis_url:
            return MemoryStore()
        from .store_redis import RedisStore

        return RedisStore(
            self.redis_url,
            key_prefix=self.key_prefix,
            use_server_time=self.use_server_time,
            lock_retention_ms=self.lock_retention_ms,
        )
