"""CLI entrypoint: resolve a shared value, running a command to refresh it when needed."""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path

from lockedvalue import ContentionError, OnContention, ProducerError, RetryBudgetExceededError, resolve
from lockedvalue.core.settings import LockedValueSettings
from lockedvalue.producers import command_producer
from lockedvalue.utils.logging import get_logger, set_level


EX_TEMPFAIL = 75

logger = get_logger("lockedvalue.cli")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve a shared, time-limited value.")
    parser.add_argument("key", help="Key of the shared value")
    parser.add_argument("--command", required=True, help="Shell command printing a fresh value on stdout")
    parser.add_argument("--ttl-seconds", type=int, default=3600, help="Lifetime of a freshly produced value")
    parser.add_argument("--config", type=Path, default=None, help="Path to settings YAML (defaults to environment)")
    parser.add_argument(
        "--on-contention",
        choices=[choice.value for choice in OnContention],
        default=None,
        help="Override what happens when another process holds the lock",
    )
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    set_level(args.log_level)

    settings = LockedValueSettings.from_file(args.config) if args.config else LockedValueSettings.from_env()
    options = settings.resolve_options()
    if args.on_contention:
        options = options.model_copy(update={"on_contention": OnContention(args.on_contention)})

    store = settings.build_store()
    producer = command_producer(args.command, args.ttl_seconds * 1000)
    try:
        value = await resolve(store, args.key, int(time.time() * 1000), producer, options)
    except ContentionError as exc:
        logger.warning("%s", exc)
        return EX_TEMPFAIL
    except ProducerError as exc:
        logger.error("Producer failed: %s", exc)
        return 1
    except RetryBudgetExceededError as exc:
        logger.error("%s", exc)
        return 1
    finally:
        close = getattr(store, "aclose", None)
        if close is not None:
            await close()

    if value is None:
        logger.warning("Another process is refreshing %s; nothing to return yet", args.key)
        return EX_TEMPFAIL
    print(value)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
