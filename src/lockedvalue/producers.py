"""Ready-made value producers."""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional

from .core.errors import ProducerError
from .core.timestamps import Duration, duration_millis
from .core.models import ProducedValue


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def command_producer(
    command: str,
    ttl: Duration,
    *,
    clock: Optional[Callable[[], int]] = None,
):
    """Build a producer that runs ``command`` in a shell and uses its stdout as the value.

    The value expires ``ttl`` after the command finishes. A non-zero exit status raises
    ``ProducerError`` with the exit code and stderr attached.
    """
    ttl_ms = duration_millis(ttl)
    clock = clock or _epoch_millis

    async def produce() -> ProducedValue:
        proc = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        err = stderr.decode("utf-8", errors="replace").strip()
        if proc.returncode != 0:
            raise ProducerError(
                f"Command exited with status {proc.returncode}: {err or command}",
                exit_code=proc.returncode,
                stderr=err,
            )
        return ProducedValue(value=stdout.decode("utf-8").strip(), expiry=clock() + ttl_ms)

    return produce
