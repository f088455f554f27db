"""Poll-with-timeout helper.

The A2A protocol is fire-and-forget: nothing blocks waiting for a reply.
Callers that need a bounded wait (demos, tests, API handlers) poll a
predicate until it holds or the deadline passes.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable


async def wait_until(
    predicate: Callable[[], bool],
    *,
    timeout: float = 5.0,
    interval: float = 0.01,
) -> bool:
    """Poll *predicate* until it returns ``True`` or *timeout* seconds elapse.

    Returns the final value of the predicate; never raises on timeout.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        if predicate():
            return True
        if loop.time() >= deadline:
            return predicate()
        await asyncio.sleep(interval)
