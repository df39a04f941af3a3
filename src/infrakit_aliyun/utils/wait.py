"""Bounded polling helpers."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


async def wait_for(
    poll: Callable[[], Awaitable[T]],
    ready: Callable[[T], bool],
    timeout: float,
    interval: float = 5.0,
    description: str = "resource",
) -> T:
    """Poll until ``ready(result)`` holds or ``timeout`` seconds elapse.

    Exceptions raised by ``poll`` propagate immediately. On timeout a
    ``TimeoutError`` is raised. The wait is a plain coroutine, so callers can
    cancel it or wrap it with ``asyncio.wait_for``.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    attempts = 0

    while True:
        result = await poll()
        attempts += 1
        if ready(result):
            return result

        remaining = deadline - loop.time()
        if remaining <= 0:
            raise TimeoutError(f"Timeout waiting for {description} after {timeout}s")

        logger.debug(f"Waiting for {description} (attempt {attempts})")
        await asyncio.sleep(min(interval, remaining))
