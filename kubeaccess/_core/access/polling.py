"""
Waiting for the objects to reach the expected state by re-reading them.

The poller is a plain loop of reads and sleeps with one deadline.
It is used by the resource facades for the readiness & phase checks,
but can be used with any reading coroutine and any predicate.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from kubeaccess._cogs.clients import errors
from kubeaccess._cogs.helpers import typedefs

logger = logging.getLogger(__name__)

_T = TypeVar('_T')


async def wait_until(
        read_fn: Callable[[], Awaitable[_T]],
        predicate: Callable[[_T], bool],
        *,
        timeout: float,
        interval: float = 1.0,
        logger: typedefs.Logger = logger,
        what: str = "the condition",
) -> _T:
    """
    Re-read a value until it satisfies the predicate; fail after the timeout.

    The deadline is calculated once, before the first read. The deadline is
    checked only after the read & the predicate, so the value that became
    ready just at the deadline is still returned. The overall duration can
    exceed the timeout by one slow read, but the error is never raised earlier.

    The errors of the reading function are not intercepted: they propagate
    immediately (e.g. `errors.APINotFoundError` if the object is absent).
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    attempt = 0
    while True:
        attempt += 1
        value = await read_fn()
        if predicate(value):
            logger.debug(f"Reached {what} after {attempt} attempt(s).")
            return value
        if loop.time() > deadline:
            raise errors.DeadlineExceededError(
                f"Timed out after {timeout}s waiting for {what} ({attempt} attempts).")
        logger.debug(f"Still waiting for {what}; re-checking in {interval}s.")
        await asyncio.sleep(interval)
