"""
Utility functions for w3net.

- gather_with_timeout: run named awaitables concurrently under one aggregate
  timeout, reporting which ones didn't finish.

Example:
    >>> results = await gather_with_timeout({
    ...     "block": connection.request("eth_blockNumber"),
    ...     "price": connection.request("eth_gasPrice"),
    ... }, timeout=5)
    >>> results["block"]
    '0x10d4f'
"""

import asyncio
import logging
from typing import Awaitable, Dict, Mapping, Optional, TypeVar

from .exceptions import OperationTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_with_timeout(
    awaitables: Mapping[str, Awaitable[T]],
    timeout: Optional[float],
) -> Dict[str, T]:
    """
    Await all ``awaitables`` concurrently, bounded by ``timeout`` seconds in total.

    Args:
        awaitables: Units of work keyed by a name used in the timeout error
        timeout: Aggregate timeout in seconds, None waits forever

    Returns:
        Results keyed like ``awaitables``

    Raises:
        OperationTimeout: If some units are still pending when the timeout
            expires; those units are cancelled
        Exception: The error of the first failed unit, in ``awaitables`` order
    """
    tasks = {name: asyncio.ensure_future(aw) for name, aw in awaitables.items()}
    if not tasks:
        return {}

    done, pending = await asyncio.wait(tasks.values(), timeout=timeout)

    # retrieve every error so none is reported as never retrieved
    errors = {
        name: task.exception()
        for name, task in tasks.items()
        if task in done and not task.cancelled()
    }

    if pending:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        pending_names = [name for name, task in tasks.items() if task in pending]
        logger.debug("Timed out after %ss waiting for %s", timeout, pending_names)
        raise OperationTimeout(timeout, pending_names)

    for name, error in errors.items():
        if error is not None:
            raise error

    return {name: task.result() for name, task in tasks.items()}


__all__ = ["gather_with_timeout"]
