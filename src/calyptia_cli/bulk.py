"""
Concurrent fan-out of independent per-item operations.

run_all launches one task per item with no concurrency cap, waits for
every task, and reports failures together. Items are independent remote
objects, so tasks share no mutable state. An early failure does not
abort the other tasks: every item is attempted and every result is
observed.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from calyptia_cli.errors import BulkOperationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_all(items: Sequence[T], op: Callable[[T], Awaitable[object]]) -> int:
    """
    Run op concurrently for every item.

    Args:
        items: Items to operate on.
        op: Async operation applied to one item.

    Returns:
        Number of items processed (all of them succeeded).

    Raises:
        BulkOperationError: If at least one operation failed. Carries
            every cause in input order and the total attempted.
    """
    if not items:
        return 0

    results = await asyncio.gather(*(op(item) for item in items), return_exceptions=True)

    causes: list[Exception] = []
    for item, result in zip(items, results):
        if isinstance(result, Exception):
            logger.debug("bulk operation failed for %r: %s", item, result)
            causes.append(result)
        elif isinstance(result, BaseException):
            # Cancellation and interpreter exits are not item failures.
            raise result

    if causes:
        raise BulkOperationError(causes, total=len(items))
    return len(items)
