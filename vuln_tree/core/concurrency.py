"""Bounded fan-out of coroutines."""

import asyncio
from typing import Any, Awaitable, Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")


class _Skipped:
    def __repr__(self) -> str:
        return "SKIPPED"


# Result placeholder for work that was not started because of cancellation
SKIPPED: Any = _Skipped()


async def gather_bounded(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[Any]],
    limit: int,
    cancel_event: Optional[asyncio.Event] = None,
) -> List[Any]:
    """Run ``worker`` over every item with at most ``limit`` calls in flight.

    Args:
        items: Work items
        worker: Coroutine function applied to each item
        limit: Maximum number of concurrent calls
        cancel_event: Once set, items that have not started yet are skipped

    Returns:
        Results aligned with ``items``; exceptions are returned as values and
        skipped items yield ``SKIPPED``
    """
    if limit < 1:
        raise ValueError("Concurrency limit must be at least 1")

    semaphore = asyncio.Semaphore(limit)

    async def run_with_semaphore(item: T) -> Any:
        async with semaphore:
            if cancel_event is not None and cancel_event.is_set():
                return SKIPPED
            return await worker(item)

    tasks = [run_with_semaphore(item) for item in items]
    if not tasks:
        return []
    return list(await asyncio.gather(*tasks, return_exceptions=True))
