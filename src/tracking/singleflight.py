import asyncio
from collections.abc import Awaitable, Callable, Hashable
from typing import TypeVar

from common.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SingleFlight:
    """
    Collapses concurrent calls for the same key into one.

    The first caller starts the work, later callers await the same task and
    get the same result or the same exception. Once the task finishes the
    key is released.

    Example:
        flights = SingleFlight()
        shipment = await flights.do(("MAEU1234567", "container"), lambda: fetch_and_merge(query))
    """

    def __init__(self):
        self._inflight: dict[Hashable, asyncio.Task] = {}

    async def do(self, key: Hashable, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            task.add_done_callback(lambda t: self._release(key, t))
        else:
            logger.debug(f"Joining in-flight request for {key}")

        # Cancelling one waiter leaves the shared task running
        return await asyncio.shield(task)

    def _release(self, key: Hashable, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    def in_flight(self) -> int:
        return len(self._inflight)
