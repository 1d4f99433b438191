"""
Bounded, closable FIFO carrying updates from the fetch loop to consumers.
"""

import asyncio
from collections import deque
from collections.abc import AsyncIterator
from typing import Generic, TypeVar

from .exceptions import QueueClosedError

T = TypeVar("T")


class UpdateQueue(Generic[T]):
    """
    Bounded FIFO with an end-of-stream signal.

    ``put`` suspends while the queue is full, which is what applies
    backpressure to the fetch loop. After ``close`` writers fail
    immediately and readers drain what is left before failing.
    """

    def __init__(self, maxsize: int):
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self.maxsize = maxsize
        self._items: deque[T] = deque()
        self._closed = False
        self._condition = asyncio.Condition()

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return len(self._items)

    def empty(self) -> bool:
        return not self._items

    async def put(self, item: T) -> None:
        """Append ``item``, waiting for room; raises QueueClosedError once closed."""
        async with self._condition:
            while not self._closed and len(self._items) >= self.maxsize:
                await self._condition.wait()
            if self._closed:
                raise QueueClosedError()
            self._items.append(item)
            self._condition.notify_all()

    async def get(self) -> T:
        """Pop the oldest item; raises QueueClosedError when closed and empty."""
        async with self._condition:
            while not self._items and not self._closed:
                await self._condition.wait()
            if not self._items:
                raise QueueClosedError()
            item = self._items.popleft()
            self._condition.notify_all()
            return item

    async def close(self) -> None:
        """Mark the end of the stream and wake every waiter."""
        async with self._condition:
            self._closed = True
            self._condition.notify_all()

    def __aiter__(self) -> AsyncIterator[T]:
        return self._drain()

    async def _drain(self) -> AsyncIterator[T]:
        while True:
            try:
                yield await self.get()
            except QueueClosedError:
                return
