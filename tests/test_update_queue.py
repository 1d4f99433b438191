"""
Tests for the bounded, closable update queue.
"""

import asyncio

import pytest

from telegram_poller.exceptions import QueueClosedError
from telegram_poller.update_queue import UpdateQueue


class TestUpdateQueue:
    """Test UpdateQueue semantics."""

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            UpdateQueue(0)

    @pytest.mark.asyncio
    async def test_fifo_order(self):
        queue: UpdateQueue[int] = UpdateQueue(3)
        for item in (1, 2, 3):
            await queue.put(item)

        assert queue.qsize() == 3
        assert [await queue.get() for _ in range(3)] == [1, 2, 3]
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_put_blocks_while_full(self):
        queue: UpdateQueue[int] = UpdateQueue(1)
        await queue.put(1)

        blocked = asyncio.create_task(queue.put(2))
        await asyncio.sleep(0.01)
        assert not blocked.done()

        assert await queue.get() == 1
        await asyncio.wait_for(blocked, timeout=1)
        assert await queue.get() == 2

    @pytest.mark.asyncio
    async def test_close_drains_then_ends_iteration(self):
        queue: UpdateQueue[int] = UpdateQueue(5)
        await queue.put(1)
        await queue.put(2)

        await queue.close()

        assert queue.closed
        assert [item async for item in queue] == [1, 2]
        with pytest.raises(QueueClosedError):
            await queue.get()

    @pytest.mark.asyncio
    async def test_close_wakes_waiting_reader(self):
        queue: UpdateQueue[int] = UpdateQueue(1)
        reader = asyncio.create_task(queue.get())
        await asyncio.sleep(0.01)

        await queue.close()

        with pytest.raises(QueueClosedError):
            await asyncio.wait_for(reader, timeout=1)

    @pytest.mark.asyncio
    async def test_put_after_close_fails(self):
        queue: UpdateQueue[int] = UpdateQueue(1)
        await queue.close()
        await queue.close()

        with pytest.raises(QueueClosedError):
            await queue.put(1)

    @pytest.mark.asyncio
    async def test_cancelled_put_does_not_enqueue(self):
        queue: UpdateQueue[int] = UpdateQueue(1)
        await queue.put(1)
        blocked = asyncio.create_task(queue.put(2))
        await asyncio.sleep(0.01)

        blocked.cancel()
        with pytest.raises(asyncio.CancelledError):
            await blocked

        assert await queue.get() == 1
        assert queue.empty()
