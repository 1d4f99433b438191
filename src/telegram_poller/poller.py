"""
Long-polling engine for the Telegram Bot API.

This module owns the poller lifecycle, the fetch-and-deliver loop, the
offset cursor and the retry policy applied to failed fetches.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .client import REQUEST_TIMEOUT_MARGIN, TelegramClient
from .config import PollerConfig
from .exceptions import (
    APIError,
    MaxRetriesExceededError,
    PollerAlreadyRunningError,
    PollerClosedError,
)
from .models import Update, User
from .update_queue import UpdateQueue

UpdateHandler = Callable[[asyncio.Event, Update], Awaitable[None]]


@dataclass
class RetryState:
    """Consecutive-failure bookkeeping local to one fetch loop."""

    consecutive_failures: int = 0

    def reset(self) -> None:
        self.consecutive_failures = 0


class Poller:
    """
    Long-polls ``getUpdates`` and delivers updates in order.

    Updates are pushed onto a bounded :class:`UpdateQueue`; the offset is
    advanced past an update only once it has been enqueued, so delivery is
    at-least-once and in order.
    """

    def __init__(self, config: PollerConfig, client: TelegramClient | None = None):
        """
        Initialize the poller.

        Args:
            config: Validated poller configuration
            client: Optional API client; built from ``config`` when omitted
        """
        self.config = config
        self.logger = config.logger
        self.client = client or TelegramClient(
            token=config.token,
            base_url=config.base_url,
            http_client=config.http_client,
            request_timeout=config.timeout + REQUEST_TIMEOUT_MARGIN,
        )

        self._updates: UpdateQueue[Update] = UpdateQueue(config.queue_size)
        self._offset = 0
        self._running = False
        self._stop_event = asyncio.Event()
        self._poll_task: asyncio.Task[None] | None = None
        self._fatal_error: BaseException | None = None
        self._close_task: asyncio.Task[None] | None = None

        self.dispatch_task: asyncio.Task[None] | None = None

    @classmethod
    def with_options(cls, token: str, **options: Any) -> "Poller":
        """
        Create a poller from keyword options.

        Args:
            token: Bot API token
            **options: Any ``PollerConfig`` field

        Returns:
            A new, stopped poller
        """
        return cls(PollerConfig(token=token, **options))

    @property
    def updates(self) -> UpdateQueue[Update]:
        """Outbound queue of delivered updates."""
        return self._updates

    @property
    def is_running(self) -> bool:
        """True between a successful start() and the matching stop()."""
        return self._running

    @property
    def is_polling(self) -> bool:
        """True while the fetch loop task is alive."""
        return self._poll_task is not None and not self._poll_task.done()

    @property
    def fatal_error(self) -> BaseException | None:
        """Error that ended the fetch loop, if it ended on its own."""
        return self._fatal_error

    @property
    def offset(self) -> int:
        """One past the highest acknowledged ``update_id``."""
        return self._offset

    @offset.setter
    def offset(self, value: int) -> None:
        if value < 0:
            raise ValueError("offset must be non-negative")
        self._offset = value

    async def start(self, cancel_event: asyncio.Event | None = None) -> None:
        """
        Start the fetch loop.

        Args:
            cancel_event: Optional event; setting it ends the loop

        Raises:
            PollerAlreadyRunningError: If the poller is already running
            PollerClosedError: If the poller was stopped before
        """
        if self._updates.closed:
            raise PollerClosedError()
        if self._running:
            raise PollerAlreadyRunningError()
        self._running = True

        self._poll_task = asyncio.create_task(self._poll_loop(cancel_event))

        self.logger.info(
            "Telegram poller started",
            timeout=self.config.timeout,
            poll_interval=self.config.poll_interval,
            offset=self._offset,
        )

    async def stop(self) -> None:
        """
        Stop the fetch loop and close the update queue.

        Waits for the loop to exit. Calling it again, or before start(), is
        a no-op. If the wait is cancelled, the queue is still closed and
        the client is closed once the in-flight fetch has finished.
        """
        if not self._running:
            return
        self._running = False

        self._stop_event.set()

        try:
            if self._poll_task is not None:
                # Cancelling stop() must not cancel an in-flight fetch
                await asyncio.shield(self._poll_task)
        finally:
            await self._updates.close()
            await self._close_client()

        self.logger.info("Telegram poller stopped", offset=self._offset)

    async def _close_client(self) -> None:
        """Close the client now, or once the fetch loop has finished with it."""
        if self._poll_task is None or self._poll_task.done():
            await self.client.aclose()
            return
        self._close_task = asyncio.create_task(self._close_client_after_loop())

    async def _close_client_after_loop(self) -> None:
        if self._poll_task is not None:
            await asyncio.wait({self._poll_task})
        await self.client.aclose()

    async def join(self) -> None:
        """Wait for the fetch loop to exit without asking it to stop."""
        if self._poll_task is not None:
            await asyncio.shield(self._poll_task)

    async def get_me(self) -> User:
        """
        Validate the token and return the bot's identity.

        Failures are raised to the caller unchanged; no retries are made.
        """
        return await self.client.get_me()

    async def start_with_handler(
        self, handler: UpdateHandler, cancel_event: asyncio.Event | None = None
    ) -> None:
        """
        Start the poller and feed every update to ``handler``.

        The handler runs on a separate task in delivery order. Its failures
        are logged and never stop polling; the update is already
        acknowledged by then.
        """
        await self.start(cancel_event)
        context = cancel_event or asyncio.Event()
        self.dispatch_task = asyncio.create_task(self._dispatch(handler, context))

    async def _dispatch(self, handler: UpdateHandler, context: asyncio.Event) -> None:
        async for update in self._updates:
            try:
                await handler(context, update)
            except Exception as e:
                self.logger.error(
                    "Handler error", error=str(e), update_id=update.update_id
                )

    def _should_exit(self, cancel_event: asyncio.Event | None) -> bool:
        return self._stop_event.is_set() or (
            cancel_event is not None and cancel_event.is_set()
        )

    async def _wait_unless_stopped(
        self, aw: Awaitable[Any], cancel_event: asyncio.Event | None
    ) -> bool:
        """
        Await ``aw`` unless the stop signal or ``cancel_event`` fires first.

        Returns:
            True if ``aw`` completed, False if it was abandoned
        """
        if self._should_exit(cancel_event):
            if asyncio.iscoroutine(aw):
                aw.close()
            return False

        task = asyncio.ensure_future(aw)
        waiters = {task, asyncio.ensure_future(self._stop_event.wait())}
        if cancel_event is not None:
            waiters.add(asyncio.ensure_future(cancel_event.wait()))

        try:
            done, _ = await asyncio.wait(
                waiters, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for waiter in waiters:
                if not waiter.done():
                    waiter.cancel()
            await asyncio.gather(*waiters, return_exceptions=True)

        if task in done:
            task.result()
            return True
        return False

    async def _poll_loop(self, cancel_event: asyncio.Event | None) -> None:
        """Main polling loop."""
        loop = asyncio.get_running_loop()
        retry_state = RetryState()
        interval = self.config.poll_interval
        next_tick = loop.time() + interval

        try:
            while True:
                delay = max(0.0, next_tick - loop.time())
                if not await self._wait_unless_stopped(
                    asyncio.sleep(delay), cancel_event
                ):
                    self._log_exit(cancel_event)
                    return
                # Ticks missed during a slow fetch collapse into one
                next_tick = max(next_tick + interval, loop.time())

                try:
                    updates = await self.client.get_updates(
                        offset=self._offset,
                        timeout=self.config.long_poll_seconds,
                        allowed_updates=self.config.allowed_updates,
                    )
                except Exception as e:
                    if await self._handle_error(e, retry_state, cancel_event):
                        continue
                    return

                retry_state.reset()
                self.config.backoff.reset()

                for update in updates:
                    delivered = await self._wait_unless_stopped(
                        self._updates.put(update), cancel_event
                    )
                    if not delivered:
                        self._log_exit(cancel_event)
                        return
                    self._offset = update.update_id + 1
        except Exception as e:
            self._fatal_error = e
            self.logger.error("Polling failed with unexpected error", error=str(e))

    def _log_exit(self, cancel_event: asyncio.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            self.logger.debug("Polling stopped due to context cancellation")
        else:
            self.logger.debug("Polling stopped due to stop signal")

    def _retry_delay(self, error: Exception, attempt: int) -> float | None:
        """
        Compute the wait before the next fetch.

        Returns:
            Delay in seconds, or None when the error is not retryable
        """
        if isinstance(error, APIError):
            if error.retry_after > 0:
                return float(error.retry_after)
            if not error.is_retryable:
                return None
        return self.config.backoff.next_backoff(attempt)

    async def _handle_error(
        self,
        error: Exception,
        retry_state: RetryState,
        cancel_event: asyncio.Event | None,
    ) -> bool:
        """
        Apply the retry policy to a failed fetch.

        Returns:
            True if polling should continue
        """
        if cancel_event is not None and cancel_event.is_set():
            return False

        self.logger.error(
            "Failed to get updates",
            error=str(error),
            retry_count=retry_state.consecutive_failures,
        )

        if retry_state.consecutive_failures >= self.config.max_retries:
            self.logger.error(
                "Max retries exceeded, stopping poller",
                max_retries=self.config.max_retries,
            )
            self._fatal_error = MaxRetriesExceededError(self.config.max_retries, error)
            return False

        backoff = self._retry_delay(error, retry_state.consecutive_failures)
        if backoff is None:
            self.logger.error(
                "Non-retryable API error, stopping poller",
                error_code=getattr(error, "error_code", None),
            )
            self._fatal_error = error
            return False

        self.logger.info(
            "Retrying after backoff",
            backoff=backoff,
            attempt=retry_state.consecutive_failures + 1,
        )

        retry_state.consecutive_failures += 1

        if not await self._wait_unless_stopped(asyncio.sleep(backoff), cancel_event):
            self._log_exit(cancel_event)
            return False
        return True
