"""
Custom exceptions for the Telegram poller.

This module defines the exception hierarchy raised by the API client,
the envelope decoder and the polling engine.
"""

from typing import Any


class TelegramPollerError(Exception):
    """Base exception for Telegram poller errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code or "TELEGRAM_POLLER_ERROR"
        self.context = context or {}


class PollerAlreadyRunningError(TelegramPollerError):
    """Raised when start() is called on a running poller."""

    def __init__(self, message: str = "telegram: poller is already running"):
        super().__init__(message, "POLLER_ALREADY_RUNNING")


class PollerClosedError(TelegramPollerError):
    """Raised when start() is called after a completed stop()."""

    def __init__(self, message: str = "telegram: poller is closed"):
        super().__init__(message, "POLLER_CLOSED")


class QueueClosedError(TelegramPollerError):
    """Raised by the update queue once it is closed (and drained, for readers)."""

    def __init__(self, message: str = "update queue is closed"):
        super().__init__(message, "QUEUE_CLOSED")


class TransportError(TelegramPollerError):
    """Exception for connectivity and timeout failures."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "TRANSPORT_ERROR", context)


class ResponseDecodeError(TelegramPollerError):
    """Exception for malformed response bodies."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "RESPONSE_DECODE_ERROR", context)


class APIError(TelegramPollerError):
    """
    Failure envelope returned by the Bot API.

    ``retry_after`` is the server-mandated wait in seconds, 0 when absent.
    """

    def __init__(
        self,
        error_code: int,
        description: str,
        retry_after: int = 0,
        context: dict[str, Any] | None = None,
    ):
        if retry_after > 0:
            message = (
                f"telegram api error {error_code}: {description} "
                f"(retry after {retry_after}s)"
            )
        else:
            message = f"telegram api error {error_code}: {description}"
        super().__init__(message, "API_ERROR", context)
        self.error_code = error_code
        self.description = description
        self.retry_after = retry_after

    @property
    def is_retryable(self) -> bool:
        """Rate limiting and server-side failures are transient."""
        return self.retry_after > 0 or self.error_code >= 500


class MaxRetriesExceededError(TelegramPollerError):
    """The fetch loop gave up after too many consecutive failures."""

    def __init__(self, max_retries: int, last_error: BaseException):
        super().__init__(
            f"telegram: max retries ({max_retries}) exceeded: {last_error}",
            "MAX_RETRIES_EXCEEDED",
        )
        self.max_retries = max_retries
        self.last_error = last_error
