"""
Retry backoff strategies for the polling loop.
"""

from abc import ABC, abstractmethod

from .update_types import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_INITIAL_BACKOFF,
    DEFAULT_MAX_BACKOFF,
)


class BackoffStrategy(ABC):
    """Maps a retry attempt to a wait duration in seconds."""

    @abstractmethod
    def next_backoff(self, attempt: int) -> float:
        """
        Return the delay before the next retry.

        Args:
            attempt: Zero-based retry attempt (the first retry is attempt 0)

        Returns:
            Delay in seconds
        """
        pass

    @abstractmethod
    def reset(self) -> None:
        """Forget any state accumulated across attempts."""
        pass


class ExponentialBackoff(BackoffStrategy):
    """
    Exponential backoff capped at ``max_interval``.

    The defaults wait 1 s, then double per attempt up to a 60 s cap. Pass
    ``max_interval=10.0`` for the shorter 1, 2, 4, 8, 10, 10 sequence.

    The delay is recomputed from the attempt index on every call, so the
    strategy keeps no state and ``reset()`` does nothing.
    """

    def __init__(
        self,
        initial_interval: float = DEFAULT_INITIAL_BACKOFF,
        max_interval: float = DEFAULT_MAX_BACKOFF,
        multiplier: float = DEFAULT_BACKOFF_FACTOR,
    ):
        self.initial_interval = initial_interval
        self.max_interval = max_interval
        self.multiplier = multiplier

    def next_backoff(self, attempt: int) -> float:
        attempt = max(attempt, 0)

        backoff = self.initial_interval
        for _ in range(attempt):
            backoff *= self.multiplier
            if backoff > self.max_interval:
                backoff = self.max_interval
                break

        return backoff

    def reset(self) -> None:
        pass

    def __repr__(self) -> str:
        return (
            f"ExponentialBackoff(initial_interval={self.initial_interval}, "
            f"max_interval={self.max_interval}, multiplier={self.multiplier})"
        )
