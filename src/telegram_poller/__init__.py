"""
Telegram Poller

A long-polling client for the Telegram Bot API that delivers updates
in order, at least once, and rides out transient failures.
"""

__version__ = "0.1.0"
__author__ = "Telegram Poller"
__email__ = "support@example.com"

from .backoff import BackoffStrategy, ExponentialBackoff
from .client import TelegramClient
from .config import PollerConfig, Settings
from .exceptions import APIError, TelegramPollerError
from .models import Update, User
from .poller import Poller
from .update_queue import UpdateQueue
from .update_types import AllowedUpdateType

__all__ = [
    "AllowedUpdateType",
    "APIError",
    "BackoffStrategy",
    "ExponentialBackoff",
    "Poller",
    "PollerConfig",
    "Settings",
    "TelegramClient",
    "TelegramPollerError",
    "Update",
    "UpdateQueue",
    "User",
]
