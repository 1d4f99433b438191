"""
Update categories and default tuning values for the poller.
"""

from enum import Enum

DEFAULT_BASE_URL = "https://api.telegram.org"
DEFAULT_POLL_INTERVAL = 0.1  # seconds
DEFAULT_TIMEOUT = 30.0  # seconds
MAX_TIMEOUT = 50.0  # Bot API limit for long polling
DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_BACKOFF = 1.0
DEFAULT_MAX_BACKOFF = 60.0
DEFAULT_BACKOFF_FACTOR = 2.0
DEFAULT_QUEUE_SIZE = 100


class AllowedUpdateType(str, Enum):
    """Update categories accepted by the ``allowed_updates`` parameter."""

    MESSAGE = "message"
    EDITED_MESSAGE = "edited_message"
    CHANNEL_POST = "channel_post"
    EDITED_CHANNEL_POST = "edited_channel_post"
    BUSINESS_CONNECTION = "business_connection"
    BUSINESS_MESSAGE = "business_message"
    EDITED_BUSINESS_MESSAGE = "edited_business_message"
    DELETED_BUSINESS_MESSAGES = "deleted_business_messages"
    MESSAGE_REACTION = "message_reaction"
    MESSAGE_REACTION_COUNT = "message_reaction_count"
    INLINE_QUERY = "inline_query"
    CHOSEN_INLINE_RESULT = "chosen_inline_result"
    CALLBACK_QUERY = "callback_query"
    SHIPPING_QUERY = "shipping_query"
    PRE_CHECKOUT_QUERY = "pre_checkout_query"
    PURCHASED_PAID_MEDIA = "purchased_paid_media"
    POLL = "poll"
    POLL_ANSWER = "poll_answer"
    MY_CHAT_MEMBER = "my_chat_member"
    CHAT_MEMBER = "chat_member"
    CHAT_JOIN_REQUEST = "chat_join_request"
    CHAT_BOOST = "chat_boost"
    REMOVED_CHAT_BOOST = "removed_chat_boost"

    def __str__(self) -> str:
        return self.value


def all_allowed_updates() -> list[AllowedUpdateType]:
    """Return every supported update category."""
    return list(AllowedUpdateType)


def common_allowed_updates() -> list[AllowedUpdateType]:
    """Return the categories most bots subscribe to."""
    return [
        AllowedUpdateType.MESSAGE,
        AllowedUpdateType.EDITED_MESSAGE,
        AllowedUpdateType.CALLBACK_QUERY,
        AllowedUpdateType.INLINE_QUERY,
        AllowedUpdateType.CHOSEN_INLINE_RESULT,
    ]


def parse_allowed_updates(value: str) -> list[AllowedUpdateType]:
    """
    Parse a comma-separated list of update categories.

    Args:
        value: String such as ``"message, callback_query"``

    Returns:
        Parsed categories in input order; empty for an empty string

    Raises:
        ValueError: If a name is not a known category
    """
    if not value:
        return []

    result = []
    for part in value.split(","):
        name = part.strip()
        if not name:
            continue
        try:
            result.append(AllowedUpdateType(name))
        except ValueError as e:
            raise ValueError(f"Unknown update type: {name}") from e
    return result
