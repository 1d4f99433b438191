"""
Tests for update categories.
"""

import pytest

from telegram_poller.models import Update
from telegram_poller.update_types import (
    AllowedUpdateType,
    all_allowed_updates,
    common_allowed_updates,
    parse_allowed_updates,
)


def test_all_allowed_updates_covers_every_category():
    updates = all_allowed_updates()

    assert len(updates) == 23
    assert updates[0] == AllowedUpdateType.MESSAGE
    assert AllowedUpdateType.REMOVED_CHAT_BOOST in updates


def test_common_allowed_updates():
    assert [str(u) for u in common_allowed_updates()] == [
        "message",
        "edited_message",
        "callback_query",
        "inline_query",
        "chosen_inline_result",
    ]


def test_parse_allowed_updates():
    assert parse_allowed_updates("message, callback_query,,") == [
        AllowedUpdateType.MESSAGE,
        AllowedUpdateType.CALLBACK_QUERY,
    ]


def test_parse_allowed_updates_empty():
    assert parse_allowed_updates("") == []


def test_parse_allowed_updates_unknown_name():
    with pytest.raises(ValueError, match="Unknown update type: nope"):
        parse_allowed_updates("message,nope")


def test_update_type_detection():
    assert Update(update_id=1, poll={"id": "p"}).update_type == AllowedUpdateType.POLL
    assert Update(update_id=2).update_type is None
    assert Update(update_id=3, message={"text": "x"}).payload == {
        "message": {"text": "x"}
    }
