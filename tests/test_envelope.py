"""
Tests for response envelope decoding.
"""

import json

import pytest

from telegram_poller.envelope import decode_response, decode_updates, decode_user
from telegram_poller.exceptions import APIError, ResponseDecodeError


def _body(payload) -> bytes:
    return json.dumps(payload).encode()


class TestDecodeResponse:
    """Test decoding of the ok/result/error envelope."""

    def test_success_returns_result(self):
        assert decode_response(_body({"ok": True, "result": [1, 2]})) == [1, 2]

    def test_failure_raises_api_error(self):
        body = _body({"ok": False, "error_code": 401, "description": "Unauthorized"})

        with pytest.raises(APIError) as exc_info:
            decode_response(body)

        assert exc_info.value.error_code == 401
        assert exc_info.value.description == "Unauthorized"
        assert exc_info.value.retry_after == 0
        assert exc_info.value.is_retryable is False
        assert str(exc_info.value) == "telegram api error 401: Unauthorized"

    def test_failure_with_retry_hint(self):
        body = _body(
            {
                "ok": False,
                "error_code": 429,
                "description": "Too Many Requests",
                "parameters": {"retry_after": 7},
            }
        )

        with pytest.raises(APIError) as exc_info:
            decode_response(body)

        assert exc_info.value.retry_after == 7
        assert exc_info.value.is_retryable is True
        assert "retry after 7s" in str(exc_info.value)

    def test_server_error_is_retryable(self):
        body = _body({"ok": False, "error_code": 502, "description": "Bad Gateway"})

        with pytest.raises(APIError) as exc_info:
            decode_response(body)

        assert exc_info.value.is_retryable is True

    def test_null_error_fields_still_raise_api_error(self):
        body = _body(
            {"ok": False, "error_code": 401, "description": None, "parameters": None}
        )

        with pytest.raises(APIError) as exc_info:
            decode_updates(body)

        assert exc_info.value.error_code == 401
        assert exc_info.value.description == ""
        assert exc_info.value.is_retryable is False

    def test_failure_without_error_code(self):
        with pytest.raises(APIError) as exc_info:
            decode_response(_body({"ok": False, "error_code": None}))

        assert exc_info.value.error_code == 0

    @pytest.mark.parametrize(
        "body",
        [b"", b"<html>502 Bad Gateway</html>", b'{"result": []}', b"[]"],
    )
    def test_malformed_body_raises_decode_error(self, body):
        with pytest.raises(ResponseDecodeError):
            decode_response(body)


class TestTypedDecoding:
    """Test decoding of typed results."""

    def test_decode_updates_keeps_order_and_payload(self):
        body = _body(
            {
                "ok": True,
                "result": [
                    {"update_id": 5, "message": {"text": "hi"}},
                    {"update_id": 6, "callback_query": {"data": "x"}},
                ],
            }
        )

        updates = decode_updates(body)

        assert [u.update_id for u in updates] == [5, 6]
        assert updates[0].get("message") == {"text": "hi"}
        assert updates[1].update_type.value == "callback_query"

    def test_decode_updates_null_result_is_empty(self):
        assert decode_updates(_body({"ok": True})) == []

    def test_decode_updates_rejects_records_without_id(self):
        with pytest.raises(ResponseDecodeError):
            decode_updates(_body({"ok": True, "result": [{"message": {}}]}))

    def test_decode_user(self):
        body = _body(
            {
                "ok": True,
                "result": {
                    "id": 42,
                    "is_bot": True,
                    "first_name": "Pocky",
                    "username": "pocky_bot",
                    "can_join_groups": True,
                },
            }
        )

        user = decode_user(body)

        assert user.id == 42
        assert user.username == "pocky_bot"
        assert user.model_extra == {"can_join_groups": True}

    def test_decode_user_rejects_non_object(self):
        with pytest.raises(ResponseDecodeError):
            decode_user(_body({"ok": True, "result": True}))
