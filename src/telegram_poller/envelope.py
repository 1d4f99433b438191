"""
Decoding of the Bot API response envelope.

Every response body has the shape
``{"ok": bool, "result": ..., "error_code": int, "description": str,
"parameters": {"retry_after": int}}``. Success yields ``result``,
failure is raised as :class:`APIError`.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from .exceptions import APIError, ResponseDecodeError
from .models import Update, User


class ResponseParameters(BaseModel):
    """Extra hints attached to failure responses."""

    model_config = ConfigDict(extra="ignore")

    migrate_to_chat_id: int | None = None
    retry_after: int | None = None


class APIResponse(BaseModel):
    """Uniform success/failure wrapper of every API response."""

    model_config = ConfigDict(extra="ignore")

    ok: bool
    result: Any = None
    error_code: int | None = None
    description: str | None = None
    parameters: ResponseParameters | None = None

    def to_error(self) -> APIError:
        retry_after = 0
        if self.parameters and self.parameters.retry_after:
            retry_after = max(self.parameters.retry_after, 0)
        return APIError(self.error_code or 0, self.description or "", retry_after)


_updates_adapter = TypeAdapter(list[Update])


def decode_response(body: bytes | str) -> Any:
    """
    Parse an envelope and return its ``result``.

    Raises:
        ResponseDecodeError: If the body is not a valid envelope
        APIError: If the envelope reports a failure
    """
    try:
        response = APIResponse.model_validate_json(body)
    except ValidationError as e:
        raise ResponseDecodeError(f"telegram: failed to parse response: {e}") from e

    if not response.ok:
        raise response.to_error()

    return response.result


def decode_updates(body: bytes | str) -> list[Update]:
    """Decode a ``getUpdates`` response into an ordered list of updates."""
    result = decode_response(body)
    try:
        return _updates_adapter.validate_python(result if result is not None else [])
    except ValidationError as e:
        raise ResponseDecodeError(f"telegram: failed to parse updates: {e}") from e


def decode_user(body: bytes | str) -> User:
    """Decode a ``getMe`` response into the bot's identity record."""
    result = decode_response(body)
    try:
        return User.model_validate(result)
    except ValidationError as e:
        raise ResponseDecodeError(f"telegram: failed to parse user: {e}") from e
