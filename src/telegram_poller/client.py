"""
Bot API client for the Telegram poller.

This module issues the two unary calls the poller needs, ``getUpdates``
and ``getMe``, over an ``httpx.AsyncClient`` and decodes the envelope of
every response.
"""

import json
from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from .envelope import decode_updates, decode_user
from .exceptions import TransportError
from .models import Update, User
from .update_types import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, AllowedUpdateType

logger = structlog.get_logger(__name__)

# Added on top of the long-poll timeout so the server answers first
REQUEST_TIMEOUT_MARGIN = 10.0


class TelegramClient:
    """
    Thin Bot API client.

    The transport is any ``httpx.AsyncClient``; tests plug in one backed by
    ``httpx.MockTransport``. When no client is supplied one is created on
    first use and owned (closed by :meth:`aclose`) by this object.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        request_timeout: float = DEFAULT_TIMEOUT + REQUEST_TIMEOUT_MARGIN,
    ) -> None:
        """
        Initialize the client.

        Args:
            token: Bot API token
            base_url: API root, without trailing slash
            http_client: Optional pre-built HTTP client
            request_timeout: Timeout for a client created on demand
        """
        self._token = token
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self._http_client = http_client
        self._owns_http_client = http_client is None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.request_timeout)
            self._owns_http_client = True
        return self._http_client

    def _method_url(self, method: str) -> str:
        return f"{self.base_url}/bot{self._token}/{method}"

    async def _call(self, method: str, params: dict[str, Any] | None = None) -> bytes:
        client = self._get_http_client()
        try:
            response = await client.get(
                self._method_url(method),
                params=params,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            # httpx includes the URL, and with it the token, in some messages
            raise TransportError(
                f"telegram: {method} request failed: {type(e).__name__}",
                context={"method": method},
            ) from e
        return response.content

    async def get_updates(
        self,
        offset: int = 0,
        timeout: int = int(DEFAULT_TIMEOUT),
        allowed_updates: Sequence[AllowedUpdateType] = (),
    ) -> list[Update]:
        """
        Fetch the next batch of updates.

        Args:
            offset: First update id to return; omitted when 0
            timeout: Long-poll timeout in whole seconds
            allowed_updates: Categories to receive; empty means all

        Returns:
            Updates in ascending ``update_id`` order
        """
        params: dict[str, Any] = {"timeout": str(timeout)}
        if offset > 0:
            params["offset"] = str(offset)
        if allowed_updates:
            params["allowed_updates"] = json.dumps(
                [AllowedUpdateType(u).value for u in allowed_updates]
            )

        logger.debug("Polling for updates", offset=offset, timeout=timeout)

        updates = decode_updates(await self._call("getUpdates", params))

        if updates:
            logger.debug(
                "Received updates",
                count=len(updates),
                first_id=updates[0].update_id,
                last_id=updates[-1].update_id,
            )

        return updates

    async def get_me(self) -> User:
        """Return the identity of the bot owning the token."""
        return decode_user(await self._call("getMe"))

    async def aclose(self) -> None:
        """Close the HTTP client if this object created it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
