"""
Pytest configuration and fixtures for Telegram poller tests.
"""

import asyncio
import json
from typing import Any

import httpx
import pytest

from telegram_poller.backoff import BackoffStrategy
from telegram_poller.config import PollerConfig


def ok_body(result: Any) -> dict[str, Any]:
    return {"ok": True, "result": result}


def error_body(
    code: int, description: str, retry_after: int | None = None
) -> dict[str, Any]:
    body: dict[str, Any] = {"ok": False, "error_code": code, "description": description}
    if retry_after is not None:
        body["parameters"] = {"retry_after": retry_after}
    return body


def updates_body(*update_ids: int) -> dict[str, Any]:
    return ok_body(
        [
            {"update_id": uid, "message": {"message_id": 100 + uid, "text": f"m{uid}"}}
            for uid in update_ids
        ]
    )


class ScriptedTransport:
    """
    Replays scripted responses to an ``httpx.AsyncClient``.

    Each script item is a JSON-able dict (sent as a 200 response), an
    ``httpx.Response``, or an exception instance to raise. Once the script
    runs out, ``default`` is used.
    """

    def __init__(self, script=None, default=None, delay: float = 0.0):
        self.script = list(script or [])
        self.default = default if default is not None else ok_body([])
        self.delay = delay
        self.requests: list[httpx.Request] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.completed = 0

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            self.completed += 1
            item = self.script.pop(0) if self.script else self.default
            if isinstance(item, Exception):
                raise item
            if isinstance(item, httpx.Response):
                return item
            return httpx.Response(200, content=json.dumps(item).encode())
        finally:
            self.in_flight -= 1

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    def fetch_params(self) -> list[dict[str, str]]:
        return [
            dict(r.url.params)
            for r in self.requests
            if r.url.path.endswith("/getUpdates")
        ]


class RecordingBackoff(BackoffStrategy):
    """Zero-delay backoff that records every attempt it is asked about."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.attempts: list[int] = []
        self.resets = 0

    def next_backoff(self, attempt: int) -> float:
        self.attempts.append(attempt)
        return self.delay

    def reset(self) -> None:
        self.resets += 1


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def backoff() -> RecordingBackoff:
    return RecordingBackoff()


@pytest.fixture
def make_config(backoff: RecordingBackoff):
    """Build a fast-polling config around a scripted transport."""

    def _make(transport: ScriptedTransport, **overrides: Any) -> PollerConfig:
        values: dict[str, Any] = {
            "token": "test-token",
            "base_url": "https://api.test",
            "poll_interval": 0.01,
            "timeout": 1,
            "backoff": backoff,
            "http_client": transport.client(),
        }
        values.update(overrides)
        return PollerConfig(**values)

    return _make
