"""Shared test fixtures and configuration."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from algolite.config.credentials import Credentials, StaticCredentials
from algolite.config.settings import Settings

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it was asked to send."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def hosts(self) -> list[str]:
        return [r.url.host for r in self.requests]

    def json_body(self, i: int = -1) -> Any:
        return json.loads(self.requests[i].content)


def respond_json(payload: Any, status: int = 200) -> Handler:
    """Handler answering every request with the same JSON payload."""
    return lambda request: httpx.Response(status, json=payload)


def respond_sequence(*responses: httpx.Response | Exception) -> Handler:
    """Handler replaying ``responses`` in order; exceptions are raised."""
    queue = list(responses)

    def _next(request: httpx.Request) -> httpx.Response:
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    return _next


def connect_error() -> httpx.ConnectError:
    return httpx.ConnectError("connection refused")


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with credentials."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        application_id="APPID",
        api_key="secret-key",
    )


@pytest.fixture
def credentials() -> StaticCredentials:
    return StaticCredentials(Credentials(application_id="APPID", api_key="secret-key"))


@pytest.fixture
def no_sleep() -> Callable[[float], Any]:
    """Awaitable sleep that records requested delays instead of sleeping."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep
