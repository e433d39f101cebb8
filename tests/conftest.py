"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from cursorpager.http import HTTPClient
from cursorpager.paginator import Paginator


@dataclass
class Envelope:
    values: list[Any] = field(default_factory=list)
    cursor: str | None = None


class PendingRequest:
    """A page request the test resolves or fails by hand."""

    def __init__(self, kind: str, arg: Any, future: asyncio.Future) -> None:
        self.kind = kind
        self.arg = arg
        self.future = future

    def resolve(self, envelope: Envelope) -> None:
        if not self.future.done():
            self.future.set_result(envelope)

    def fail(self, exc: Exception) -> None:
        if not self.future.done():
            self.future.set_exception(exc)

    @property
    def cancelled(self) -> bool:
        return self.future.cancelled()


class ScriptedSource:
    """Records page requests and leaves them pending until the test acts."""

    def __init__(self) -> None:
        self.requests: list[PendingRequest] = []
        self._queue: asyncio.Queue[PendingRequest] = asyncio.Queue()

    async def request_from_params(self, params: Any) -> Envelope:
        return await self._enqueue("params", params)

    async def request_from_cursor(self, cursor: Any) -> Envelope:
        return await self._enqueue("cursor", cursor)

    async def _enqueue(self, kind: str, arg: Any) -> Envelope:
        request = PendingRequest(kind, arg, asyncio.get_running_loop().create_future())
        self.requests.append(request)
        self._queue.put_nowait(request)
        return await request.future

    async def next_request(self) -> PendingRequest:
        return await asyncio.wait_for(self._queue.get(), timeout=1.0)


async def settle(rounds: int = 10) -> None:
    """Give scheduled tasks a few loop iterations to run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def source() -> ScriptedSource:
    return ScriptedSource()


@pytest.fixture
def make_paginator(source):
    """Factory for paginators wired to the scripted source."""

    def factory(**kwargs: Any) -> Paginator:
        kwargs.setdefault("clear_on_new_request", True)
        kwargs.setdefault("api_delay", 0.0)
        return Paginator(
            values_from_envelope=lambda env: env.values,
            cursor_from_envelope=lambda env: env.cursor,
            request_from_params=source.request_from_params,
            request_from_cursor=source.request_from_cursor,
            **kwargs,
        )

    return factory


@pytest.fixture
def mock_transport():
    """Returns an httpx mock transport that records requests."""
    calls: list[dict[str, Any]] = []
    default_response = httpx.Response(200, json={})

    class RecordingTransport(httpx.AsyncBaseTransport):
        def __init__(self):
            self.response = default_response

        async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
            body = None
            if request.content:
                try:
                    body = json.loads(request.content)
                except ValueError:
                    body = request.content
            calls.append({
                "method": request.method,
                "url": str(request.url),
                "path": request.url.path,
                "params": dict(request.url.params),
                "headers": dict(request.headers),
                "body": body,
            })
            return self.response

    transport = RecordingTransport()
    return transport, calls


@pytest.fixture
def http_client(mock_transport):
    """HTTPClient with a mock transport."""
    transport, calls = mock_transport
    client = HTTPClient("https://pager.test", token="test-token", transport=transport)
    return client, transport, calls
