from __future__ import annotations

import json
from collections import deque
from typing import Callable, Union

import httpx
import pytest

from content_understanding.client import ContentUnderstandingClient

ENDPOINT = "https://test.cognitiveservices.azure.com"
API_KEY = "test-api-key"
OPERATION_URL = f"{ENDPOINT}/contentunderstanding/analyzerResults/op-123?api-version=2024-12-01-preview"

Reply = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeService:
    """Transport double: replays queued replies in order and records every request."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._replies: deque[Reply] = deque()
        self.fallback: Callable[[httpx.Request], httpx.Response] | None = None

    def queue(self, *replies: Reply) -> "FakeService":
        self._replies.extend(replies)
        return self

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._replies:
            reply = self._replies.popleft()
        elif self.fallback is not None:
            reply = self.fallback
        else:
            raise AssertionError(f"unexpected request: {request.method} {request.url}")
        return reply(request) if callable(reply) else reply

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if r.content]


def accepted(operation_url: str = OPERATION_URL) -> httpx.Response:
    return httpx.Response(202, headers={"Operation-Location": operation_url}, json={})


def operation(status: str, **extra) -> httpx.Response:
    return httpx.Response(200, json={"id": "op-123", "status": status, **extra})


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest.fixture
def make_client(service):
    def _make(**kwargs) -> ContentUnderstandingClient:
        http = httpx.AsyncClient(transport=service.transport())
        if "credential" not in kwargs:
            kwargs.setdefault("api_key", API_KEY)
        kwargs.setdefault("polling_interval", 0)
        return ContentUnderstandingClient(ENDPOINT, http_client=http, **kwargs)

    return _make


@pytest.fixture
def client(make_client) -> ContentUnderstandingClient:
    return make_client()
