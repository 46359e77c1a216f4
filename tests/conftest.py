"""Shared fixtures: an in-process fake of the reader service."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qsl

import httpx
import pytest

from greader.core.config import Settings

Reply = str | tuple[int, str] | Callable[[httpx.Request], httpx.Response]


class FakeReader:
    """Routes requests by URL substring to canned replies and records them."""

    def __init__(self) -> None:
        self.routes: list[tuple[str, str, Reply]] = []
        self.requests: list[httpx.Request] = []

    def on(self, method: str, fragment: str, reply: Reply) -> FakeReader:
        self.routes.append((method, fragment, reply))
        return self

    def get(self, fragment: str, reply: Reply) -> FakeReader:
        return self.on("GET", fragment, reply)

    def post(self, fragment: str, reply: Reply) -> FakeReader:
        return self.on("POST", fragment, reply)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        for method, fragment, reply in self.routes:
            if request.method == method and fragment in url:
                if callable(reply):
                    return reply(request)
                if isinstance(reply, tuple):
                    return httpx.Response(reply[0], text=reply[1])
                return httpx.Response(200, text=reply)
        return httpx.Response(404, text="not found")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def calls(self, fragment: str) -> list[httpx.Request]:
        return [r for r in self.requests if fragment in str(r.url)]

    @staticmethod
    def form(request: httpx.Request) -> dict[str, Any]:
        return dict(parse_qsl(request.content.decode(), keep_blank_values=True))


@pytest.fixture
def fake() -> FakeReader:
    return FakeReader()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)
