"""In-memory stand-in for the Booklog API, served through httpx.MockTransport.

Routes are registered per (method, path) and answer with the same
envelopes as the real API. Every request is recorded for assertions.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from booklog.client.api import BooklogClient

BASE_URL = "http://api.test"

Responder = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


def ok(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json={"data": data})


def fail(code: str, message: str, status_code: int = 400) -> httpx.Response:
    return httpx.Response(status_code, json={"error": {"code": code, "message": message}})


class FakeApi:
    def __init__(self):
        self.routes: dict[tuple[str, str], Responder] = {}
        self.requests: list[httpx.Request] = []
        self.gates: dict[tuple[str, str], asyncio.Event] = {}

    def on(self, method: str, path: str, response: httpx.Response | Responder) -> None:
        if isinstance(response, httpx.Response):
            self.routes[(method, path)] = lambda request, r=response: r
        else:
            self.routes[(method, path)] = response

    def hold(self, method: str, path: str) -> asyncio.Event:
        """Make (method, path) wait until the returned event is set."""
        gate = asyncio.Event()
        self.gates[(method, path)] = gate
        return gate

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        responder = self.routes.get(key)
        if responder is None:
            return fail("E_NOT_FOUND", "Not found", 404)
        response = responder(request)
        if asyncio.iscoroutine(response):
            response = await response
        return response

    def client(self, access_token: str | None = "token") -> BooklogClient:
        http = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(self))
        return BooklogClient(BASE_URL, access_token=access_token, http_client=http)
