import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Self

import httpx
import pytest

from sdktree import RouteNode, create_client
from sdktree.transport import HTTPXTransport

HOST = "tests.com"
ROOT_URI = f"https://{HOST}/api/v1/"
BASE_HEADERS = {
    "accept": "application/json",
    "authorization": "Basic dXNlcjpwYXNz",
    "host": HOST,
    "accept-encoding": "gzip, deflate",
    "user-agent": "sdktree/1.0",
}


@dataclass
class Expectation:
    method: str
    path: str
    status: int = 200
    json: Any = None
    query: dict[str, str] | None = None  # None means "don't care"
    body: Any = None  # None means "don't care"

    def matches(self, request: httpx.Request) -> bool:
        if request.method != self.method or request.url.path != self.path:
            return False
        if self.query is not None and dict(request.url.params) != self.query:
            return False
        if self.body is not None:
            if not request.content or json.loads(request.content) != self.body:
                return False
        return True

    def response(self) -> httpx.Response:
        if self.json is None:
            return httpx.Response(self.status)
        return httpx.Response(self.status, json=self.json)


@dataclass
class MockServer:
    """Fake server behind ``httpx.MockTransport``.

    Each expectation answers exactly one matching request, in registration
    order. Unmatched requests get a 418 so tests fail loudly.
    """

    expectations: list[Expectation] = field(default_factory=list)
    requests: list[httpx.Request] = field(default_factory=list)

    def expect(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        *,
        query: dict[str, str] | None = None,
        body: Any = None,
    ) -> Self:
        self.expectations.append(
            Expectation(method, path, status, json, query=query, body=body)
        )
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for i, expectation in enumerate(self.expectations):
            if expectation.matches(request):
                del self.expectations[i]
                return expectation.response()
        return httpx.Response(418, json={"unexpected": str(request.url)})

    def is_done(self) -> bool:
        return not self.expectations

    def transport(self) -> HTTPXTransport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return HTTPXTransport(client)


@pytest.fixture
def server() -> Iterator[MockServer]:
    server = MockServer()
    yield server
    assert server.is_done(), f"requests pending: {server.expectations}"


@pytest.fixture
def sdk(server: MockServer) -> RouteNode:
    return create_client(
        ROOT_URI,
        BASE_HEADERS,
        post_request=[lambda response, succeeded: response],
        transport=server.transport(),
    )
