# === NAVMAP v1 ===
# {
#   "module": "tests.fixtures.http_mocking",
#   "purpose": "HTTP mocking fixtures for hermetic transfer testing",
#   "sections": [
#     {"id": "mock-response-builder", "name": "MockResponseBuilder", "anchor": "class-mock-response-builder", "kind": "class"},
#     {"id": "mock-server", "name": "MockServer", "anchor": "class-mock-server", "kind": "class"},
#     {"id": "http-mock-fixture", "name": "http_mock", "anchor": "fixture-http-mock", "kind": "fixture"},
#     {"id": "mock-server-fixture", "name": "mock_server", "anchor": "fixture-mock-server", "kind": "fixture"},
#     {"id": "transfer-client-fixture", "name": "transfer_client", "anchor": "fixture-transfer-client", "kind": "fixture"},
#     {"id": "setopt-spy-fixture", "name": "setopt_spy", "anchor": "fixture-setopt-spy", "kind": "fixture"}
#   ]
# }
# === /NAVMAP ===

"""
HTTP mocking fixtures for hermetic transfer testing.

Provides an HTTPX MockTransport "server" that records every request it sees,
a fluent response builder, a client wired to that transport, and a spy that
records every option the client hands to the engine.
"""

from __future__ import annotations

from typing import Any, Callable, Generator, Union

import httpx
import pytest

from HttpTransfer.client import HttpClient
from HttpTransfer.engine import Option, TransferHandle


class MockResponseBuilder:
    """Builder for constructing mock HTTP responses with fluent API."""

    def __init__(self, status_code: int = 200, content: bytes = b""):
        self.status_code = status_code
        self.content = content
        self.headers: list[tuple[str, str]] = []

    def with_status(self, code: int) -> MockResponseBuilder:
        self.status_code = code
        return self

    def with_content(self, content: bytes | str) -> MockResponseBuilder:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.content = content
        return self

    def with_header(self, name: str, value: str) -> MockResponseBuilder:
        """Add a response header; repeated names are kept in order."""
        self.headers.append((name, value))
        return self

    def build(self) -> httpx.Response:
        return httpx.Response(
            status_code=self.status_code,
            content=self.content,
            headers=self.headers,
        )


Handler = Callable[[httpx.Request], httpx.Response]
Route = Union[MockResponseBuilder, Handler]


class MockServer:
    """In-process HTTP endpoint backed by ``httpx.MockTransport``.

    Unrouted requests get ``200`` with an empty body.  Request bodies are read
    before routing so ``request.content`` is always available to assertions.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], Route] = {}
        self.transport = httpx.MockTransport(self._handle)

    def route(self, method: str, url: str, response: Route) -> None:
        self._routes[(method.upper(), url)] = response

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "no request reached the mock server"
        return self.requests[-1]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        route = self._routes.get((request.method, str(request.url)))
        if route is None:
            return httpx.Response(200)
        if isinstance(route, MockResponseBuilder):
            return route.build()
        return route(request)


@pytest.fixture
def http_mock() -> Generator[Callable[..., MockResponseBuilder], None, None]:
    """
    Provide a mock response builder factory.

    Example:
        def test_headers(http_mock, mock_server, transfer_client):
            mock_server.route("GET", URL, http_mock(200, b"hi").with_header("X-A", "1"))
    """

    def _mock_response(status_code: int = 200, content: bytes | str = b"") -> MockResponseBuilder:
        if isinstance(content, str):
            content = content.encode("utf-8")
        return MockResponseBuilder(status_code=status_code, content=content)

    yield _mock_response


@pytest.fixture
def mock_server() -> MockServer:
    return MockServer()


@pytest.fixture
def transfer_client(mock_server: MockServer) -> Generator[HttpClient, None, None]:
    """HttpClient whose transfers go to ``mock_server``."""

    client = HttpClient(transport=mock_server.transport)
    yield client
    client.close()


@pytest.fixture
def setopt_spy(monkeypatch) -> dict[Option, Any]:
    """
    Record the last value set for every engine option.

    List values are copied at call time because the client clears its header
    list once the transfer finished.
    """
    recorded: dict[Option, Any] = {}
    original = TransferHandle.setopt

    def _spy(self: TransferHandle, option: Option, value: Any) -> None:
        recorded[option] = list(value) if isinstance(value, list) else value
        original(self, option, value)

    monkeypatch.setattr(TransferHandle, "setopt", _spy)
    return recorded
