"""
Pytest configuration for fedi_http_core tests.

This file contains shared fixtures and helpers that build raw HTTP
responses for the mock network backend, and a scripted transport for
streaming session tests.
"""

import asyncio
import json
import os
import sys
from collections import deque
from typing import Any, List, Optional, Tuple

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from fedi_http_core.http_primitives import Response
from fedi_http_core.network import MockNetworkBackend
from fedi_http_core.transport import HTTPTransport

HOST = "mastodon.example"
BASE_URL = f"https://{HOST}"
TOKEN = "token123"


def build_http_response(
    status: int = 200,
    body: Any = b"",
    headers: Optional[List[Tuple[str, str]]] = None,
) -> bytes:
    """Serialize a complete HTTP/1.1 response with a Content-Length body."""
    all_headers = list(headers or [])
    if isinstance(body, (dict, list)):
        body = json.dumps(body).encode()
        all_headers.append(("Content-Type", "application/json"))
    elif isinstance(body, str):
        body = body.encode()

    all_headers.append(("Content-Length", str(len(body))))
    all_headers.append(("Connection", "close"))

    head = f"HTTP/1.1 {status} OK\r\n"
    head += "".join(f"{name}: {value}\r\n" for name, value in all_headers)
    return head.encode() + b"\r\n" + body


def build_chunked_response(chunks: List[bytes], complete: bool = True) -> bytes:
    """Serialize an event-stream response using chunked transfer encoding."""
    head = (
        b"HTTP/1.1 200 OK\r\n"
        b"Content-Type: text/event-stream\r\n"
        b"Transfer-Encoding: chunked\r\n"
        b"\r\n"
    )
    body = b"".join(b"%x\r\n%s\r\n" % (len(chunk), chunk) for chunk in chunks)
    if complete:
        body += b"0\r\n\r\n"
    return head + body


def link_header(**links: str) -> Tuple[str, str]:
    """Build a Link header from rel=uri keyword arguments."""
    value = ", ".join(f'<{uri}>; rel="{rel}"' for rel, uri in links.items())
    return ("Link", value)


@pytest.fixture
def backend():
    """Create a mock network backend."""
    return MockNetworkBackend()


@pytest.fixture
def transport(backend):
    """Create a transport talking to the mock backend."""
    return HTTPTransport(BASE_URL, token=TOKEN, backend=backend, timeout=5.0)


@pytest.fixture
def queue_response(backend):
    """Queue an HTTP response for the next connection to the test instance."""
    def _queue(status: int = 200, body: Any = b"", headers=None, port: int = 443, host: str = HOST):
        return backend.add_stream(host, port, build_http_response(status, body, headers))
    return _queue


class StreamScript:
    """What one scripted stream connection delivers."""

    def __init__(
        self,
        chunks: List[bytes],
        error: Optional[Exception] = None,
        hold_open: bool = False,
    ) -> None:
        self.chunks = chunks
        self.error = error
        self.hold_open = hold_open

    async def body(self):
        for chunk in self.chunks:
            yield chunk
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        if self.hold_open:
            await asyncio.Event().wait()


class ScriptedStreamTransport:
    """
    Stand-in transport for StreamSession tests.

    Each open_stream call consumes the next outcome: an exception is
    raised, a StreamScript becomes the response body. Once the outcomes
    run out, connections stay open without data.
    """

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = deque(outcomes)
        self.calls: List[Tuple[str, dict]] = []

    async def open_stream(self, url, params=None, read_timeout=None) -> Response:
        self.calls.append((url, dict(params or {})))
        outcome = self.outcomes.popleft() if self.outcomes else StreamScript([], hold_open=True)
        if isinstance(outcome, Exception):
            raise outcome
        return Response.create(status_code=200, stream=outcome.body())


@pytest.fixture
def scripted_transport():
    """Create a scripted streaming transport."""
    return ScriptedStreamTransport


@pytest.fixture
def sample_headers():
    """Sample headers for testing."""
    return [
        (b"Host", b"mastodon.example"),
        (b"Authorization", b"Bearer token123"),
        (b"User-Agent", b"fedi_http_core/0.1.0"),
        (b"Accept", b"application/json"),
    ]


class MockAsyncStream:
    """Mock async stream for testing."""

    def __init__(self, data: List[bytes]) -> None:
        self.data = data
        self.index = 0

    def __aiter__(self) -> "MockAsyncStream":
        return self

    async def __anext__(self) -> bytes:
        if self.index >= len(self.data):
            raise StopAsyncIteration
        result = self.data[self.index]
        self.index += 1
        return result


@pytest.fixture
def mock_stream():
    """Create a mock async stream for testing."""
    def _create_stream(data: List[bytes]) -> MockAsyncStream:
        return MockAsyncStream(data)
    return _create_stream


@pytest.fixture
def sample_stream_data():
    """Sample stream data for testing."""
    return [b"Hello", b", ", b"World", b"!"]
