"""
Mock network implementations for testing.

This module provides mock implementations of NetworkStream and NetworkBackend
that can be used for unit testing without requiring actual network connections.
Each connection attempt consumes the next scripted stream for its host, so a
test can describe a sequence of responses, drops and refusals.
"""

import asyncio
from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Optional, Tuple

from .stream import NetworkStream
from .backend import NetworkBackend


class MockNetworkStream(NetworkStream):
    """
    Mock network stream for testing.

    This implementation simulates a network stream in memory,
    allowing tests to verify network behavior without actual I/O.
    """

    def __init__(
        self,
        data: bytes = b"",
        chunk_size: Optional[int] = None,
        error: Optional[Exception] = None,
        hold_open: bool = False,
    ):
        """
        Initialize the mock stream.

        Args:
            data: Initial data to be available for reading.
            chunk_size: Upper bound on bytes returned per read, to force
                        data to arrive split across reads.
            error: Raised by ``read`` once the data is exhausted, instead
                   of signalling a clean close.
            hold_open: Block ``read`` once the data is exhausted until more
                       data is added or the stream is closed, like a
                       peer that never answers.
        """
        self._data = data
        self._position = 0
        self._chunk_size = chunk_size
        self._error = error
        self._hold_open = hold_open
        self._wakeup: Optional[asyncio.Event] = None
        self._closed = False
        self._extra_info: Dict[str, Any] = {}
        self._write_buffer: List[bytes] = []

    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        if self._closed:
            raise RuntimeError("Stream is closed")

        while self._hold_open and self._position >= len(self._data):
            self._wakeup = asyncio.Event()
            await self._wakeup.wait()
            if self._closed:
                raise RuntimeError("Stream is closed")

        if self._position >= len(self._data):
            if self._error is not None:
                raise self._error
            return b""

        limit = len(self._data) - self._position
        if max_bytes is not None:
            limit = min(limit, max_bytes)
        if self._chunk_size is not None:
            limit = min(limit, self._chunk_size)

        result = self._data[self._position:self._position + limit]
        self._position += limit
        return result

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise RuntimeError("Stream is closed")
        self._write_buffer.append(data)

    async def aclose(self) -> None:
        self._closed = True
        self._wake()

    def get_extra_info(self, name: str) -> Optional[Any]:
        return self._extra_info.get(name)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def written_data(self) -> bytes:
        """Get all data that was written to the stream."""
        return b"".join(self._write_buffer)

    def set_extra_info(self, name: str, value: Any) -> None:
        self._extra_info[name] = value

    def add_data(self, data: bytes) -> None:
        """Add data to be available for reading."""
        self._data += data
        self._wake()

    def _wake(self) -> None:
        if self._wakeup is not None:
            self._wakeup.set()


class MockNetworkBackend(NetworkBackend):
    """
    Mock network backend for testing.

    Streams are queued per (host, port) with ``add_stream``; a connection
    attempt with nothing queued is refused.
    """

    def __init__(self):
        self._queued: Dict[Tuple[str, int], Deque[MockNetworkStream]] = defaultdict(deque)
        self._opened: List[MockNetworkStream] = []
        self._connection_count = 0

    def add_stream(
        self,
        host: str,
        port: int,
        data: bytes = b"",
        chunk_size: Optional[int] = None,
        error: Optional[Exception] = None,
        hold_open: bool = False,
    ) -> MockNetworkStream:
        """
        Queue a stream for the next connection to host:port.

        Returns:
            The queued MockNetworkStream, for later inspection.
        """
        stream = MockNetworkStream(data, chunk_size=chunk_size, error=error, hold_open=hold_open)
        stream.set_extra_info("peername", (host, port))
        stream.set_extra_info("sockname", ("127.0.0.1", 12345))
        self._queued[(host, port)].append(stream)
        return stream

    def _next_stream(self, host: str, port: int) -> MockNetworkStream:
        queue = self._queued.get((host, port))
        if not queue:
            raise OSError(f"Connection refused: {host}:{port}")
        stream = queue.popleft()
        stream.set_extra_info("socket", self._connection_count)
        self._connection_count += 1
        self._opened.append(stream)
        return stream

    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None,
    ) -> MockNetworkStream:
        return self._next_stream(host, port)

    async def connect_tls(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None,
        alpn_protocols: Optional[List[str]] = None,
    ) -> MockNetworkStream:
        stream = self._next_stream(host, port)
        stream.set_extra_info("ssl_object", True)
        stream.set_extra_info(
            "selected_alpn_protocol",
            alpn_protocols[0] if alpn_protocols else "http/1.1",
        )
        return stream

    @property
    def opened_streams(self) -> List[MockNetworkStream]:
        """Streams handed out so far, in connection order."""
        return list(self._opened)

    @property
    def connection_count(self) -> int:
        return self._connection_count

    def reset(self) -> None:
        """Reset all mock connections."""
        self._queued.clear()
        self._opened.clear()
        self._connection_count = 0
