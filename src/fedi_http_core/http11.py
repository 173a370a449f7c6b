"""
HTTP/1.1 connection implementation for fedi_http_core.

This module implements the HTTP11Connection class that manages
HTTP/1.1 protocol communication over a NetworkStream. Each connection
carries a single request/response cycle; long-lived streaming responses
keep it open until the body ends or the caller closes it.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import h11

from .http_primitives import Request, Response
from .streams import ResponseStream
from .network.stream import NetworkStream
from .exceptions import (
    ConnectionError,
    ProtocolError,
    TimeoutError,
)

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 65536


class HTTPConnectionState(Enum):
    """States of an HTTP/1.1 connection."""
    NEW = "new"           # Connection created, not yet used
    ACTIVE = "active"     # Request sent, response being read
    CLOSED = "closed"     # Connection closed, cannot be reused


class HTTP11Connection:
    """
    HTTP/1.1 connection manager.

    Sends one request over a NetworkStream with h11 and exposes the
    response body as a ResponseStream.
    """

    DEFAULT_READ_TIMEOUT = 30.0
    DEFAULT_WRITE_TIMEOUT = 30.0

    def __init__(
        self,
        stream: NetworkStream,
        read_timeout: Optional[float] = DEFAULT_READ_TIMEOUT,
        write_timeout: Optional[float] = DEFAULT_WRITE_TIMEOUT,
    ):
        """
        Initialize HTTP/1.1 connection.

        Args:
            stream: The NetworkStream to use for communication
            read_timeout: Timeout for each read in seconds, None waits forever
            write_timeout: Timeout for write operations in seconds
        """
        self._stream = stream
        self._h11_connection = h11.Connection(h11.CLIENT)
        self._state = HTTPConnectionState.NEW
        self._read_timeout = read_timeout
        self._write_timeout = write_timeout

        self._bytes_sent = 0
        self._bytes_received = 0
        self._started_at: Optional[float] = None

    async def handle_request(self, request: Request) -> Response:
        """
        Send a request and receive the response head.

        Args:
            request: The HTTP request to send

        Returns:
            The HTTP response; its body is streamed from this connection

        Raises:
            ConnectionError: If connection is not available
            ProtocolError: If HTTP protocol error occurs
            TimeoutError: If sending or receiving times out
        """
        if self._state != HTTPConnectionState.NEW:
            raise ConnectionError(f"Connection is {self._state.value}")

        self._state = HTTPConnectionState.ACTIVE
        self._started_at = time.monotonic()

        try:
            await self._send_request(request)
            response = await self._receive_response()
        except BaseException:
            # Also runs on cancellation.
            await self.close()
            raise

        logger.debug(
            f"{request.method.decode()} {request.host.decode()}{request.target.decode()} "
            f"-> {response.status_code} ({time.monotonic() - self._started_at:.3f}s)"
        )
        return response

    async def _send_request(self, request: Request) -> None:
        h11_request = h11.Request(
            method=request.method,
            target=request.target,
            headers=request.headers,
        )
        await self._send_event(h11_request)

        if request.stream is not None:
            async for chunk in request.stream:
                await self._send_event(h11.Data(data=chunk))

        await self._send_event(h11.EndOfMessage())

    async def _send_event(self, event: Any) -> None:
        try:
            data = self._h11_connection.send(event)
        except h11.LocalProtocolError as e:
            raise ProtocolError(str(e), cause=e) from e

        if data:
            try:
                await asyncio.wait_for(self._stream.write(data), timeout=self._write_timeout)
            except asyncio.TimeoutError as e:
                raise TimeoutError("Write timed out", timeout=self._write_timeout) from e
            except OSError as e:
                raise ConnectionError(str(e), cause=e) from e
            self._bytes_sent += len(data)

    async def _next_event(self) -> Any:
        """Pull the next h11 event, reading from the network as needed."""
        while True:
            try:
                event = self._h11_connection.next_event()
            except h11.RemoteProtocolError as e:
                raise ProtocolError(str(e), cause=e) from e

            if event is not h11.NEED_DATA:
                return event

            try:
                data = await asyncio.wait_for(
                    self._stream.read(READ_CHUNK_SIZE),
                    timeout=self._read_timeout,
                )
            except asyncio.TimeoutError as e:
                raise TimeoutError("Read timed out", timeout=self._read_timeout) from e
            except (OSError, RuntimeError) as e:
                raise ConnectionError(str(e), cause=e) from e

            # An empty read tells h11 the peer closed; it decides whether
            # that ends the message or truncates it.
            self._h11_connection.receive_data(data)
            self._bytes_received += len(data)

    async def _receive_response(self) -> Response:
        while True:
            event = await self._next_event()

            if isinstance(event, h11.InformationalResponse):
                continue

            if isinstance(event, h11.Response):
                headers = list(event.headers)
                response_stream = ResponseStream(
                    connection=self,
                    content_length=self._get_content_length(headers),
                    chunked=self._is_chunked(headers),
                )
                return Response.create(
                    status_code=event.status_code,
                    headers=headers,
                    stream=response_stream,
                    extensions={"http_version": event.http_version},
                )

            if isinstance(event, h11.ConnectionClosed):
                raise ProtocolError("Connection closed by server")

    async def _receive_body_chunk(self) -> Optional[bytes]:
        """
        Receive a chunk of response body.

        Returns:
            Chunk of data or None at the end of the body
        """
        while True:
            event = await self._next_event()

            if isinstance(event, h11.Data):
                return bytes(event.data)

            if isinstance(event, h11.EndOfMessage):
                return None

            if isinstance(event, h11.ConnectionClosed):
                raise ProtocolError("Connection closed by server")

    def _get_content_length(self, headers: List[Tuple[bytes, bytes]]) -> Optional[int]:
        for name, value in headers:
            if name.lower() == b"content-length":
                try:
                    return int(value)
                except ValueError:
                    return None
        return None

    def _is_chunked(self, headers: List[Tuple[bytes, bytes]]) -> bool:
        for name, value in headers:
            if name.lower() == b"transfer-encoding" and value.lower() == b"chunked":
                return True
        return False

    async def _response_closed(self) -> None:
        """Called when the response body is consumed or abandoned."""
        await self.close()

    async def close(self) -> None:
        """Close the connection and cleanup resources."""
        if self._state == HTTPConnectionState.CLOSED:
            return
        self._state = HTTPConnectionState.CLOSED
        try:
            await self._stream.aclose()
        except OSError as e:
            logger.warning(f"Error closing connection: {e}")

    @property
    def is_closed(self) -> bool:
        return self._state == HTTPConnectionState.CLOSED

    @property
    def metrics(self) -> Dict[str, Any]:
        """
        Get connection metrics.

        Returns:
            Dictionary with connection metrics
        """
        return {
            "bytes_sent": self._bytes_sent,
            "bytes_received": self._bytes_received,
            "state": self._state.value,
            "started_at": self._started_at,
        }
