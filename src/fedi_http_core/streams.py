"""
Request and response bodies.

Request bodies are small JSON or form payloads held in memory. Response bodies
are pulled off the connection one chunk at a time, so a long-lived event
stream is only read as fast as its consumer iterates it.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterable, AsyncIterator, Optional, TYPE_CHECKING

from .exceptions import HTTPCoreError, StreamError

if TYPE_CHECKING:
    from .http11 import HTTP11Connection


class StreamInterface(ABC):
    """An async iterable body that can be closed early."""

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[bytes]:
        ...

    @abstractmethod
    async def aclose(self) -> None:
        ...

    async def aread(self) -> bytes:
        """Consume the remaining body."""
        return await read_stream_to_bytes(self)


class RequestStream(StreamInterface):
    """In-memory request body, sent as a single chunk."""

    def __init__(self, payload: bytes) -> None:
        self._payload = payload
        self._closed = False

    async def _chunks(self) -> AsyncIterator[bytes]:
        if self._payload:
            yield self._payload

    def __aiter__(self) -> AsyncIterator[bytes]:
        if self._closed:
            raise StreamError("Cannot iterate over closed stream")
        return self._chunks()

    async def aclose(self) -> None:
        self._closed = True

    @property
    def content_length(self) -> int:
        return len(self._payload)

    @property
    def closed(self) -> bool:
        return self._closed


class ResponseStream(StreamInterface):
    """
    Body of a response still being received.

    Iteration ends at the end of the message. Reaching the end, failing
    or calling ``aclose()`` releases the connection exactly once.
    """

    def __init__(
        self,
        connection: "HTTP11Connection",
        content_length: Optional[int] = None,
        chunked: bool = False,
    ) -> None:
        """
        Args:
            connection: Connection the body is read from
            content_length: Declared length, checked while reading
            chunked: Whether the body uses chunked transfer encoding
        """
        if content_length is not None and content_length < 0:
            raise ValueError("content_length must be non-negative")

        self._connection = connection
        self._content_length = content_length
        self._chunked = chunked
        self._closed = False
        self._bytes_read = 0

    def __aiter__(self) -> "ResponseStream":
        if self._closed:
            raise StreamError("Cannot iterate over closed stream")
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StopAsyncIteration

        try:
            chunk = await self._connection._receive_body_chunk()
        except HTTPCoreError as e:
            await self.aclose()
            raise StreamError(f"Error reading from stream: {e.message}", cause=e) from e

        if chunk is None:
            await self.aclose()
            raise StopAsyncIteration

        self._bytes_read += len(chunk)
        if self._content_length is not None and self._bytes_read > self._content_length:
            await self.aclose()
            raise StreamError(
                f"Read more bytes ({self._bytes_read}) than "
                f"content_length ({self._content_length})"
            )
        return chunk

    async def aclose(self) -> None:
        if not self._closed:
            self._closed = True
            await self._connection._response_closed()

    @property
    def chunked(self) -> bool:
        return self._chunked

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def bytes_read(self) -> int:
        return self._bytes_read


def create_request_stream(payload: bytes) -> RequestStream:
    """Wrap an encoded request body."""
    return RequestStream(payload)


async def read_stream_to_bytes(stream: AsyncIterable[bytes]) -> bytes:
    """Concatenate every chunk of ``stream``."""
    chunks = []
    async for chunk in stream:
        chunks.append(chunk)
    return b"".join(chunks)
