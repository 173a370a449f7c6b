"""
asyncio based network backend.

Opens real TCP and TLS connections with ``asyncio.open_connection``.
"""

import asyncio
import logging
from typing import Any, List, Optional

from .backend import NetworkBackend
from .stream import NetworkStream
from .utils import create_ssl_context, validate_port

logger = logging.getLogger(__name__)


class AsyncioNetworkStream(NetworkStream):
    """NetworkStream over an asyncio StreamReader/StreamWriter pair."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer
        self._closed = False

    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        if self._closed:
            raise RuntimeError("Stream is closed")
        return await self._reader.read(max_bytes or 65536)

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise RuntimeError("Stream is closed")
        self._writer.write(data)
        await self._writer.drain()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing stream: {e}")

    def get_extra_info(self, name: str) -> Optional[Any]:
        return self._writer.get_extra_info(name)

    @property
    def is_closed(self) -> bool:
        return self._closed


class AsyncioNetworkBackend(NetworkBackend):
    """Default backend used by the transport."""

    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None,
    ) -> AsyncioNetworkStream:
        port = validate_port(port)
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port),
            timeout=timeout,
        )
        logger.debug(f"TCP connection established to {host}:{port}")
        return AsyncioNetworkStream(reader, writer)

    async def connect_tls(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None,
        alpn_protocols: Optional[List[str]] = None,
    ) -> AsyncioNetworkStream:
        port = validate_port(port)
        context = create_ssl_context(alpn_protocols or ["http/1.1"])
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port, ssl=context, server_hostname=host),
            timeout=timeout,
        )
        logger.debug(f"TLS connection established to {host}:{port}")
        return AsyncioNetworkStream(reader, writer)
