"""
Connection factory abstraction.

The transport opens a fresh connection per request through a
NetworkBackend, choosing TCP or TLS from the URL scheme. Tests swap in
MockNetworkBackend to script what each connection returns.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .stream import NetworkStream


class NetworkBackend(ABC):
    """Opens NetworkStreams. Failures raise OSError or asyncio.TimeoutError."""

    @abstractmethod
    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None,
    ) -> NetworkStream:
        """Open a plain connection to ``host:port``."""

    @abstractmethod
    async def connect_tls(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None,
        alpn_protocols: Optional[List[str]] = None,
    ) -> NetworkStream:
        """
        Open a TLS connection to ``host:port``.

        Args:
            host: Server name, verified against the certificate
            port: Port number
            timeout: Covers both connect and handshake
            alpn_protocols: Protocols to offer, ``["http/1.1"]`` if omitted
        """
