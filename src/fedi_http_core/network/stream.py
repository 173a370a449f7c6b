"""
Byte stream abstraction the HTTP/1.1 connection reads from and writes to.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class NetworkStream(ABC):
    """
    One open connection to a server.

    ``read`` returns ``b""`` once the peer has closed its side; h11 uses
    that to tell a complete body from a truncated one. I/O failures
    surface as OSError, use after ``aclose`` as RuntimeError.
    """

    @abstractmethod
    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        """Read up to ``max_bytes``, waiting until something arrives."""

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Write all of ``data``."""

    @abstractmethod
    async def aclose(self) -> None:
        ...

    @abstractmethod
    def get_extra_info(self, name: str) -> Optional[Any]:
        """
        Transport details such as ``"peername"``, ``"sockname"`` or
        ``"ssl_object"``; None when unknown.
        """

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        ...
