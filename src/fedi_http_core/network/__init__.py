"""
Network backend components for fedi_http_core.

This module provides the low-level networking abstractions:
backends that open connections and the streams they return.
"""

from .backend import NetworkBackend
from .stream import NetworkStream
from .asyncio_backend import AsyncioNetworkBackend, AsyncioNetworkStream
from .mock import MockNetworkBackend, MockNetworkStream
from .utils import (
    create_ssl_context,
    parse_url,
    format_host_header,
    validate_port,
)

__all__ = [
    "NetworkBackend",
    "NetworkStream",
    "AsyncioNetworkBackend",
    "AsyncioNetworkStream",
    "MockNetworkBackend",
    "MockNetworkStream",
    "create_ssl_context",
    "parse_url",
    "format_host_header",
    "validate_port",
]
