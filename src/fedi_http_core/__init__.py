"""
fedi_http_core - client core for federated social-networking APIs

Cursor based pagination and server-sent event streaming for
Mastodon-compatible REST and streaming APIs, on top of a small
HTTP/1.1 transport.
"""

__version__ = "0.1.0"
__author__ = "Developer"
__email__ = "dev@example.com"

# Import main components for easy access
from .http_primitives import FormFile, Request, Response
from .http11 import HTTP11Connection
from .transport import HTTPTransport
from .classifier import classify_error
from .exceptions import (
    HTTPCoreError,
    ConnectionError,
    ProtocolError,
    StreamError,
    ErrorKind,
    APIError,
    UnauthorizedError,
    NotFoundError,
    RateLimitError,
    NotSupportedError,
)
from .links import NavigationLink, parse_link_header
from .paginator import Paginator, PageCursor
from .decoder import EventFrame, EventStreamDecoder
from .session import ConnectionState, StreamSession
from .config import ClientConfig
from .versioning import since
from .accounts import AccountRepository
from .client import Client, StreamingChannels, login

__all__ = [
    "Request",
    "Response",
    "FormFile",
    "HTTP11Connection",
    "HTTPTransport",
    "classify_error",
    "HTTPCoreError",
    "ConnectionError",
    "ProtocolError",
    "StreamError",
    "ErrorKind",
    "APIError",
    "UnauthorizedError",
    "NotFoundError",
    "RateLimitError",
    "NotSupportedError",
    "NavigationLink",
    "parse_link_header",
    "Paginator",
    "PageCursor",
    "EventFrame",
    "EventStreamDecoder",
    "ConnectionState",
    "StreamSession",
    "ClientConfig",
    "since",
    "AccountRepository",
    "Client",
    "StreamingChannels",
    "login",
]
