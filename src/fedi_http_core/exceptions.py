"""
Custom exceptions for fedi_http_core.

This module defines the exception hierarchy used throughout
the library. Transport-level failures (connection, protocol, timeout,
stream) stay inside the transport; callers only ever see the classified
API errors.
"""

from enum import Enum
from typing import Any, Optional


class HTTPCoreError(Exception):
    """Base exception for all fedi_http_core errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConnectionError(HTTPCoreError):
    """Raised when there's an error with network connections."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Connection error: {message}", cause)


class ProtocolError(HTTPCoreError):
    """Raised when there's an error with HTTP protocol handling."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Protocol error: {message}", cause)


class TimeoutError(HTTPCoreError):
    """Raised when an operation times out."""

    def __init__(self, message: str, timeout: Optional[float] = None) -> None:
        if timeout is not None:
            message = f"{message} (timeout: {timeout}s)"
        super().__init__(f"Timeout error: {message}")


class StreamError(HTTPCoreError):
    """Raised when there's an error with stream operations."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Stream error: {message}", cause)


class ErrorKind(Enum):
    """Kinds a failed API call is classified into."""
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    GENERIC = "generic"


class APIError(HTTPCoreError):
    """
    A classified failure of an API call.

    Created once per failed request by the error classifier and
    propagated to the caller unchanged.
    """

    kind = ErrorKind.GENERIC

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, cause)
        self.status_code = status_code
        self.body = body

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, "
            f"status_code={self.status_code!r}, message={self.message!r})"
        )


class UnauthorizedError(APIError):
    """Raised when the credential is missing or rejected (HTTP 401)."""
    kind = ErrorKind.UNAUTHORIZED


class NotFoundError(APIError):
    """Raised when the requested resource does not exist (HTTP 404)."""
    kind = ErrorKind.NOT_FOUND


class RateLimitError(APIError):
    """Raised when the server throttles the client (HTTP 429)."""
    kind = ErrorKind.RATE_LIMITED


class NotSupportedError(HTTPCoreError):
    """Raised when an endpoint is not available on the server's version."""

    def __init__(self, message: str, required: str, actual: str) -> None:
        super().__init__(message)
        self.required = required
        self.actual = actual
