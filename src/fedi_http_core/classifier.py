"""
Error classification for failed API calls.

Maps the HTTP status (or its absence, for network failures) and the
parsed response body of a failed request to exactly one APIError kind.
"""

from typing import Any, Dict, Optional, Type

from typing_extensions import TypedDict

from .exceptions import (
    APIError,
    NotFoundError,
    RateLimitError,
    UnauthorizedError,
)


DEFAULT_ERROR_MESSAGE = "Unexpected error occurred"


class ErrorBody(TypedDict, total=False):
    """Shape of an error entity returned by the REST API."""
    error: str
    error_description: str


_STATUS_TO_ERROR: Dict[int, Type[APIError]] = {
    401: UnauthorizedError,
    404: NotFoundError,
    429: RateLimitError,
}


def extract_error_message(body: Any) -> str:
    """
    Get the human readable message out of an error body.

    Args:
        body: Parsed response body, any type

    Returns:
        The body's ``error`` string, or the fallback message
    """
    if isinstance(body, dict):
        message = body.get("error")
        if isinstance(message, str) and message:
            return message
    return DEFAULT_ERROR_MESSAGE


def classify_error(
    status_code: Optional[int],
    body: Any = None,
    cause: Optional[Exception] = None,
) -> APIError:
    """
    Classify a failed request.

    Args:
        status_code: HTTP status of the response, None for network failures
        body: Parsed response body (JSON object, text, or None)
        cause: Underlying exception, if any

    Returns:
        The APIError instance to raise
    """
    error_class: Type[APIError] = APIError
    if status_code is not None:
        error_class = _STATUS_TO_ERROR.get(status_code, APIError)
    return error_class(
        extract_error_message(body),
        status_code=status_code,
        body=body,
        cause=cause,
    )
