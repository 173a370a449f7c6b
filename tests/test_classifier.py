"""
Tests for the error classifier.
"""

import pytest

from fedi_http_core.classifier import (
    DEFAULT_ERROR_MESSAGE,
    classify_error,
    extract_error_message,
)
from fedi_http_core.exceptions import (
    APIError,
    ErrorKind,
    NotFoundError,
    RateLimitError,
    UnauthorizedError,
)


class TestClassifyError:
    """Status to kind mapping."""

    @pytest.mark.parametrize(
        "status, error_class, kind",
        [
            (401, UnauthorizedError, ErrorKind.UNAUTHORIZED),
            (404, NotFoundError, ErrorKind.NOT_FOUND),
            (429, RateLimitError, ErrorKind.RATE_LIMITED),
        ],
    )
    def test_known_statuses(self, status, error_class, kind):
        error = classify_error(status, {"error": "nope"})
        assert type(error) is error_class
        assert error.kind is kind
        assert error.status_code == status

    @pytest.mark.parametrize("status", [400, 403, 422, 500, 502, 503])
    def test_other_statuses_are_generic(self, status):
        error = classify_error(status, {"error": "nope"})
        assert type(error) is APIError
        assert error.kind is ErrorKind.GENERIC

    def test_network_failure_is_generic(self):
        cause = OSError("Connection refused")
        error = classify_error(None, None, cause=cause)
        assert type(error) is APIError
        assert error.kind is ErrorKind.GENERIC
        assert error.status_code is None
        assert error.cause is cause
        assert error.message == DEFAULT_ERROR_MESSAGE

    def test_message_from_body(self):
        error = classify_error(401, {"error": "The access token is invalid"})
        assert error.message == "The access token is invalid"
        assert error.body == {"error": "The access token is invalid"}

    def test_fallback_message(self):
        assert classify_error(404, {}).message == DEFAULT_ERROR_MESSAGE
        assert classify_error(500, "<html>Bad gateway</html>").message == DEFAULT_ERROR_MESSAGE
        assert classify_error(429, None).message == DEFAULT_ERROR_MESSAGE

    def test_is_pure(self):
        first = classify_error(429, {"error": "slow down"})
        second = classify_error(429, {"error": "slow down"})
        assert first is not second
        assert (type(first), first.message, first.status_code) == (
            type(second), second.message, second.status_code,
        )


class TestExtractErrorMessage:
    """Error body handling."""

    def test_ignores_non_string_error(self):
        assert extract_error_message({"error": 42}) == DEFAULT_ERROR_MESSAGE

    def test_ignores_empty_error(self):
        assert extract_error_message({"error": ""}) == DEFAULT_ERROR_MESSAGE

    def test_list_body(self):
        assert extract_error_message(["error"]) == DEFAULT_ERROR_MESSAGE
