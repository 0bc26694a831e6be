"""
Tests for error classification in api_manager.errors module.
"""

import httpx
import pytest

from fleetpilot.core.api_manager.errors import (
    APIErrorType,
    ProviderError,
    classify_error,
    requires_initialization,
)


def make_status_error(status_code, headers=None):
    request = httpx.Request("GET", "https://api.example.test/resource")
    response = httpx.Response(status_code, headers=headers, request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


class TestClassifyHTTPStatus:
    """Tests for httpx status errors."""

    @pytest.mark.parametrize(
        "status_code, expected",
        [
            (401, APIErrorType.AUTHENTICATION),
            (403, APIErrorType.AUTHENTICATION),
            (402, APIErrorType.QUOTA_EXCEEDED),
            (429, APIErrorType.RATE_LIMIT),
            (500, APIErrorType.SERVER_ERROR),
            (503, APIErrorType.SERVER_ERROR),
            (400, APIErrorType.INVALID_REQUEST),
            (404, APIErrorType.INVALID_REQUEST),
        ],
    )
    def test_status_codes(self, status_code, expected):
        """Test mapping of HTTP status codes to error types."""
        api_error = classify_error(make_status_error(status_code), "WeatherStack")

        assert api_error.error_type == expected
        assert api_error.status_code == status_code
        assert api_error.message.startswith("WeatherStack: ")

    def test_retry_after_header(self):
        """Test that Retry-After is captured for rate limits."""
        api_error = classify_error(make_status_error(429, headers={"Retry-After": "30"}))

        assert api_error.retry_after == 30
        assert api_error.is_transient


class TestClassifyTransportErrors:
    """Tests for httpx transport failures."""

    def test_timeout(self):
        error = httpx.ReadTimeout("timed out")

        assert classify_error(error).error_type == APIErrorType.TIMEOUT

    def test_connect_error(self):
        error = httpx.ConnectError("connection refused")

        assert classify_error(error).error_type == APIErrorType.NETWORK

    def test_json_decode_error_is_invalid_response(self):
        """Test that ValueError from response.json() is an invalid response."""
        assert classify_error(ValueError("Expecting value")).error_type == APIErrorType.INVALID_RESPONSE


class TestClassifyProviderError:
    """Tests for ProviderError and generic exceptions."""

    def test_explicit_error_type_wins(self):
        """Test that an adapter-assigned type is kept."""
        error = ProviderError("bad key", provider="ipapi", error_type=APIErrorType.AUTHENTICATION)

        api_error = classify_error(error, "ipapi")

        assert api_error.error_type == APIErrorType.AUTHENTICATION
        assert not api_error.is_transient

    def test_status_code_attribute(self):
        """Test that an exception carrying a status code is classified by it."""
        error = ProviderError("throttled", status_code=429)

        assert classify_error(error).error_type == APIErrorType.RATE_LIMIT

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("Unauthorized request", APIErrorType.AUTHENTICATION),
            ("Invalid API key supplied", APIErrorType.AUTHENTICATION),
            ("Too many requests", APIErrorType.RATE_LIMIT),
            ("Monthly quota reached", APIErrorType.QUOTA_EXCEEDED),
            ("DNS lookup failed", APIErrorType.NETWORK),
            ("something odd", APIErrorType.UNKNOWN),
        ],
    )
    def test_keyword_fallback(self, message, expected):
        """Test keyword based classification of plain exceptions."""
        assert classify_error(RuntimeError(message)).error_type == expected

    def test_timeout_by_exception_name(self):
        """Test that built-in timeout exceptions are recognized."""
        assert classify_error(TimeoutError("slow")).error_type == APIErrorType.TIMEOUT


class TestRequiresInitialization:
    """Tests for the initialization guard."""

    def test_raises_when_not_initialized(self):
        class Dummy:
            def __init__(self, ready):
                self._ready = ready

            def is_initialized(self):
                return self._ready

            @requires_initialization
            def work(self):
                return "done"

        with pytest.raises(RuntimeError, match="not initialized"):
            Dummy(False).work()
        assert Dummy(True).work() == "done"
