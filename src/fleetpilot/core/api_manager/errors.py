"""
Error handling for the API Manager package.

This module contains:
- APIErrorType enum for categorizing errors
- APIError dataclass for error information
- ProviderError exception raised by provider adapters
- RetryableAPIError exception for transient errors
- QuotaExceededError exception for attempts refused by the usage tracker
- requires_initialization decorator
- classify_error function for error classification
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import wraps
from typing import Optional

import httpx


class APIErrorType(str, Enum):
    """Types of API errors."""

    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    QUOTA_EXCEEDED = "quota_exceeded"
    NETWORK = "network"
    TIMEOUT = "timeout"
    INVALID_REQUEST = "invalid_request"
    INVALID_RESPONSE = "invalid_response"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


TRANSIENT_ERROR_TYPES = (
    APIErrorType.RATE_LIMIT,
    APIErrorType.NETWORK,
    APIErrorType.TIMEOUT,
    APIErrorType.SERVER_ERROR,
)


@dataclass
class APIError:
    """API error information."""

    error_type: APIErrorType
    message: str
    status_code: Optional[int] = None
    retry_after: Optional[int] = None
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()

    @property
    def is_transient(self) -> bool:
        return self.error_type in TRANSIENT_ERROR_TYPES


class ProviderError(Exception):
    """Raised by a provider adapter when a call cannot produce a result."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        error_type: Optional[APIErrorType] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.error_type = error_type


class RetryableAPIError(Exception):
    """Custom exception to signal a retryable API error."""

    pass


class QuotaExceededError(Exception):
    """Raised when a provider has no call slot left for another attempt."""

    pass


def requires_initialization(func):
    """Decorator to ensure API manager is initialized before method execution."""
    @wraps(func)
    def sync_wrapper(self, *args, **kwargs):
        if not self.is_initialized():
            raise RuntimeError("API manager not initialized")
        return func(self, *args, **kwargs)

    return sync_wrapper


def _classify_status(status_code: int, message: str, retry_after: Optional[int] = None) -> APIError:
    if status_code in (401, 403):
        return APIError(APIErrorType.AUTHENTICATION, message, status_code)
    if status_code == 429:
        return APIError(APIErrorType.RATE_LIMIT, message, status_code, retry_after=retry_after)
    if status_code == 402:
        return APIError(APIErrorType.QUOTA_EXCEEDED, message, status_code)
    if status_code >= 500:
        return APIError(APIErrorType.SERVER_ERROR, message, status_code)
    return APIError(APIErrorType.INVALID_REQUEST, message, status_code)


def classify_error(error: Exception, provider: Optional[str] = None) -> APIError:
    """
    Classify exception into API error type.

    Args:
        error: The exception to classify.
        provider: Optional provider name for context.

    Returns:
        APIError with classified error type.
    """
    message = f"{provider}: {error}" if provider else str(error)

    if isinstance(error, ProviderError) and error.error_type is not None:
        return APIError(error.error_type, message, error.status_code)

    if isinstance(error, httpx.HTTPStatusError):
        retry_after = None
        header = error.response.headers.get("retry-after")
        if header and header.isdigit():
            retry_after = int(header)
        return _classify_status(error.response.status_code, message, retry_after)

    if isinstance(error, httpx.TimeoutException):
        return APIError(APIErrorType.TIMEOUT, message)
    if isinstance(error, httpx.TransportError):
        return APIError(APIErrorType.NETWORK, message)
    if isinstance(error, ValueError):
        # json decoding failures are ValueErrors
        return APIError(APIErrorType.INVALID_RESPONSE, message)

    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        return _classify_status(status_code, message)

    error_str = str(error).lower()
    error_type = type(error).__name__.lower()

    if any(keyword in error_str for keyword in ["unauthorized", "invalid api key", "invalid access key", "authentication"]):
        return APIError(APIErrorType.AUTHENTICATION, message)
    if any(keyword in error_str for keyword in ["rate limit", "too many requests"]):
        return APIError(APIErrorType.RATE_LIMIT, message, retry_after=getattr(error, "retry_after", None))
    if any(keyword in error_str for keyword in ["quota", "billing", "usage limit"]):
        return APIError(APIErrorType.QUOTA_EXCEEDED, message)
    if any(keyword in error_type for keyword in ["timeout", "connection"]):
        return APIError(APIErrorType.TIMEOUT, message)
    if any(keyword in error_str for keyword in ["network", "connection", "dns"]):
        return APIError(APIErrorType.NETWORK, message)

    return APIError(APIErrorType.UNKNOWN, message)


__all__ = [
    "APIErrorType",
    "APIError",
    "ProviderError",
    "RetryableAPIError",
    "QuotaExceededError",
    "TRANSIENT_ERROR_TYPES",
    "requires_initialization",
    "classify_error",
]
