"""
Custom exceptions for the Offline SDK.
Provides meaningful error classes for client consumers.

Hierarchy:
    OfflineAPIError
    ├── TransportError          connection / DNS / protocol failure
    │   └── RequestTimeoutError transport call exceeded its timeout
    ├── HttpError               non-2xx response after interceptors ran
    ├── NoCachedResponse        cache_only request with nothing cached
    └── RefreshFailure          token refresh returned None or raised
"""

from typing import Any, Optional


class OfflineAPIError(Exception):
    """
    Base exception for all SDK-level API failures.

    Args:
        message (str): Short explanation of the error.
        details (Any | None): Optional structured details (e.g., validation errors).
    """

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.details = details


class TransportError(OfflineAPIError):
    """The transport could not complete the HTTP exchange."""


class RequestTimeoutError(TransportError, TimeoutError):
    """The transport call did not finish within the request timeout."""


class HttpError(OfflineAPIError):
    """
    The server answered with a non-2xx status.

    Args:
        status (int): HTTP status code.
        body (Any): Parsed response payload (JSON when possible, else text).
        headers (dict | None): Response headers.
    """

    def __init__(self, status: int, body: Any = None, headers: Optional[dict] = None):
        super().__init__(f"HTTP {status}", details=body)
        self.status = status
        self.body = body
        self.headers = headers or {}


class NoCachedResponse(OfflineAPIError):
    """A cache_only request found no live entry for its cache key."""

    def __init__(self, key: str):
        super().__init__(f"No cached response for {key}")
        self.key = key


class RefreshFailure(OfflineAPIError):
    """The token refresh callback returned no token or raised."""
