"""
Transport layer for Offline SDK.

This module provides a unified transport interface that abstracts different HTTP clients.
The SDK supports multiple transport backends for flexibility:

- httpx: Modern async HTTP client (default, recommended)
- aiohttp: Async HTTP client with advanced features
- requests: Sync HTTP client wrapped in async interface

All transports implement the same interface, making them interchangeable.
Hosts may also pass any object with a compatible async `send()` method.
"""

from .base import BaseTransport
from .base import TransportResponse
from .httpx import HttpxTransport


def get_transport(name: str, timeout: float = 15.0) -> BaseTransport:
    """
    Get transport instance by name.

    Available transports:
    - httpx: Async HTTP client (default)
    - aiohttp: Async HTTP client
    - requests: Sync HTTP client (wrapped in async interface)
    """
    name = name.lower()
    if name == "httpx":
        return HttpxTransport(timeout)
    elif name == "aiohttp":
        try:
            from .aiohttp import AiohttpTransport

            return AiohttpTransport(timeout)
        except ImportError as err:
            raise ImportError(
                "aiohttp transport requires aiohttp package. Install with: pip install 'offline-sdk[aiohttp]'"
            ) from err
    elif name == "requests":
        try:
            from .requests import RequestsTransport

            return RequestsTransport(timeout)
        except ImportError as err:
            raise ImportError(
                "requests transport requires requests package. Install with: pip install 'offline-sdk[requests]'"
            ) from err
    else:
        raise ValueError(
            f"Unknown transport: {name}. Available: httpx, aiohttp, requests"
        )


__all__ = ["BaseTransport", "TransportResponse", "HttpxTransport", "get_transport"]
