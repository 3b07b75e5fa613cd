"""
Aiohttp transport implementation for Offline SDK.

This module provides AiohttpTransport, an alternative async HTTP client for the SDK.
Aiohttp is a mature async HTTP client with connection pooling and
comprehensive timeout handling.
"""

import asyncio
from typing import Optional

import aiohttp

from offline_sdk.exceptions import RequestTimeoutError
from offline_sdk.exceptions import TransportError

from .base import BaseTransport
from .base import TransportResponse


class AiohttpTransport(BaseTransport):
    """
    Async transport implementation using aiohttp.ClientSession.
    """

    def __init__(self, timeout: float = 15.0):
        self._timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def send(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        body: Optional[bytes] = None,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        # Create session if not exists
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )

        timeout_obj = aiohttp.ClientTimeout(total=timeout or self._timeout)
        try:
            async with self._session.request(
                method=method,
                url=url,
                headers=headers,
                data=body,
                timeout=timeout_obj,
            ) as response:
                content = await response.read()
                return TransportResponse(response.status, dict(response.headers), content)
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(f"{method} {url} timed out") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

    async def close(self):
        if self._session:
            await self._session.close()
