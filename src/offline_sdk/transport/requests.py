import asyncio
from typing import Optional

import requests

from offline_sdk.exceptions import RequestTimeoutError
from offline_sdk.exceptions import TransportError

from .base import BaseTransport
from .base import TransportResponse


class RequestsTransport(BaseTransport):
    """
    Sync transport implementation using requests.Session.

    This transport wraps the synchronous requests library in an async interface
    to provide compatibility with the async-first SDK design.

    Note: This is a compatibility layer for users who need to use requests
    in an async context. For best performance, use httpx or aiohttp.
    """

    def __init__(self, timeout: float = 15.0):
        self._timeout = timeout
        self._session = requests.Session()

    async def send(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        body: Optional[bytes] = None,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        """
        Async wrapper around synchronous requests.

        This method runs the synchronous requests call in a thread pool
        to avoid blocking the event loop.
        """
        loop = asyncio.get_running_loop()

        def make_request() -> requests.Response:
            return self._session.request(
                method=method,
                url=url,
                headers=headers or {},
                data=body,
                timeout=timeout or self._timeout,
            )

        try:
            response = await loop.run_in_executor(None, make_request)
        except requests.Timeout as e:
            raise RequestTimeoutError(f"{method} {url} timed out") from e
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        return TransportResponse(
            response.status_code, dict(response.headers), response.content
        )

    async def close(self):
        """
        Async wrapper for closing the session.
        """
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._session.close)
