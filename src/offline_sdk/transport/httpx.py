from typing import Optional

import httpx

from offline_sdk.exceptions import RequestTimeoutError
from offline_sdk.exceptions import TransportError

from .base import BaseTransport
from .base import TransportResponse


class HttpxTransport(BaseTransport):
    """
    Async transport implementation using httpx.AsyncClient.
    """

    def __init__(self, timeout: float = 15.0, client: Optional[httpx.AsyncClient] = None):
        self._timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=self._timeout)

    async def send(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        body: Optional[bytes] = None,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        try:
            response = await self._client.request(
                method=method,
                url=url,
                headers=headers,
                content=body,
                timeout=timeout or self._timeout,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"{method} {url} timed out") from e
        except httpx.TransportError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        return TransportResponse(
            response.status_code, dict(response.headers), response.content
        )

    async def close(self):
        await self._client.aclose()
