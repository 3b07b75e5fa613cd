import json
from typing import Any
from typing import Optional


class TransportResponse:
    """
    Unified response wrapper that handles differences between HTTP clients.
    Provides a consistent interface regardless of the underlying transport:
    the body is always fully read into `content` before the transport returns.
    """

    def __init__(
        self,
        status_code: int,
        headers: Optional[dict[str, str]] = None,
        content: bytes = b"",
    ):
        self.status_code = status_code
        self.headers = dict(headers or {})
        self.content = content

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.content)

    def __repr__(self) -> str:
        return f"TransportResponse(status_code={self.status_code}, bytes={len(self.content)})"


class BaseTransport:
    """
    Abstract transport layer interface for Offline SDK.
    All HTTP client backends should inherit from this class.

    Implementations perform exactly one HTTP exchange per `send()` call and
    report connection-level failures as `TransportError` (or
    `RequestTimeoutError` for timeouts). HTTP error statuses are not
    failures at this level.

    Supported transports:
    - httpx: Native async HTTP client
    - aiohttp: Native async HTTP client
    - requests: Sync HTTP client wrapped in async interface
    """

    async def send(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        body: Optional[bytes] = None,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        """
        Async send method for all transports.
        Override this method in transport implementations.
        """
        raise NotImplementedError(
            "Transport implementations must override this method."
        )

    async def close(self):
        """Release connections held by the transport."""
