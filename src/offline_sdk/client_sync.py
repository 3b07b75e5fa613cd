"""
Synchronous wrapper for RequestPipeline.

This module provides a synchronous interface on top of the async RequestPipeline
to support callers that cannot run an event loop themselves.
"""

import asyncio
from typing import Any

from .client import RequestPipeline
from .models import Request
from .models import Response


class RequestPipelineSync:
    """
    Synchronous wrapper for RequestPipeline.

    The wrapper owns a private event loop that lives as long as the wrapper,
    so the transport's connection pool and the cache survive between calls.
    All constructor arguments are forwarded to RequestPipeline.

    The loop only runs while a method is executing. A stale-while-revalidate
    hit returns at once and its background refresh advances only during later
    calls; call `join_background()` to let it finish, since `close()` cancels
    whatever is still pending.

    Example:
        with RequestPipelineSync(settings) as api:
            products = api.get("/products")
            api.post("/cart/items", {"product_id": 42})
    """

    def __init__(self, *args: Any, **kwargs: Any):
        self._loop = asyncio.new_event_loop()
        self._async_client = RequestPipeline(*args, **kwargs)

    @property
    def pipeline(self) -> RequestPipeline:
        return self._async_client

    def _run(self, coro):
        return self._loop.run_until_complete(coro)

    def request(self, request: Request) -> Response:
        """
        Synchronous request execution.

        Raises:
            OfflineAPIError: On API error
        """
        return self._run(self._async_client.request(request))

    def get(self, path: str, **kwargs: Any) -> Response:
        return self._run(self._async_client.get(path, **kwargs))

    def post(self, path: str, body: Any = None, **kwargs: Any) -> Response:
        return self._run(self._async_client.post(path, body, **kwargs))

    def put(self, path: str, body: Any = None, **kwargs: Any) -> Response:
        return self._run(self._async_client.put(path, body, **kwargs))

    def patch(self, path: str, body: Any = None, **kwargs: Any) -> Response:
        return self._run(self._async_client.patch(path, body, **kwargs))

    def delete(self, path: str, **kwargs: Any) -> Response:
        return self._run(self._async_client.delete(path, **kwargs))

    def clear_cache(self) -> None:
        self._run(self._async_client.clear_cache())

    def join_background(self) -> None:
        """Block until pending stale-while-revalidate refreshes are done."""
        self._run(self._async_client.join_background())

    def close(self):
        """
        Synchronous cleanup of client resources.
        """
        if self._loop.is_closed():
            return
        try:
            self._run(self._async_client.aclose())
        finally:
            self._loop.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
