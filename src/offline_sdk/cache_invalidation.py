"""
Interceptor to invalidate cached GET responses after successful writes.
Used in the RequestPipeline response interceptor chain.

When a POST/PUT/PATCH/DELETE to a path succeeds, the cached GET responses
for that path (every query variant) and for any configured related paths
are dropped, so the next read goes back to the network.
"""

import logging
from typing import Iterable, Optional

from offline_sdk.cache import CacheStore
from offline_sdk.models import HttpMethod
from offline_sdk.models import Response

logger = logging.getLogger("offline_sdk.interceptors.cache")


class CacheInvalidationInterceptor:
    """
    Response interceptor that clears stale cache entries after mutations.

    Args:
        cache (CacheStore): The pipeline's cache store.
        related (dict[str, Iterable[str]] | None): Extra paths to invalidate
            per mutated path, e.g. ``{"/cart/items": ["/cart"]}``.

    Example:
        pipeline.interceptors.add(CacheInvalidationInterceptor(pipeline.cache))
    """

    name = "cache_invalidation"

    def __init__(
        self,
        cache: CacheStore,
        related: Optional[dict[str, Iterable[str]]] = None,
    ):
        self._cache = cache
        self._related = {path: list(paths) for path, paths in (related or {}).items()}

    async def process_response(self, response: Response) -> Response:
        """
        Clear cached GETs for the mutated path when the write succeeded.
        """
        request = response.request
        if (
            request is None
            or request.method is HttpMethod.GET
            or not response.is_success
        ):
            return response

        for path in [request.path, *self._related.get(request.path, [])]:
            removed = await self._cache.invalidate_prefix(f"{HttpMethod.GET.value}:{path}:")
            if removed:
                logger.info(
                    f"Cleared {removed} cached response(s) for {path} after {request.method.value}"
                )
        return response
