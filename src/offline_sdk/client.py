"""
Async-first, offline-aware API client.

This module provides the RequestPipeline class that mediates every network call
made by the application. Features include:

- Five cache strategies (network_first, cache_first, network_only, cache_only,
  stale_while_revalidate) with per-request overrides
- Ordered request/response interceptor chains
- Single-flight token refresh on 401 with exactly one retry
- Multiple HTTP transport backends (httpx, aiohttp, requests)
- Per-request timeouts surfaced as RequestTimeoutError
- Bulk cancellation of in-flight requests by tag
- Optional backoff retries for GET transport failures

Example usage:
    from offline_sdk import RequestPipeline, OfflineAPISettings

    settings = OfflineAPISettings(base_url="https://api.example.com")
    async with RequestPipeline(settings, token_provider=get_token) as api:
        products = await api.get("/products", cache_strategy="cache_first")
        print(products.payload, products.from_cache)
"""

import asyncio
import json
import logging
import time
from http import HTTPStatus
from typing import Any, Awaitable, Callable, Optional, Union
from urllib.parse import urlencode

from tenacity import AsyncRetrying
from tenacity import retry_if_exception_type
from tenacity import stop_after_attempt
from tenacity import wait_exponential

from offline_sdk.auth import RefreshCallback
from offline_sdk.auth import TokenRefreshCoordinator
from offline_sdk.cache import CacheStore
from offline_sdk.config import OfflineAPISettings
from offline_sdk.config import RequestOptions
from offline_sdk.exceptions import HttpError
from offline_sdk.exceptions import NoCachedResponse
from offline_sdk.exceptions import OfflineAPIError
from offline_sdk.exceptions import RefreshFailure
from offline_sdk.exceptions import RequestTimeoutError
from offline_sdk.exceptions import TransportError
from offline_sdk.interceptors import InterceptorChain
from offline_sdk.interceptors import maybe_await
from offline_sdk.models import CacheStats
from offline_sdk.models import CacheStrategy
from offline_sdk.models import HttpMethod
from offline_sdk.models import Request
from offline_sdk.models import Response
from offline_sdk.models import cache_key
from offline_sdk.transport import get_transport
from offline_sdk.transport.base import BaseTransport
from offline_sdk.transport.base import TransportResponse

logger = logging.getLogger("offline_sdk.client")

TokenProvider = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]
NetworkErrorHook = Callable[[Request], Union[None, Awaitable[None]]]


class RequestPipeline:
    """
    The client facade: every API call of the application goes through here.

    Processing order for `request()`:
        1. request interceptors, sequentially, in registration order
        2. option resolution (strategy, TTL, timeout, max retries)
        3. cache strategy branch, possibly answering from cache
        4. transport call with default/per-request headers and bearer token
        5. on 401: single-flight token refresh, then exactly one retry
        6. response interceptors, sequentially
        7. cache write for successful GET responses
        8. HttpError for any non-2xx status

    Args:
        settings (OfflineAPISettings | None): SDK configuration
        transport (BaseTransport | None): Transport backend; defaults to
            `get_transport(settings.transport)`
        cache (CacheStore | None): Response cache; defaults to an in-memory store
        interceptors (InterceptorChain | None): Request/response interceptors
        token_provider (TokenProvider | None): Returns the current access token
        on_refresh_token (RefreshCallback | None): Returns a new access token
            after a 401, or None when refresh is impossible
        on_network_error (NetworkErrorHook | None): Called with the request
            when a non-GET request fails at the transport level, e.g. to feed
            an offline retry queue

    Example:
        pipeline = RequestPipeline(
            settings=OfflineAPISettings(base_url="https://api.example.com"),
            token_provider=manager.get_token,
            on_refresh_token=manager.refresh_token,
            on_network_error=offline_queue.enqueue,
        )
        pipeline.interceptors.add(LoggingInterceptor())

        response = await pipeline.request(Request(method="GET", path="/products"))
        await pipeline.aclose()
    """

    def __init__(
        self,
        settings: Optional[OfflineAPISettings] = None,
        transport: Optional[BaseTransport] = None,
        cache: Optional[CacheStore] = None,
        interceptors: Optional[InterceptorChain] = None,
        token_provider: Optional[TokenProvider] = None,
        on_refresh_token: Optional[RefreshCallback] = None,
        on_network_error: Optional[NetworkErrorHook] = None,
    ):
        self.settings = settings if settings is not None else OfflineAPISettings()
        self.transport = (
            transport
            if transport is not None
            else get_transport(self.settings.transport, timeout=self.settings.timeout)
        )
        self.cache = (
            cache
            if cache is not None
            else CacheStore(max_entries=self.settings.cache_max_entries)
        )
        self.interceptors = interceptors if interceptors is not None else InterceptorChain()
        self.token_provider = token_provider
        self.refresher = TokenRefreshCoordinator(on_refresh_token)
        self.on_network_error = on_network_error

        self._revalidating: dict[str, asyncio.Task] = {}
        self._tagged: dict[str, set[asyncio.Task]] = {}

    async def request(self, request: Request) -> Response:
        """
        Execute `request` through the full pipeline.

        Returns:
            Response: fresh (`from_cache=False`) or cached (`from_cache=True`)

        Raises:
            HttpError: The final response status was not 2xx
            TransportError: The network call failed and no cache could answer
            RequestTimeoutError: The network call exceeded its timeout
            NoCachedResponse: cache_only request with nothing cached
            asyncio.CancelledError: The request was cancelled, e.g. by tag
        """
        if request.tag is None:
            return await self._execute(request)

        tag = request.tag
        task = asyncio.ensure_future(self._execute(request))
        tasks = self._tagged.setdefault(tag, set())
        tasks.add(task)
        try:
            return await task
        finally:
            tasks.discard(task)
            if not tasks and self._tagged.get(tag) is tasks:
                del self._tagged[tag]

    async def get(self, path: str, **kwargs: Any) -> Response:
        return await self.request(Request(method=HttpMethod.GET, path=path, **kwargs))

    async def post(self, path: str, body: Any = None, **kwargs: Any) -> Response:
        return await self.request(
            Request(method=HttpMethod.POST, path=path, body=body, **kwargs)
        )

    async def put(self, path: str, body: Any = None, **kwargs: Any) -> Response:
        return await self.request(
            Request(method=HttpMethod.PUT, path=path, body=body, **kwargs)
        )

    async def patch(self, path: str, body: Any = None, **kwargs: Any) -> Response:
        return await self.request(
            Request(method=HttpMethod.PATCH, path=path, body=body, **kwargs)
        )

    async def delete(self, path: str, **kwargs: Any) -> Response:
        return await self.request(
            Request(method=HttpMethod.DELETE, path=path, **kwargs)
        )

    def cancel_by_tag(self, tag: str) -> int:
        """
        Cancel every in-flight request carrying `tag`.

        Returns:
            int: Number of requests cancelled
        """
        cancelled = 0
        for task in list(self._tagged.get(tag, ())):
            if not task.done():
                task.cancel()
                cancelled += 1
        if cancelled:
            logger.info(f"Cancelled {cancelled} request(s) tagged '{tag}'")
        return cancelled

    async def invalidate_cache(
        self,
        path: str,
        query: Optional[dict] = None,
        method: Union[HttpMethod, str] = HttpMethod.GET,
    ) -> bool:
        """Drop the cached response for one method/path/query combination."""
        return await self.cache.invalidate(cache_key(method, path, query))

    async def invalidate_path(self, path: str) -> int:
        """Drop the cached GET responses for `path`, whatever their query."""
        return await self.cache.invalidate_prefix(f"{HttpMethod.GET.value}:{path}:")

    async def clear_cache(self) -> None:
        await self.cache.clear()

    async def cache_stats(self) -> CacheStats:
        return await self.cache.stats()

    async def join_background(self) -> None:
        """Wait until every stale-while-revalidate refresh has finished."""
        while self._revalidating:
            await asyncio.gather(
                *list(self._revalidating.values()), return_exceptions=True
            )

    async def aclose(self) -> None:
        """
        Cancel background revalidations and close the transport.
        """
        tasks = list(self._revalidating.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        close = getattr(self.transport, "close", None)
        if close is not None:
            await maybe_await(close())

    async def __aenter__(self) -> "RequestPipeline":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # === pipeline stages ===

    async def _execute(self, request: Request) -> Response:
        request = await self.interceptors.run_request(request)
        options = self.settings.resolve(request)
        try:
            return await self._dispatch(request, options)
        except OfflineAPIError as e:
            error = await self.interceptors.run_error(e, request)
            if error is e:
                raise
            raise error from e

    async def _dispatch(self, request: Request, options: RequestOptions) -> Response:
        key = request.cache_key
        strategy = options.cache_strategy

        if strategy is CacheStrategy.CACHE_ONLY:
            cached = await self._cached(request)
            if cached is None:
                raise NoCachedResponse(key)
            return cached

        if strategy in (CacheStrategy.CACHE_FIRST, CacheStrategy.STALE_WHILE_REVALIDATE):
            cached = await self._cached(request)
            if cached is not None:
                if strategy is CacheStrategy.STALE_WHILE_REVALIDATE:
                    self._revalidate(request, options)
                return cached
            if strategy is CacheStrategy.CACHE_FIRST:
                # Cache is known empty: no fallback on failure
                return await self._fetch(request, options)
            strategy = CacheStrategy.NETWORK_FIRST

        if strategy is CacheStrategy.NETWORK_ONLY:
            return await self._fetch(request, options)

        try:
            return await self._fetch(request, options)
        except TransportError as e:
            cached = await self._cached(request)
            if cached is None:
                raise
            logger.info(f"Network failed for {key} ({e}), serving cached response")
            return cached

    async def _cached(self, request: Request) -> Optional[Response]:
        cached = await self.cache.get(request.cache_key)
        if cached is None:
            return None
        return cached.model_copy(update={"request": request})

    async def _fetch(self, request: Request, options: RequestOptions) -> Response:
        token = await maybe_await(self.token_provider()) if self.token_provider else None
        refresh_error: Optional[RefreshFailure] = None
        try:
            response = await self._send(request, options, token)
            if response.status == HTTPStatus.UNAUTHORIZED and self.refresher.enabled:
                try:
                    token = await self.refresher.refresh()
                except RefreshFailure as e:
                    refresh_error = e
                    logger.warning(
                        f"Token refresh failed for {request.method.value} {request.path}: {e}"
                    )
                else:
                    logger.debug(
                        f"Retrying {request.method.value} {request.path} with refreshed token"
                    )
                    response = await self._send(request, options, token)
        except TransportError:
            if request.method is not HttpMethod.GET:
                await self._notify_network_error(request)
            raise

        response = await self.interceptors.run_response(response)

        if response.is_success and request.method is HttpMethod.GET:
            await self._store(request.cache_key, response, options.cache_ttl)

        if not response.is_success:
            raise HttpError(
                response.status, response.payload, response.headers
            ) from refresh_error
        return response

    async def _send(
        self, request: Request, options: RequestOptions, token: Optional[str]
    ) -> Response:
        if not (
            self.settings.retry_transport_errors
            and request.method is HttpMethod.GET
            and options.max_retries > 0
        ):
            return await self._send_once(request, options, token)

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(options.max_retries + 1),
            wait=wait_exponential(multiplier=self.settings.retry_backoff, max=5),
            retry=retry_if_exception_type(TransportError),
            reraise=True,
        ):
            with attempt:
                retry_count = attempt.retry_state.attempt_number - 1
                if retry_count:
                    request = request.model_copy(update={"retry_count": retry_count})
                return await self._send_once(request, options, token)

    async def _send_once(
        self, request: Request, options: RequestOptions, token: Optional[str]
    ) -> Response:
        method = request.method.value
        url = self._build_url(request)
        headers = self._build_headers(request, token)
        body = self._encode_body(request.body)

        logger.debug(f"{method} {url} (attempt {request.retry_count + 1})")
        started = time.monotonic()
        try:
            raw = await asyncio.wait_for(
                self.transport.send(
                    method, url, headers=headers, body=body, timeout=options.timeout
                ),
                timeout=options.timeout,
            )
        except TransportError:
            raise
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise RequestTimeoutError(
                f"{method} {url} timed out after {options.timeout}s"
            ) from e
        except OSError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        return Response(
            payload=self._decode_body(raw),
            status=raw.status_code,
            headers=dict(raw.headers),
            duration=time.monotonic() - started,
            request=request,
        )

    def _revalidate(self, request: Request, options: RequestOptions) -> None:
        key = request.cache_key
        if key in self._revalidating:
            return
        task = asyncio.create_task(self._background_fetch(request, options))
        self._revalidating[key] = task
        task.add_done_callback(lambda _: self._revalidating.pop(key, None))

    async def _background_fetch(self, request: Request, options: RequestOptions) -> None:
        try:
            await self._fetch(request, options)
            logger.debug(f"Revalidated {request.cache_key}")
        except Exception as e:
            logger.warning(f"Background revalidation of {request.cache_key} failed: {e}")

    async def _store(self, key: str, response: Response, ttl: float) -> None:
        try:
            await self.cache.put(key, response, ttl)
        except Exception as e:
            logger.warning(f"Failed to write to cache for {key}: {e}")

    async def _notify_network_error(self, request: Request) -> None:
        if self.on_network_error is None:
            return
        try:
            await maybe_await(self.on_network_error(request))
        except Exception as e:
            logger.warning(f"on_network_error hook failed: {e}")

    # === wire helpers ===

    def _build_url(self, request: Request) -> str:
        if request.path.startswith(("http://", "https://")):
            url = request.path
        else:
            url = self.settings.base_url.rstrip("/") + "/" + request.path.lstrip("/")
        if request.query:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}{urlencode(request.query, doseq=True)}"
        return url

    def _build_headers(self, request: Request, token: Optional[str]) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **self.settings.default_headers,
            **request.headers,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def _encode_body(body: Any) -> Optional[bytes]:
        if body is None:
            return None
        if isinstance(body, bytes):
            return body
        if isinstance(body, str):
            return body.encode("utf-8")
        return json.dumps(body).encode("utf-8")

    @staticmethod
    def _decode_body(raw: TransportResponse) -> Any:
        if not raw.content:
            return None
        try:
            return raw.json()
        except ValueError:
            return raw.text
