"""
This module coordinates access token refresh for the request pipeline:
- `TokenRefreshCoordinator` makes sure at most one refresh is in flight and
  that every caller waiting on it observes the same outcome
- `TokenManager` connects a host-supplied refresh callback to a `TokenStore`
  so the refreshed token is reused by later requests.

Obtaining tokens (OAuth, OTP, ...) is the host application's job; this
module only decides when to ask for one and who shares the answer.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Union

from offline_sdk.exceptions import RefreshFailure
from offline_sdk.interceptors import maybe_await
from offline_sdk.token_store import TokenStore

logger = logging.getLogger("offline_sdk.auth")

RefreshCallback = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]


class TokenRefreshCoordinator:
    """
    Single-flight gate around the token refresh callback.

    While a refresh is running every further `refresh()` call awaits the same
    task instead of starting a new one. The task is shielded from the
    cancellation of individual callers: it is only cancelled when the last
    waiting caller goes away before it settles.

    States:
        idle        no refresh task (`is_refreshing` is False)
        refreshing  one shared task, `waiters` callers attached

    Args:
        refresh_callback (RefreshCallback | None): Sync or async callable that
            returns a new access token, or None when refresh is impossible.

    Example:
        coordinator = TokenRefreshCoordinator(fetch_new_token)
        token = await coordinator.refresh()  # RefreshFailure on None/raise
    """

    def __init__(self, refresh_callback: Optional[RefreshCallback] = None):
        self._refresh_callback = refresh_callback
        self._task: Optional[asyncio.Task] = None
        self._waiters = 0

    @property
    def enabled(self) -> bool:
        return self._refresh_callback is not None

    @property
    def is_refreshing(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def waiters(self) -> int:
        return self._waiters

    async def refresh(self) -> str:
        """
        Return a fresh token, joining the in-flight refresh if there is one.

        Raises:
            RefreshFailure: The callback returned no token or raised. Every
                caller of the same refresh cycle receives the same instance.
        """
        if self._refresh_callback is None:
            raise RefreshFailure("No token refresh callback configured")

        # No await between the check and the assignment: the gate is atomic
        # with respect to other coroutines on the loop.
        task = self._task
        if task is None or task.done():
            task = asyncio.create_task(self._run())
            task.add_done_callback(self._on_done)
            self._task = task
            logger.debug("Token refresh started")
        else:
            logger.debug("Joining in-flight token refresh")

        self._waiters += 1
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if self._waiters == 1 and not task.done():
                logger.debug("Last waiter cancelled, cancelling token refresh")
                # Detach before cancelling so a caller arriving before the
                # cancellation lands starts a fresh cycle.
                if self._task is task:
                    self._task = None
                task.cancel()
            raise
        finally:
            self._waiters -= 1

    async def _run(self) -> str:
        try:
            try:
                token = await maybe_await(self._refresh_callback())
            except Exception as e:
                logger.warning(f"Token refresh failed: {e}")
                raise RefreshFailure(f"Token refresh failed: {e}") from e
            if not token:
                logger.warning("Token refresh returned no token")
                raise RefreshFailure("Token refresh returned no token")
            logger.debug("Token refresh succeeded")
            return token
        finally:
            # Back to idle before the result is published, so a 401 seen
            # after settlement starts a new cycle. A cancelled cycle may
            # already have been replaced.
            if self._task is asyncio.current_task():
                self._task = None

    def _on_done(self, task: asyncio.Task) -> None:
        if self._task is task:
            self._task = None


class TokenManager:
    """
    Token provider and refresh callback backed by a `TokenStore`.

    Pass `get_token` as the pipeline's `token_provider` and `refresh_token`
    as its `on_refresh_token`:

        manager = TokenManager(fetch_new_token, store=FileTokenStore(path))
        pipeline = RequestPipeline(
            settings,
            token_provider=manager.get_token,
            on_refresh_token=manager.refresh_token,
        )

    Args:
        refresh_callback (RefreshCallback): Host callable producing a new token.
        store (TokenStore | None): Where tokens are persisted between runs.
        token_ttl (float | None): Lifetime recorded with saved tokens, in
            seconds. None stores tokens without an expiry.
    """

    def __init__(
        self,
        refresh_callback: RefreshCallback,
        store: Optional[TokenStore] = None,
        token_ttl: Optional[float] = None,
    ):
        self._refresh_callback = refresh_callback
        self.store = store
        self.token_ttl = token_ttl
        self._access_token: Optional[str] = None
        self._token_expiry: Optional[float] = None

    def is_token_expired(self) -> bool:
        if not self._access_token:
            return True
        return self._token_expiry is not None and time.time() >= self._token_expiry

    async def get_token(self) -> Optional[str]:
        """Current token from memory, else from the store, else None."""
        if not self.is_token_expired():
            return self._access_token

        if self.store:
            token_data = await self.store.load()
            if token_data:
                logger.debug("Loaded token from store")
                self._access_token = token_data["access_token"]
                self._token_expiry = token_data.get("expires_at")
                return self._access_token
        return None

    async def refresh_token(self) -> Optional[str]:
        """Ask the host for a new token and persist it."""
        token = await maybe_await(self._refresh_callback())
        if not token:
            return None

        self._access_token = token
        self._token_expiry = (
            time.time() + self.token_ttl if self.token_ttl is not None else None
        )
        if self.store:
            await self.store.save(token, self._token_expiry)
        return token

    async def clear(self) -> None:
        self._access_token = None
        self._token_expiry = None
        if self.store:
            await self.store.clear()
