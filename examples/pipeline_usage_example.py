"""
Example usage of the Offline SDK request pipeline.

This example wires a token manager, the built-in interceptors and an
offline queue hook into one pipeline, then walks through the cache
strategies a typical screen would use.
"""

import asyncio
import logging
from pathlib import Path

from offline_sdk import CacheStrategy
from offline_sdk import FileTokenStore
from offline_sdk import OfflineAPISettings
from offline_sdk import OfflineAPIError
from offline_sdk import Request
from offline_sdk import RequestPipeline
from offline_sdk import TokenManager
from offline_sdk.cache_invalidation import CacheInvalidationInterceptor
from offline_sdk.logging_interceptor import LoggingInterceptor

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

offline_queue: list[Request] = []


async def issue_token() -> str | None:
    """Stand-in for the app's real login/OTP flow."""
    return "example-access-token"


def add_locale(request: Request) -> Request:
    return request.with_headers(**{"Accept-Language": "en-IN"})


async def demonstrate_pipeline():
    settings = OfflineAPISettings(
        base_url="https://api.example.com",
        default_headers={"X-App-Version": "2.4.0"},
    )
    tokens = TokenManager(
        issue_token,
        store=FileTokenStore(Path.home() / ".offline_sdk" / "token.json"),
        token_ttl=15 * 60,
    )

    async with RequestPipeline(
        settings,
        token_provider=tokens.get_token,
        on_refresh_token=tokens.refresh_token,
        on_network_error=offline_queue.append,
    ) as api:
        api.interceptors.add_request("locale", add_locale)
        api.interceptors.add(LoggingInterceptor())
        api.interceptors.add(
            CacheInvalidationInterceptor(api.cache, related={"/cart/items": ["/cart"]})
        )

        try:
            # Timetable: show whatever is cached, refresh in the background
            timetable = await api.get(
                "/timetable", cache_strategy=CacheStrategy.STALE_WHILE_REVALIDATE
            )
            logger.info(f"Timetable (from cache: {timetable.from_cache})")

            # Fee receipts rarely change: cache first, keep for an hour
            await api.get(
                "/fees/receipts", cache_strategy=CacheStrategy.CACHE_FIRST, cache_ttl=3600
            )

            # Writes are never cached; failures land in the offline queue
            await api.post("/cart/items", {"product_id": 42, "qty": 1})
        except OfflineAPIError as e:
            logger.error(f"Request failed: {e}")

        logger.info(f"Queued for retry when online: {len(offline_queue)}")
        logger.info(f"Cache stats: {await api.cache_stats()}")


if __name__ == "__main__":
    asyncio.run(demonstrate_pipeline())
