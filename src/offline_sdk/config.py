"""
Configuration management for Offline SDK.

This module provides OfflineAPISettings class that handles all SDK configuration
with support for environment variables, .env files, and sensible defaults.

Environment variables are automatically loaded with OFFLINE_API_ prefix.
Example: OFFLINE_API_BASE_URL=https://api.example.com

Per-request overrides are resolved against these settings in exactly one
place, `OfflineAPISettings.resolve()`, which returns a `RequestOptions`.
"""

from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

from offline_sdk.models import CacheStrategy
from offline_sdk.models import Request


class RequestOptions(BaseModel):
    """Effective options for one request after defaulting."""

    model_config = ConfigDict(frozen=True)

    cache_strategy: CacheStrategy
    cache_ttl: float
    timeout: float
    max_retries: int


class OfflineAPISettings(BaseSettings):
    """
    Configuration settings for Offline SDK with environment variable support.

    This class automatically loads configuration from:
    - Environment variables (with OFFLINE_API_ prefix)
    - .env files
    - Default values for optional settings

    Example:
        # From environment
        export OFFLINE_API_BASE_URL=https://api.example.com
        export OFFLINE_API_DEFAULT_CACHE_STRATEGY=cache_first

        # In code
        settings = OfflineAPISettings()
    """

    base_url: str = ""
    timeout: float = 15.0
    default_headers: dict[str, str] = Field(default_factory=dict)
    default_cache_strategy: CacheStrategy = CacheStrategy.NETWORK_FIRST
    default_cache_ttl: float = 300.0
    max_retries: int = 2
    # Opt-in backoff retries for GET transport failures (see RequestPipeline)
    retry_transport_errors: bool = False
    retry_backoff: float = 0.5
    transport: str = "httpx"  # default, can be 'aiohttp' or 'requests'
    cache_max_entries: Optional[int] = None

    model_config = SettingsConfigDict(
        env_prefix="OFFLINE_API_", env_file=".env", extra="ignore"
    )

    def resolve(self, request: Request) -> RequestOptions:
        """Merge the per-request overrides of `request` with these defaults."""
        return RequestOptions(
            cache_strategy=(
                request.cache_strategy
                if request.cache_strategy is not None
                else self.default_cache_strategy
            ),
            cache_ttl=(
                request.cache_ttl
                if request.cache_ttl is not None
                else self.default_cache_ttl
            ),
            timeout=request.timeout if request.timeout is not None else self.timeout,
            max_retries=(
                request.max_retries
                if request.max_retries is not None
                else self.max_retries
            ),
        )
