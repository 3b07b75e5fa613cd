"""
Offline SDK - Async-first, offline-aware API client.

This SDK provides:
- Request pipeline with five cache strategies
- Ordered request/response interceptor chains
- Single-flight token refresh on 401
- Multiple HTTP transport support
- Synchronous wrapper for sync callers
"""

from .auth import TokenManager
from .auth import TokenRefreshCoordinator
from .cache import CacheStore
from .client import RequestPipeline
from .client_sync import RequestPipelineSync
from .config import OfflineAPISettings
from .config import RequestOptions
from .exceptions import HttpError
from .exceptions import NoCachedResponse
from .exceptions import OfflineAPIError
from .exceptions import RefreshFailure
from .exceptions import RequestTimeoutError
from .exceptions import TransportError
from .interceptors import Interceptor
from .interceptors import InterceptorChain
from .interceptors import RequestInterceptor
from .interceptors import ResponseInterceptor
from .models import CacheStrategy
from .models import HttpMethod
from .models import Request
from .models import Response
from .models import cache_key
from .token_store import FileTokenStore
from .token_store import MemoryTokenStore
from .token_store import TokenStore

__version__ = "1.0.0"

__all__ = [
    "RequestPipeline",
    "RequestPipelineSync",
    "OfflineAPISettings",
    "RequestOptions",
    "CacheStore",
    "CacheStrategy",
    "HttpMethod",
    "Request",
    "Response",
    "cache_key",
    "Interceptor",
    "InterceptorChain",
    "RequestInterceptor",
    "ResponseInterceptor",
    "TokenRefreshCoordinator",
    "TokenManager",
    "TokenStore",
    "MemoryTokenStore",
    "FileTokenStore",
    "OfflineAPIError",
    "TransportError",
    "RequestTimeoutError",
    "HttpError",
    "NoCachedResponse",
    "RefreshFailure",
]
