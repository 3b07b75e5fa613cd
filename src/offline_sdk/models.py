"""
Data model for the Offline SDK request pipeline.

Requests and responses are pydantic models. A `Request` is frozen: the
pipeline and its interceptors never mutate the caller's object, they pass
transformed copies along instead. A `Response` is what callers receive and
also what the cache stores (as a deep-copied snapshot).
"""

import json
from enum import Enum
from typing import Any
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class CacheStrategy(str, Enum):
    """
    How a request consults the cache relative to the network.

    - NETWORK_FIRST: network, fall back to cache on transport failure
    - CACHE_FIRST: cache if present, otherwise network
    - NETWORK_ONLY: network, never read the cache
    - CACHE_ONLY: cache or NoCachedResponse, never touch the network
    - STALE_WHILE_REVALIDATE: cache immediately and refresh in background
    """

    NETWORK_FIRST = "network_first"
    CACHE_FIRST = "cache_first"
    NETWORK_ONLY = "network_only"
    CACHE_ONLY = "cache_only"
    STALE_WHILE_REVALIDATE = "stale_while_revalidate"


def canonical_json(value: Any) -> str:
    """Serialize `value` with sorted keys and no whitespace."""
    return json.dumps(value or {}, sort_keys=True, separators=(",", ":"), default=str)


def cache_key(method: "HttpMethod | str", path: str, query: Optional[dict] = None) -> str:
    """
    Build the cache fingerprint for a request.

    Format: ``{METHOD}:{PATH}:{canonical-JSON(query)}``. Body and headers are
    deliberately not part of the key.

    Example:
        >>> cache_key("GET", "/products", {"page": 2, "limit": 10})
        'GET:/products:{"limit":10,"page":2}'
    """
    method_value = method.value if isinstance(method, HttpMethod) else method.upper()
    return f"{method_value}:{path}:{canonical_json(query)}"


class Request(BaseModel):
    """
    A single logical API call.

    Only `path` is required. The optional `cache_strategy`, `cache_ttl`,
    `timeout` and `max_retries` fields override the pipeline settings for
    this request only; `None` means "use the configured default".

    Example:
        req = Request(method="GET", path="/products", query={"page": 1})
        authed = req.with_headers(**{"X-Trace-Id": "abc"})
    """

    model_config = ConfigDict(frozen=True)

    method: HttpMethod = HttpMethod.GET
    path: str
    body: Any = None
    headers: dict[str, str] = Field(default_factory=dict)
    query: dict[str, Any] = Field(default_factory=dict)
    cache_strategy: Optional[CacheStrategy] = None
    cache_ttl: Optional[float] = None
    timeout: Optional[float] = None
    retry_count: int = 0
    max_retries: Optional[int] = None
    tag: Optional[str] = None

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value

    @property
    def cache_key(self) -> str:
        return cache_key(self.method, self.path, self.query)

    def with_headers(self, **headers: str) -> "Request":
        """Return a copy with `headers` merged over the existing ones."""
        return self.model_copy(update={"headers": {**self.headers, **headers}})


class Response(BaseModel):
    """
    Result of a request, either fresh from the network or served from cache.

    `request` points back at the (post-interceptor) request that produced the
    response. It is excluded from serialization and dropped when the
    response is cached.
    """

    payload: Any = None
    status: int
    headers: dict[str, str] = Field(default_factory=dict)
    from_cache: bool = False
    duration: float = 0.0
    request: Optional[Request] = Field(default=None, exclude=True)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300


class CacheEntry(BaseModel):
    response: Response
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class CacheStats(BaseModel):
    total_entries: int = 0
    hit_count: int = 0
    miss_count: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hit_count + self.miss_count
        return self.hit_count / lookups if lookups else 0.0
