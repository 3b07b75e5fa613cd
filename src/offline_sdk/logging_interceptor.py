"""
Logging interceptor for Offline SDK.

This module provides LoggingInterceptor, a built-in interceptor that logs
all requests, responses and failures going through the RequestPipeline.
Useful for debugging, monitoring, and understanding SDK behavior.

Features:
- Request logging with method, path, query and headers
- Response logging with status code and transport duration
- Failure logging through the on_error hook
- Sensitive headers are masked
"""

import logging
from typing import Optional

from offline_sdk.models import Request
from offline_sdk.models import Response

logger = logging.getLogger("offline_sdk.interceptors.logging")

SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "x-api-key"})


def mask_headers(headers: dict[str, str]) -> dict[str, str]:
    return {
        name: "***" if name.lower() in SENSITIVE_HEADERS else value
        for name, value in headers.items()
    }


class LoggingInterceptor:
    """
    Interceptor for logging requests and responses in RequestPipeline.
    Uses standard Python logging. Register it with `InterceptorChain.add()`;
    it joins both the request and the response list.
    """

    name = "logging"

    def __init__(self, level: int = logging.INFO):
        self.level = level

    async def process_request(self, request: Request) -> Request:
        logger.log(
            self.level,
            f"Request: {request.method.value} {request.path} | query={request.query}"
            f" | headers={mask_headers(request.headers)}",
        )
        return request

    async def process_response(self, response: Response) -> Response:
        target = (
            f"{response.request.method.value} {response.request.path} "
            if response.request is not None
            else ""
        )
        logger.log(
            self.level,
            f"Response: {target}{response.status} | elapsed={response.duration:.3f}s",
        )
        return response

    async def on_error(self, error: Exception, request: Request) -> Optional[Exception]:
        logger.warning(f"Failed: {request.method.value} {request.path} | {error!r}")
        return None
