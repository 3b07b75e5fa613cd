"""
Interceptor architecture for extensible request/response processing.

This module provides the interceptor chain used by `RequestPipeline`. An
interceptor is a named transformation step:

- request interceptors take a `Request` and return a (possibly new) `Request`
- response interceptors take a `Response` and return a (possibly new)
  `Response`, and may expose an `on_error` hook that sees the final error of
  a failed request and may replace it

Interceptors run strictly in registration order. There is no priority
system: add them in the order they are meant to run.
"""

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from offline_sdk.models import Request
from offline_sdk.models import Response

RequestHandler = Callable[[Request], Union[Request, Awaitable[Request]]]
ResponseHandler = Callable[[Response], Union[Response, Awaitable[Response]]]
ErrorHandler = Callable[
    [Exception, Request], Union[Optional[Exception], Awaitable[Optional[Exception]]]
]


async def maybe_await(value: Any) -> Any:
    """Await `value` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass(frozen=True)
class Interceptor:
    """A registered interceptor: a name, its transform and an optional error hook."""

    name: str
    handler: Callable[[Any], Any]
    on_error: Optional[ErrorHandler] = None


class RequestInterceptor(ABC):
    """
    Base class for request interceptors.

    Interceptors can modify requests before they are sent to the API.
    """

    name: str = "request"

    @abstractmethod
    async def process_request(self, request: Request) -> Request:
        """
        Process a request before it is sent.

        Args:
            request: Request as produced by the previous interceptor

        Returns:
            The request to hand to the next interceptor
        """


class ResponseInterceptor(ABC):
    """
    Base class for response interceptors.

    Interceptors can modify responses after they are received from the API.
    """

    name: str = "response"

    @abstractmethod
    async def process_response(self, response: Response) -> Response:
        """
        Process a response after it is received.

        Args:
            response: Response as produced by the previous interceptor

        Returns:
            The response to hand to the next interceptor
        """

    async def on_error(self, error: Exception, request: Request) -> Optional[Exception]:
        """
        Observe the error that ends a failed request.

        Return a replacement exception to change what the caller sees, or
        None to leave the error as it is.
        """
        return None


class InterceptorChain:
    """
    Manages request and response interceptors.

    This class coordinates the execution of interceptors in the correct order.

    Example:
        chain = InterceptorChain()
        chain.add_request("trace", lambda req: req.with_headers(**{"X-Trace": "1"}))
        chain.add(LoggingInterceptor())
    """

    def __init__(self):
        self.request_interceptors: list[Interceptor] = []
        self.response_interceptors: list[Interceptor] = []

    def add_request(self, name: str, handler: RequestHandler) -> None:
        """Append a request interceptor. `handler` may be sync or async."""
        self._append(self.request_interceptors, Interceptor(name, handler))

    def add_response(
        self,
        name: str,
        handler: ResponseHandler,
        on_error: Optional[ErrorHandler] = None,
    ) -> None:
        """Append a response interceptor. `handler` may be sync or async."""
        self._append(self.response_interceptors, Interceptor(name, handler, on_error))

    def add(self, interceptor: Any) -> None:
        """
        Register an interceptor object on every list it supports.

        Objects exposing `process_request` join the request list, objects
        exposing `process_response` join the response list (with their
        `on_error` method, when present).
        """
        name = getattr(interceptor, "name", type(interceptor).__name__)
        registered = False
        if hasattr(interceptor, "process_request"):
            self.add_request(name, interceptor.process_request)
            registered = True
        if hasattr(interceptor, "process_response"):
            self.add_response(
                name,
                interceptor.process_response,
                getattr(interceptor, "on_error", None),
            )
            registered = True
        if not registered:
            raise TypeError(
                f"{type(interceptor).__name__} has neither process_request nor process_response"
            )

    def remove(self, name: str) -> bool:
        """Remove the interceptor called `name` from both lists."""
        before = len(self.request_interceptors) + len(self.response_interceptors)
        self.request_interceptors = [
            i for i in self.request_interceptors if i.name != name
        ]
        self.response_interceptors = [
            i for i in self.response_interceptors if i.name != name
        ]
        return before != len(self.request_interceptors) + len(
            self.response_interceptors
        )

    async def run_request(self, request: Request) -> Request:
        """
        Process request through all request interceptors.

        The chain starts from a deep copy so that an interceptor mutating
        nested dicts never reaches the caller's object.
        """
        current = request.model_copy(deep=True)
        for interceptor in self.request_interceptors:
            current = await maybe_await(interceptor.handler(current))
        return current

    async def run_response(self, response: Response) -> Response:
        """
        Process response through all response interceptors.
        """
        current = response
        for interceptor in self.response_interceptors:
            current = await maybe_await(interceptor.handler(current))
        return current

    async def run_error(self, error: Exception, request: Request) -> Exception:
        """
        Offer `error` to every response interceptor's `on_error` hook.

        Returns the exception the caller should see.
        """
        current = error
        for interceptor in self.response_interceptors:
            if interceptor.on_error is None:
                continue
            replacement = await maybe_await(interceptor.on_error(current, request))
            if replacement is not None:
                current = replacement
        return current

    @staticmethod
    def _append(target: list[Interceptor], interceptor: Interceptor) -> None:
        if any(existing.name == interceptor.name for existing in target):
            raise ValueError(f"Interceptor '{interceptor.name}' is already registered")
        target.append(interceptor)
