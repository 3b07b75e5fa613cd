"""
Test utilities and fake objects for Offline SDK.

This module provides a fake transport and a controllable clock for testing
the request pipeline without making real HTTP requests.
"""

import json

from offline_sdk.transport.base import TransportResponse


def json_response(status_code=200, payload=None, headers=None):
    content = b"" if payload is None else json.dumps(payload).encode()
    return TransportResponse(
        status_code, {"content-type": "application/json", **(headers or {})}, content
    )


class FakeClock:
    """Manually advanced replacement for time.time()."""

    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeTransport:
    """Fake transport for testing."""

    def __init__(self, handler=None):
        """
        Initialize fake transport.

        Args:
            handler: Optional async function that takes the recorded call dict
                   and returns a TransportResponse (or raises).
                   If not provided, every call answers 200 with {"ok": true}.
        """
        self.handler = handler
        self.calls = []
        self.closed = False

    @property
    def call_count(self):
        """Number of requests made to this transport."""
        return len(self.calls)

    async def send(self, method, url, headers=None, body=None, timeout=None):
        call = {
            "method": method,
            "url": url,
            "headers": dict(headers or {}),
            "body": body,
            "timeout": timeout,
        }
        self.calls.append(call)
        if self.handler:
            return await self.handler(call)
        return json_response(200, {"ok": True})

    async def close(self):
        self.closed = True
