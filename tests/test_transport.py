"""
Tests for the transport layer: backend selection, response wrapping and
mapping of client-library failures onto the SDK error taxonomy.
"""

import httpx
import pytest
import requests

from offline_sdk.exceptions import RequestTimeoutError
from offline_sdk.exceptions import TransportError
from offline_sdk.transport import get_transport
from offline_sdk.transport.aiohttp import AiohttpTransport
from offline_sdk.transport.base import BaseTransport
from offline_sdk.transport.base import TransportResponse
from offline_sdk.transport.httpx import HttpxTransport
from offline_sdk.transport.requests import RequestsTransport


def test_get_transport_by_name():
    assert isinstance(get_transport("httpx"), HttpxTransport)
    assert isinstance(get_transport("AIOHTTP"), AiohttpTransport)
    assert isinstance(get_transport("requests"), RequestsTransport)


def test_get_transport_unknown_name():
    with pytest.raises(ValueError):
        get_transport("urllib")


def test_transport_response_helpers():
    response = TransportResponse(200, {"content-type": "application/json"}, b'{"a": 1}')

    assert response.json() == {"a": 1}
    assert response.text == '{"a": 1}'
    assert "200" in repr(response)


@pytest.mark.asyncio
async def test_base_transport_must_be_overridden():
    with pytest.raises(NotImplementedError):
        await BaseTransport().send("GET", "https://api.test")


@pytest.mark.asyncio
async def test_httpx_transport_sends_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = request.content
        return httpx.Response(201, json={"id": 7}, headers={"X-Request-Id": "r1"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    transport = HttpxTransport(client=client)

    response = await transport.send(
        "POST",
        "https://api.test/orders?x=1",
        headers={"Authorization": "Bearer t"},
        body=b'{"qty": 1}',
    )
    await transport.close()

    assert response.status_code == 201
    assert response.json() == {"id": 7}
    assert response.headers["x-request-id"] == "r1"
    assert seen == {
        "method": "POST",
        "url": "https://api.test/orders?x=1",
        "auth": "Bearer t",
        "body": b'{"qty": 1}',
    }


@pytest.mark.asyncio
async def test_httpx_transport_error_statuses_are_not_exceptions():
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(503, text="busy"))
    )
    transport = HttpxTransport(client=client)

    response = await transport.send("GET", "https://api.test/")

    assert response.status_code == 503
    assert response.text == "busy"


@pytest.mark.asyncio
async def test_httpx_transport_maps_connect_error():
    def handler(request):
        raise httpx.ConnectError("no route to host", request=request)

    transport = HttpxTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    with pytest.raises(TransportError) as exc_info:
        await transport.send("GET", "https://api.test/")

    assert not isinstance(exc_info.value, RequestTimeoutError)


@pytest.mark.asyncio
async def test_httpx_transport_maps_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    transport = HttpxTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    with pytest.raises(RequestTimeoutError):
        await transport.send("GET", "https://api.test/")


@pytest.mark.asyncio
async def test_requests_transport_maps_errors(monkeypatch):
    transport = RequestsTransport(timeout=1)

    def refuse(**kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(transport._session, "request", refuse)
    with pytest.raises(TransportError):
        await transport.send("GET", "https://api.test/")

    def too_slow(**kwargs):
        raise requests.Timeout("slow")

    monkeypatch.setattr(transport._session, "request", too_slow)
    with pytest.raises(RequestTimeoutError):
        await transport.send("GET", "https://api.test/")

    await transport.close()


@pytest.mark.asyncio
async def test_aiohttp_transport_close_without_session():
    transport = AiohttpTransport()

    await transport.close()
