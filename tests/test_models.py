"""
Tests for the request/response data model and cache fingerprints.
"""

import pytest
from pydantic import ValidationError

from offline_sdk.models import CacheStats
from offline_sdk.models import HttpMethod
from offline_sdk.models import Request
from offline_sdk.models import Response
from offline_sdk.models import cache_key


def test_cache_key_format():
    assert cache_key("GET", "/products", {"page": 2}) == 'GET:/products:{"page":2}'
    assert cache_key(HttpMethod.POST, "/cart", None) == "POST:/cart:{}"


def test_cache_key_ignores_query_order_body_and_headers():
    first = Request(
        path="/products",
        query={"b": 1, "a": [1, 2]},
        headers={"X-Trace": "1"},
        body={"x": 1},
    )
    second = Request(path="/products", query={"a": [1, 2], "b": 1})

    assert first.cache_key == second.cache_key == 'GET:/products:{"a":[1,2],"b":1}'


def test_cache_key_includes_method():
    get = Request(method="GET", path="/orders")
    post = Request(method="POST", path="/orders")

    assert get.cache_key != post.cache_key


def test_request_method_is_normalized():
    assert Request(method="patch", path="/x").method is HttpMethod.PATCH


def test_request_rejects_unknown_method():
    with pytest.raises(ValidationError):
        Request(method="TRACE", path="/x")


def test_request_is_frozen_and_with_headers_copies():
    request = Request(path="/x", headers={"A": "1"})

    updated = request.with_headers(B="2")

    assert updated.headers == {"A": "1", "B": "2"}
    assert request.headers == {"A": "1"}
    with pytest.raises(ValidationError):
        request.path = "/y"


def test_request_defaults():
    request = Request(path="/x")

    assert request.method is HttpMethod.GET
    assert request.retry_count == 0
    assert request.max_retries is None
    assert request.cache_strategy is None
    assert request.tag is None


@pytest.mark.parametrize("status, success", [(199, False), (200, True), (204, True), (299, True), (300, False), (401, False)])
def test_response_is_success(status, success):
    assert Response(status=status).is_success is success


def test_response_request_is_not_serialized():
    response = Response(status=200, payload=[1], request=Request(path="/x"))

    assert "request" not in response.model_dump()


def test_cache_stats_hit_rate():
    assert CacheStats().hit_rate == 0.0
    assert CacheStats(hit_count=3, miss_count=1).hit_rate == 0.75
