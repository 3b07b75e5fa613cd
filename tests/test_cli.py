import json

import pytest
from click.testing import CliRunner

from offline_sdk.cli import cli
from offline_sdk.exceptions import TransportError
from tests.fakes import FakeTransport
from tests.fakes import json_response


@pytest.fixture
def fake_transport(monkeypatch):
    transport = FakeTransport()
    monkeypatch.setattr(
        "offline_sdk.client.get_transport", lambda name, timeout: transport
    )
    monkeypatch.setenv("OFFLINE_API_BASE_URL", "https://api.test")
    return transport


def test_cli_help():
    result = CliRunner().invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "request" in result.output
    assert "cache-key" in result.output


def test_cache_key_command():
    result = CliRunner().invoke(
        cli, ["cache-key", "get", "/products", "-q", "page=2", "-q", "limit=10"]
    )

    assert result.exit_code == 0
    assert result.output.strip() == 'GET:/products:{"limit":"10","page":"2"}'


def test_cache_key_rejects_malformed_query():
    result = CliRunner().invoke(cli, ["cache-key", "GET", "/products", "-q", "page"])

    assert result.exit_code == 2
    assert "key=value" in result.output


def test_request_command_prints_response(fake_transport):
    result = CliRunner().invoke(
        cli,
        [
            "request",
            "POST",
            "/orders",
            "--data",
            '{"id": 1}',
            "-H",
            "X-App=cli",
            "--token",
            "abc",
        ],
    )

    assert result.exit_code == 0
    output = json.loads(result.output)
    assert output["status"] == 200
    assert output["from_cache"] is False
    assert output["payload"] == {"ok": True}
    call = fake_transport.calls[0]
    assert call["url"] == "https://api.test/orders"
    assert call["headers"]["X-App"] == "cli"
    assert call["headers"]["Authorization"] == "Bearer abc"
    assert fake_transport.closed is True


def test_request_command_reports_http_errors(fake_transport):
    async def handler(call):
        return json_response(404, {"detail": "missing"})

    fake_transport.handler = handler

    result = CliRunner().invoke(cli, ["request", "GET", "/nope"])

    assert result.exit_code == 1
    assert json.loads(result.output) == {"status": 404, "body": {"detail": "missing"}}


def test_request_command_reports_transport_errors(fake_transport):
    async def handler(call):
        raise TransportError("offline")

    fake_transport.handler = handler

    result = CliRunner().invoke(cli, ["request", "GET", "/products", "--strategy", "network_only"])

    assert result.exit_code == 2
    assert "offline" in result.output


def test_request_command_rejects_invalid_json(fake_transport):
    result = CliRunner().invoke(cli, ["request", "POST", "/orders", "--data", "{oops"])

    assert result.exit_code == 2
    assert fake_transport.call_count == 0
