"""
Command-line interface for Offline SDK.

This module provides a small CLI for exercising an API through the request
pipeline. All commands use async operations under the hood.

Available commands:
- request: Send one request with a chosen cache strategy and print the response
- cache-key: Print the cache fingerprint of a request
"""

import asyncio
import json
import logging
import sys

import click

from offline_sdk.client import RequestPipeline
from offline_sdk.config import OfflineAPISettings
from offline_sdk.exceptions import HttpError
from offline_sdk.exceptions import OfflineAPIError
from offline_sdk.logging_interceptor import LoggingInterceptor
from offline_sdk.models import CacheStrategy
from offline_sdk.models import HttpMethod
from offline_sdk.models import Request
from offline_sdk.models import cache_key

logger = logging.getLogger("offline_sdk.cli")

METHODS = click.Choice([m.value for m in HttpMethod], case_sensitive=False)
STRATEGIES = click.Choice([s.value for s in CacheStrategy])


def _pairs(values: tuple[str, ...], option: str) -> dict[str, str]:
    result = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep:
            raise click.BadParameter(f"expected key=value, got '{item}'", param_hint=option)
        result[key] = value
    return result


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log requests and responses")
@click.pass_context
def cli(ctx, verbose):
    """Offline SDK CLI"""
    ctx.obj = {"verbose": verbose}
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


@cli.command()
@click.argument("method", type=METHODS)
@click.argument("path")
@click.option("--query", "-q", multiple=True, help="Query parameter as key=value")
@click.option("--header", "-H", multiple=True, help="Header as key=value")
@click.option("--strategy", type=STRATEGIES, default=None, help="Cache strategy")
@click.option("--data", "-d", default=None, help="JSON request body")
@click.option("--token", envvar="OFFLINE_API_TOKEN", default=None, help="Bearer token")
@click.pass_context
def request(ctx, method, path, query, header, strategy, data, token):
    """Send a request through the pipeline and print the response as JSON."""
    try:
        body = json.loads(data) if data else None
    except json.JSONDecodeError as exc:
        raise click.BadParameter(str(exc), param_hint="--data") from exc

    req = Request(
        method=method,
        path=path,
        query=_pairs(query, "--query"),
        headers=_pairs(header, "--header"),
        body=body,
        cache_strategy=strategy,
    )

    async def _run():
        pipeline = RequestPipeline(
            OfflineAPISettings(),
            token_provider=(lambda: token) if token else None,
        )
        if ctx.obj["verbose"]:
            pipeline.interceptors.add(LoggingInterceptor(level=logging.DEBUG))
        try:
            return await pipeline.request(req)
        finally:
            await pipeline.aclose()

    try:
        response = asyncio.run(_run())
    except HttpError as exc:
        click.echo(json.dumps({"status": exc.status, "body": exc.body}, indent=2))
        sys.exit(1)
    except OfflineAPIError as exc:
        logger.error(f"Request failed: {exc}")
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    click.echo(
        json.dumps(
            {
                "status": response.status,
                "from_cache": response.from_cache,
                "duration": round(response.duration, 3),
                "payload": response.payload,
            },
            indent=2,
            default=str,
        )
    )


@cli.command("cache-key")
@click.argument("method", type=METHODS)
@click.argument("path")
@click.option("--query", "-q", multiple=True, help="Query parameter as key=value")
def cache_key_command(method, path, query):
    """Print the cache key the pipeline uses for a request."""
    click.echo(cache_key(method, path, _pairs(query, "--query")))


if __name__ == "__main__":
    cli()
