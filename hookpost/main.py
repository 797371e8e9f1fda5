"""hookpost command line: send a webhook message or look up a thumbnail."""

from __future__ import annotations

import asyncio
import json
from typing import Any, get_args

import click
import httpx

from hookpost.client import WebhookClient
from hookpost.config import Settings, load_settings
from hookpost.transports.sender import SendResult
from hookpost.transports.thumbnails import ThumbnailFormat, ThumbnailSize, ThumbnailType
from hookpost.utils.logging import setup_logging


def _describe(result: SendResult) -> str:
    detail = result.detail
    if isinstance(detail, httpx.Response):
        return f"HTTP {detail.status_code} {detail.reason_phrase}".rstrip()
    return detail


async def _send(settings: Settings, url: str, data: dict[str, Any], auto_retry: bool) -> SendResult:
    async with WebhookClient(settings) as client:
        return await client.send_message(url, data, auto_retry)


async def _thumbnail(settings: Settings, user_id: int, **options: Any) -> str:
    async with WebhookClient(settings) as client:
        return await client.get_user_thumbnail(user_id, **options)


@click.group()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str | None, debug: bool) -> None:
    """Validate and send Discord webhook messages."""
    settings = load_settings(config_path)
    if log_level:
        settings.log_level = log_level
    if debug:
        settings.debug = True
    setup_logging(level=settings.effective_log_level, json_output=settings.log_json)
    ctx.obj = settings


@cli.command()
@click.argument("url")
@click.option("--payload", "payload_path", type=click.Path(exists=True, dir_okay=False),
              help="JSON file with the message body")
@click.option("--content", default=None, help="Message text")
@click.option("--username", default=None, help="Override the webhook's name")
@click.option("--avatar-url", default=None, help="Override the webhook's avatar")
@click.option("--auto-retry/--no-auto-retry", default=False, help="Wait and retry when rate limited")
@click.pass_obj
def send(
    settings: Settings,
    url: str,
    payload_path: str | None,
    content: str | None,
    username: str | None,
    avatar_url: str | None,
    auto_retry: bool,
) -> None:
    """Send a message to the webhook at URL."""
    data: dict[str, Any] = {}
    if payload_path:
        with open(payload_path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise click.BadParameter(f"not valid JSON: {e}", param_hint="--payload")
        if not isinstance(data, dict):
            raise click.BadParameter("expected a JSON object", param_hint="--payload")

    for key, value in (("content", content), ("username", username), ("avatar_url", avatar_url)):
        if value is not None:
            data[key] = value

    result = asyncio.run(_send(settings, url, data, auto_retry))
    if result.success:
        click.echo(f"sent: {_describe(result)}")
        return
    click.echo(f"failed: {_describe(result)}", err=True)
    raise SystemExit(1)


@cli.command()
@click.argument("user_id", type=int)
@click.option("--type", "thumbnail_type", default="avatar",
              type=click.Choice(list(get_args(ThumbnailType))))
@click.option("--size", default="48x48", type=click.Choice(list(get_args(ThumbnailSize))))
@click.option("--format", "image_format", default="Png", type=click.Choice(list(get_args(ThumbnailFormat))))
@click.option("--circular", is_flag=True)
@click.pass_obj
def thumbnail(
    settings: Settings,
    user_id: int,
    thumbnail_type: str,
    size: str,
    image_format: str,
    circular: bool,
) -> None:
    """Print the thumbnail image URL for a Roblox USER_ID."""
    url = asyncio.run(_thumbnail(
        settings,
        user_id,
        thumbnail_type=thumbnail_type,
        size=size,
        image_format=image_format,
        circular=circular,
    ))
    click.echo(url)


if __name__ == "__main__":
    cli()
