"""Public entry point: check, validate, then deliver a webhook message."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import httpx

from hookpost.config import Settings
from hookpost.core.invalid_cache import InvalidEndpointCache, default_cache
from hookpost.core.validator import validate_message
from hookpost.models import OutgoingMessage
from hookpost.transports.sender import INVALID_WEBHOOK_REASON, SendResult, WebhookSender
from hookpost.transports.thumbnails import (
    ThumbnailFormat,
    ThumbnailSize,
    ThumbnailType,
    get_user_thumbnail,
)
from hookpost.utils.logging import get_logger

log = get_logger(__name__)


class WebhookClient:
    """Sends messages to Discord webhooks.

    Owns an ``httpx.AsyncClient`` unless one is passed in. Endpoints that
    answer 401/404 are remembered in ``cache`` (the process-wide cache by
    default) and refused without a network call afterwards.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        cache: InvalidEndpointCache | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.settings = settings or Settings()
        self.cache = cache if cache is not None else default_cache
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self.settings.webhook.timeout)
        self._sender = WebhookSender(self._http, self.settings.webhook, self.cache, sleep=sleep)

    async def __aenter__(self) -> WebhookClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def send_message(
        self,
        endpoint: str,
        message: OutgoingMessage | dict[str, Any],
        auto_retry: bool = False,
    ) -> SendResult:
        """Validate ``message`` and POST it to ``endpoint``.

        Never raises for expected failures; the result's detail is the
        response when Discord answered, otherwise a short reason.
        """
        if self.cache.is_known_invalid(endpoint):
            log.debug("webhook_known_invalid", endpoint=endpoint)
            return SendResult(False, INVALID_WEBHOOK_REASON)

        if isinstance(message, dict):
            try:
                message = OutgoingMessage.from_dict(message)
            except TypeError as e:
                return SendResult(False, f"invalid message: {e}")

        result = validate_message(message, byteorder=self.settings.webhook.flags_byteorder)
        if not result.valid:
            log.warning("webhook_message_invalid", reason=result.detail)
            return SendResult(False, result.detail)

        return await self._sender.send(endpoint, result.detail.to_payload(), auto_retry=auto_retry)

    async def get_user_thumbnail(
        self,
        user_id: int,
        thumbnail_type: ThumbnailType = "avatar",
        size: ThumbnailSize = "48x48",
        image_format: ThumbnailFormat = "Png",
        circular: bool = False,
    ) -> str:
        return await get_user_thumbnail(
            self._http,
            self.settings.thumbnails,
            user_id,
            thumbnail_type=thumbnail_type,
            size=size,
            image_format=image_format,
            circular=circular,
        )


async def send_message(
    endpoint: str,
    message: OutgoingMessage | dict[str, Any],
    auto_retry: bool = False,
    *,
    settings: Settings | None = None,
) -> SendResult:
    """One-shot send with a short-lived client."""
    async with WebhookClient(settings) as client:
        return await client.send_message(endpoint, message, auto_retry)
