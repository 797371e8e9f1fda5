"""Webhook delivery over proxies with per-status retry handling.

Each send walks proxies in order and gives every proxy a fixed number of
attempts. After each attempt the outcome is mapped to the next state by
``next_state``; ATTEMPTING moves on to the next attempt (or proxy), BACKOFF
sleeps for Discord's ``retry_after`` first, and the remaining states end
the send.
"""

from __future__ import annotations

import asyncio
import json
from enum import Enum
from typing import Any, Awaitable, Callable, NamedTuple

import httpx

from hookpost.config import UnclassifiedStatusPolicy, WebhookConfig
from hookpost.core.invalid_cache import InvalidEndpointCache, default_cache
from hookpost.utils.logging import get_logger

log = get_logger(__name__)

DISCORD_HOST = "discord.com"
DEFAULT_RETRY_AFTER = 1.0
EXHAUSTED_REASON = "failed to send: exhausted attempts"
INVALID_WEBHOOK_REASON = "invalid webhook url"

_INVALIDATING_STATUSES = frozenset({401, 404})


class SendState(str, Enum):
    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


class SendResult(NamedTuple):
    success: bool
    # The HTTP response, or a short reason when there is none to return
    detail: httpx.Response | str


def next_state(
    status: int | None,
    *,
    auto_retry: bool,
    can_retry: bool,
    policy: UnclassifiedStatusPolicy = UnclassifiedStatusPolicy.RETRY,
) -> SendState:
    """Transition after one attempt. ``status`` is None for transport errors."""
    if status is None:
        return SendState.ATTEMPTING
    if 200 <= status < 300:
        return SendState.SUCCEEDED
    if status == 400 or status in _INVALIDATING_STATUSES:
        return SendState.FAILED
    if status == 429:
        return SendState.BACKOFF if auto_retry and can_retry else SendState.FAILED
    if policy is UnclassifiedStatusPolicy.FAIL:
        return SendState.FAILED
    return SendState.ATTEMPTING


def proxied_url(endpoint: str, proxy: str) -> str:
    return endpoint.replace(DISCORD_HOST, proxy, 1)


def parse_retry_after(response: httpx.Response) -> float:
    """Seconds to wait from a 429 body, defaulting to one second."""
    try:
        data = response.json()
    except ValueError:
        return DEFAULT_RETRY_AFTER
    retry_after = data.get("retry_after") if isinstance(data, dict) else None
    if isinstance(retry_after, (int, float)) and not isinstance(retry_after, bool) and retry_after >= 0:
        return float(retry_after)
    return DEFAULT_RETRY_AFTER


class WebhookSender:
    def __init__(
        self,
        client: httpx.AsyncClient,
        config: WebhookConfig,
        cache: InvalidEndpointCache | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._config = config
        self._cache = cache if cache is not None else default_cache
        self._sleep = sleep

    async def send(
        self, endpoint: str, payload: dict[str, Any], *, auto_retry: bool = False
    ) -> SendResult:
        """POST an already validated payload to the webhook."""
        if self._cache.is_known_invalid(endpoint):
            return SendResult(False, INVALID_WEBHOOK_REASON)

        body = json.dumps(payload)
        proxies = self._config.proxies
        attempts = self._config.max_attempts_per_proxy

        for proxy_index, proxy in enumerate(proxies):
            url = proxied_url(endpoint, proxy)
            for attempt in range(1, attempts + 1):
                response = await self._post(url, body, proxy=proxy, attempt=attempt)
                status = response.status_code if response is not None else None
                state = next_state(
                    status,
                    auto_retry=auto_retry,
                    can_retry=attempt < attempts or proxy_index < len(proxies) - 1,
                    policy=self._config.unclassified_status_policy,
                )

                if state is SendState.SUCCEEDED:
                    log.info("webhook_sent", status=status, proxy=proxy, attempt=attempt)
                    return SendResult(True, response)

                if state is SendState.FAILED:
                    if status in _INVALIDATING_STATUSES:
                        self._cache.mark_invalid(endpoint)
                    log.error(
                        "webhook_rejected",
                        status=status,
                        reason=response.reason_phrase,
                        body=response.text[:500],
                    )
                    return SendResult(False, response)

                if state is SendState.BACKOFF:
                    delay = parse_retry_after(response)
                    log.warning("webhook_rate_limited", retry_after=delay, proxy=proxy, attempt=attempt)
                    await self._sleep(delay)
                elif status is not None:
                    log.warning("webhook_unexpected_status", status=status, proxy=proxy, attempt=attempt)

        log.error("webhook_send_exhausted", proxies=len(proxies), attempts_per_proxy=attempts)
        return SendResult(False, EXHAUSTED_REASON)

    async def _post(self, url: str, body: str, *, proxy: str, attempt: int) -> httpx.Response | None:
        try:
            return await self._client.post(
                url,
                content=body,
                headers={"Content-Type": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.warning("webhook_transport_error", proxy=proxy, attempt=attempt, error=str(e))
            return None
