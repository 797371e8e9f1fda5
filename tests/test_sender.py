"""Tests for the webhook sender's retry state machine."""

import json

import httpx
import pytest
from hookpost.config import UnclassifiedStatusPolicy, WebhookConfig
from hookpost.core.invalid_cache import InvalidEndpointCache
from hookpost.transports.sender import (
    EXHAUSTED_REASON,
    INVALID_WEBHOOK_REASON,
    SendState,
    WebhookSender,
    next_state,
    parse_retry_after,
    proxied_url,
)

URL = "https://discord.com/api/webhooks/123/token"


class Script:
    """Replays a fixed sequence of responses (or exceptions) per request."""

    def __init__(self, *steps):
        self.steps = list(steps)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        step = self.steps.pop(0)
        if isinstance(step, Exception):
            raise step
        return step


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def cache():
    return InvalidEndpointCache()


def make_sender(script, cache, sleeps, **config):
    async def fake_sleep(seconds):
        sleeps.append(seconds)

    client = httpx.AsyncClient(transport=httpx.MockTransport(script))
    return WebhookSender(client, WebhookConfig(**config), cache, sleep=fake_sleep)


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------

class TestNextState:
    @pytest.mark.parametrize("status", [200, 204, 299])
    def test_success(self, status):
        assert next_state(status, auto_retry=False, can_retry=False) is SendState.SUCCEEDED

    @pytest.mark.parametrize("status", [400, 401, 404])
    def test_terminal(self, status):
        assert next_state(status, auto_retry=True, can_retry=True) is SendState.FAILED

    def test_transport_error_retries(self):
        assert next_state(None, auto_retry=False, can_retry=False) is SendState.ATTEMPTING

    def test_rate_limit_backoff(self):
        assert next_state(429, auto_retry=True, can_retry=True) is SendState.BACKOFF

    def test_rate_limit_without_auto_retry(self):
        assert next_state(429, auto_retry=False, can_retry=True) is SendState.FAILED

    def test_rate_limit_without_budget(self):
        assert next_state(429, auto_retry=True, can_retry=False) is SendState.FAILED

    def test_unclassified_default_retries(self):
        assert next_state(500, auto_retry=False, can_retry=False) is SendState.ATTEMPTING

    def test_unclassified_fail_policy(self):
        state = next_state(503, auto_retry=False, can_retry=True, policy=UnclassifiedStatusPolicy.FAIL)
        assert state is SendState.FAILED


class TestHelpers:
    def test_proxied_url_replaces_first_host(self):
        assert proxied_url(URL, "webhook.lewisakura.moe") == (
            "https://webhook.lewisakura.moe/api/webhooks/123/token"
        )

    def test_retry_after_from_body(self):
        assert parse_retry_after(httpx.Response(429, json={"retry_after": 2.5})) == 2.5

    def test_retry_after_default(self):
        assert parse_retry_after(httpx.Response(429, json={"message": "slow down"})) == 1.0

    def test_retry_after_non_json(self):
        assert parse_retry_after(httpx.Response(429, text="<html>")) == 1.0


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------

class TestWebhookSender:
    async def test_success_posts_json(self, cache, sleeps):
        script = Script(httpx.Response(204))
        sender = make_sender(script, cache, sleeps)
        result = await sender.send(URL, {"content": "hi"})
        assert result.success is True
        assert result.detail.status_code == 204
        request = script.requests[0]
        assert request.method == "POST"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"content": "hi"}

    async def test_transport_error_then_429_then_success(self, cache, sleeps):
        script = Script(
            httpx.ConnectError("connection refused"),
            httpx.Response(429, json={"retry_after": 0.25}),
            httpx.Response(200, json={"id": "1"}),
        )
        sender = make_sender(script, cache, sleeps, max_attempts_per_proxy=3)
        result = await sender.send(URL, {"content": "hi"}, auto_retry=True)
        assert result.success is True
        assert result.detail.json() == {"id": "1"}
        assert len(script.requests) == 3
        assert sleeps == [0.25]

    async def test_bad_request_is_terminal(self, cache, sleeps):
        script = Script(httpx.Response(400, json={"message": "Invalid Form Body"}), httpx.Response(200))
        sender = make_sender(script, cache, sleeps)
        result = await sender.send(URL, {"content": "hi"})
        assert result.success is False
        assert result.detail.status_code == 400
        assert len(script.requests) == 1
        assert URL not in cache

    @pytest.mark.parametrize("status", [401, 404])
    async def test_auth_rejection_marks_invalid(self, cache, sleeps, status):
        script = Script(httpx.Response(status))
        sender = make_sender(script, cache, sleeps)
        result = await sender.send(URL, {"content": "hi"})
        assert result.success is False
        assert result.detail.status_code == status
        assert cache.is_known_invalid(URL)

        again = await sender.send(URL, {"content": "hi"})
        assert again.success is False
        assert again.detail == INVALID_WEBHOOK_REASON
        assert len(script.requests) == 1

    async def test_rate_limit_without_auto_retry(self, cache, sleeps):
        script = Script(httpx.Response(429, json={"retry_after": 1}))
        sender = make_sender(script, cache, sleeps)
        result = await sender.send(URL, {"content": "hi"}, auto_retry=False)
        assert result.success is False
        assert result.detail.status_code == 429
        assert sleeps == []

    async def test_rate_limit_on_last_attempt_is_terminal(self, cache, sleeps):
        script = Script(httpx.Response(429, json={"retry_after": 1}), httpx.Response(429, json={}))
        sender = make_sender(script, cache, sleeps, max_attempts_per_proxy=2)
        result = await sender.send(URL, {"content": "hi"}, auto_retry=True)
        assert result.success is False
        assert result.detail.status_code == 429
        assert sleeps == [1.0]

    async def test_rate_limit_retries_on_next_proxy(self, cache, sleeps):
        script = Script(httpx.Response(429, json={}), httpx.Response(204))
        sender = make_sender(
            script, cache, sleeps, proxies=["discord.com", "proxy.example"], max_attempts_per_proxy=1
        )
        result = await sender.send(URL, {"content": "hi"}, auto_retry=True)
        assert result.success is True
        assert sleeps == [1.0]
        assert script.requests[1].url.host == "proxy.example"

    async def test_transport_errors_exhaust(self, cache, sleeps):
        script = Script(*[httpx.ReadTimeout("timed out") for _ in range(4)])
        sender = make_sender(
            script, cache, sleeps, proxies=["discord.com", "proxy.example"], max_attempts_per_proxy=2
        )
        result = await sender.send(URL, {"content": "hi"})
        assert result == (False, EXHAUSTED_REASON)
        assert [r.url.host for r in script.requests] == [
            "discord.com", "discord.com", "proxy.example", "proxy.example",
        ]

    async def test_server_errors_retry_by_default(self, cache, sleeps):
        script = Script(httpx.Response(500), httpx.Response(502))
        sender = make_sender(script, cache, sleeps)
        result = await sender.send(URL, {"content": "hi"})
        assert result.detail == EXHAUSTED_REASON
        assert len(script.requests) == 2

    async def test_server_error_fail_policy(self, cache, sleeps):
        script = Script(httpx.Response(500), httpx.Response(204))
        sender = make_sender(script, cache, sleeps, unclassified_status_policy="fail")
        result = await sender.send(URL, {"content": "hi"})
        assert result.success is False
        assert result.detail.status_code == 500
        assert len(script.requests) == 1

    async def test_no_proxies_exhausts_immediately(self, cache, sleeps):
        script = Script()
        sender = make_sender(script, cache, sleeps, proxies=[])
        result = await sender.send(URL, {"content": "hi"})
        assert result.detail == EXHAUSTED_REASON
        assert script.requests == []
