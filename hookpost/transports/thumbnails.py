"""Roblox user thumbnail lookup through API proxies."""

from __future__ import annotations

from typing import Literal

import httpx

from hookpost.config import ThumbnailConfig
from hookpost.utils.logging import get_logger

log = get_logger(__name__)

ThumbnailType = Literal["avatar-headshot", "avatar-bust", "avatar"]
ThumbnailSize = Literal[
    "48x48", "50x50", "60x60", "75x75", "100x100", "110x110",
    "150x150", "180x180", "352x352", "420x420", "720x720",
]
ThumbnailFormat = Literal["Png", "Jpeg", "Webp"]


async def api_get(
    client: httpx.AsyncClient, config: ThumbnailConfig, subdomain: str, path: str
) -> httpx.Response | None:
    """GET a Roblox API path, trying each proxy until one answers with 2xx."""
    for template in config.proxy_urls:
        url = template.format(subdomain=subdomain, path=path)
        for attempt in range(1, config.max_attempts_per_proxy + 1):
            try:
                response = await client.get(url, timeout=config.timeout)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                log.debug("roblox_api_transport_error", url=url, attempt=attempt, error=str(e))
                continue
            if response.is_success:
                return response
            log.debug("roblox_api_bad_status", url=url, attempt=attempt, status=response.status_code)
    return None


async def get_user_thumbnail(
    client: httpx.AsyncClient,
    config: ThumbnailConfig,
    user_id: int,
    thumbnail_type: ThumbnailType = "avatar",
    size: ThumbnailSize = "48x48",
    image_format: ThumbnailFormat = "Png",
    circular: bool = False,
) -> str:
    """Return the image URL of a user's thumbnail, or the fallback URL."""
    path = (
        f"/v1/users/{thumbnail_type}?userIds={user_id}"
        f"&size={size}&format={image_format}&isCircular={str(circular).lower()}"
    )
    response = await api_get(client, config, "thumbnails", path)
    if response is None:
        log.warning("thumbnail_lookup_failed", user_id=user_id)
        return config.fallback_url

    try:
        image_url = response.json()["data"][0]["imageUrl"]
    except (ValueError, KeyError, IndexError, TypeError):
        log.warning("thumbnail_response_malformed", user_id=user_id, body=response.text[:200])
        return config.fallback_url

    if not isinstance(image_url, str) or not image_url:
        # Moderated or still-rendering thumbnails come back without a URL
        log.warning("thumbnail_unavailable", user_id=user_id)
        return config.fallback_url
    return image_url
