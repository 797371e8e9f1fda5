"""Endpoints known to be permanently invalid (401/404 from Discord)."""

from __future__ import annotations

from hookpost.utils.logging import get_logger

log = get_logger(__name__)


class InvalidEndpointCache:
    """Append-only set of webhook URLs. Entries never expire.

    A webhook that starts working again is only retried after a restart
    (or with a fresh cache instance).
    """

    def __init__(self) -> None:
        self._endpoints: set[str] = set()

    def is_known_invalid(self, endpoint: str) -> bool:
        return endpoint in self._endpoints

    def mark_invalid(self, endpoint: str) -> None:
        if endpoint not in self._endpoints:
            log.info("webhook_marked_invalid", endpoint=endpoint)
        self._endpoints.add(endpoint)

    def __contains__(self, endpoint: object) -> bool:
        return endpoint in self._endpoints

    def __len__(self) -> int:
        return len(self._endpoints)


# Shared by every client that isn't given its own cache
default_cache = InvalidEndpointCache()
