"""Refresh policy applied by every endpoint before it answers.

Data endpoints always read through: an expired or empty slot is refreshed
before the response is built. ``/`` and ``/health`` follow the deployment's
``RefreshPolicy``: EAGER refreshes on every call so monitoring shows live
backend state, LAZY treats them like any other read.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from datetime import datetime

    from hausaufgaben_api.cache import DocumentCache
    from hausaufgaben_api.errors import BackendError
    from hausaufgaben_api.models.cache import CacheEntry

log = structlog.get_logger()


class RefreshPolicy(StrEnum):
    EAGER = "eager"
    LAZY = "lazy"


@dataclass(frozen=True)
class CacheRead:
    """What a handler needs to answer one request."""

    entry: CacheEntry
    now: datetime  # Taken before any refresh
    cached: bool  # Served from the slot without contacting the backend
    error: BackendError | None = None

    @property
    def cache_age_seconds(self) -> int:
        if self.entry.fetched_at is None:
            return 0
        return max(0, int((self.now - self.entry.fetched_at).total_seconds()))

    @property
    def cache_age(self) -> str:
        return f"{self.cache_age_seconds} Sekunden"


async def read_through(cache: DocumentCache) -> CacheRead:
    now = cache.now()
    if cache.is_fresh(now):
        log.debug("cache_hit")
        return CacheRead(entry=cache.read(), now=now, cached=True)

    log.info("cache_expired_refreshing", empty=cache.read().is_empty)
    result = await cache.refresh()
    return CacheRead(entry=result.entry, now=now, cached=False, error=result.error)


async def monitoring_read(cache: DocumentCache, policy: RefreshPolicy | str) -> CacheRead:
    if RefreshPolicy(policy) is RefreshPolicy.LAZY:
        return await read_through(cache)

    now = cache.now()
    result = await cache.refresh()
    return CacheRead(entry=result.entry, now=now, cached=False, error=result.error)
