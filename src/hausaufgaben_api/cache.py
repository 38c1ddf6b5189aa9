"""In-memory cache slot for the homework document.

One ``DocumentCache`` lives for the whole process and is shared through
``AppState``. It holds a single ``CacheEntry`` and replaces it wholesale on
every successful refresh. Backend failures never cross ``refresh()``: they are
logged, remembered as ``last_error`` and returned in the ``RefreshResult``,
while the previous entry stays servable.

A failed refresh does not advance ``fetched_at``, so an expired slot is
retried on every request until the backend answers again.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from hausaufgaben_api.errors import BackendError
from hausaufgaben_api.models.cache import CacheEntry, CacheStatus

if TYPE_CHECKING:
    from collections.abc import Callable

    from hausaufgaben_api.protocols import BackendClient

log = structlog.get_logger()

CACHE_DURATION = timedelta(seconds=30)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of one refresh: the current entry plus the error, if any."""

    entry: CacheEntry
    error: BackendError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DocumentCache:
    """Single-slot TTL cache in front of a ``BackendClient``."""

    def __init__(
        self,
        backend: BackendClient,
        *,
        collection: str,
        document_id: str | None = None,
        coalesce_refreshes: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._backend = backend
        self._collection = collection
        self._document_id = document_id
        self._coalesce = coalesce_refreshes
        self._clock = clock
        self._entry = CacheEntry()
        self._inflight: asyncio.Task[RefreshResult] | None = None
        self.last_error: BackendError | None = None

    @property
    def source(self) -> str:
        return self._backend.name

    def now(self) -> datetime:
        return self._clock()

    def read(self) -> CacheEntry:
        return self._entry

    def is_fresh(self, now: datetime) -> bool:
        fetched_at = self._entry.fetched_at
        return fetched_at is not None and now - fetched_at <= CACHE_DURATION

    def status(self, now: datetime) -> CacheStatus:
        if self.last_error is not None:
            return CacheStatus.ERROR
        if self._entry.is_empty:
            return CacheStatus.EMPTY
        return CacheStatus.FRESH if self.is_fresh(now) else CacheStatus.STALE

    async def refresh(self) -> RefreshResult:
        """Fetch the document and overwrite the slot.

        With coalescing enabled, callers arriving while a fetch is in flight
        await that same fetch instead of starting another one.
        """
        if not self._coalesce:
            return await self._fetch_and_store()

        task = self._inflight
        if task is None:
            task = asyncio.create_task(self._fetch_and_store())
            self._inflight = task
            task.add_done_callback(self._clear_inflight)
        else:
            log.debug("cache_refresh_joined")
        # Shielded: a cancelled request must not cancel the fetch other callers await.
        return await asyncio.shield(task)

    def _clear_inflight(self, task: asyncio.Task[RefreshResult]) -> None:
        if self._inflight is task:
            self._inflight = None

    async def _fetch_and_store(self) -> RefreshResult:
        log.info(
            "cache_refresh_started",
            source=self.source,
            collection=self._collection,
            document_id=self._document_id,
        )
        try:
            document = await self._backend.fetch_document(self._collection, self._document_id)
        except BackendError as exc:
            self.last_error = exc
            log.warning(
                "cache_refresh_failed",
                source=exc.backend,
                backend_code=exc.backend_code,
                status_code=exc.status_code,
                message=exc.message,
            )
            return RefreshResult(entry=self._entry, error=exc)

        self._entry = CacheEntry(document=document, fetched_at=self._clock())
        self.last_error = None
        if document is None:
            log.info("cache_refresh_not_found", source=self.source, collection=self._collection)
        else:
            log.info("cache_refresh_complete", source=self.source, field_count=len(document))
        return RefreshResult(entry=self._entry)
