from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict


class CacheStatus(StrEnum):
    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"
    ERROR = "error"  # Most recent refresh failed; the entry itself is untouched


class CacheEntry(BaseModel):
    """Snapshot of the cache slot. Replaced as a whole on every refresh."""

    model_config = ConfigDict(frozen=True)

    document: dict[str, Any] | None = None  # None: never fetched, or not found
    fetched_at: datetime | None = None

    @property
    def is_empty(self) -> bool:
        """True until the first refresh has completed."""
        return self.fetched_at is None

    @property
    def found(self) -> bool:
        return self.document is not None


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision: ``2026-10-19T07:30:00.000Z``."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
