from __future__ import annotations

from hausaufgaben_api.models.cache import CacheEntry, CacheStatus, format_timestamp

__all__ = [
    "CacheEntry",
    "CacheStatus",
    "format_timestamp",
]
