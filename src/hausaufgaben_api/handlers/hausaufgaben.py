"""Handlers for ``/api/hausaufgaben`` and ``/api/hausaufgaben/today``."""

from __future__ import annotations

from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

import structlog

from hausaufgaben_api.handlers import require_document
from hausaufgaben_api.models.cache import format_timestamp
from hausaufgaben_api.policy import read_through

if TYPE_CHECKING:
    from datetime import datetime

    from hausaufgaben_api.policy import CacheRead
    from hausaufgaben_api.state import AppState

TODAY_NOT_FOUND_MESSAGE = "Keine Hausaufgaben für heute gefunden"


def format_local_date(moment: datetime, timezone: str) -> str:
    """German short date without padding, e.g. ``5.1.2026``."""
    local = moment.astimezone(ZoneInfo(timezone))
    return f"{local.day}.{local.month}.{local.year}"


def _success_body(read: CacheRead, document: dict, source: str) -> dict:
    fetched_at = read.entry.fetched_at or read.now
    return {
        "success": True,
        "data": document,
        "timestamp": format_timestamp(fetched_at),
        "source": source,
        "cached": read.cached,
        "cacheAge": read.cache_age,
    }


async def handle(state: AppState) -> dict:
    """Return the homework document, refreshing the cache when it expired."""
    log = structlog.get_logger().bind(handler="hausaufgaben")
    read = await read_through(state.cache)
    document = require_document(read)
    log.info("document_served", cached=read.cached, cache_age=read.cache_age_seconds)
    return _success_body(read, document, state.cache.source)


async def handle_today(state: AppState) -> dict:
    """Same document as ``handle``, labelled with today's local date."""
    log = structlog.get_logger().bind(handler="hausaufgaben_today")
    read = await read_through(state.cache)
    date = format_local_date(read.now, state.settings.timezone)
    document = require_document(
        read,
        not_found_message=TODAY_NOT_FOUND_MESSAGE,
        details={"filter": "today", "date": date},
    )
    log.info("document_served", cached=read.cached, date=date)
    return {**_success_body(read, document, state.cache.source), "filter": "today", "date": date}
