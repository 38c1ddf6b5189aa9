"""Handlers for ``/`` and ``/health``.

Both run the monitoring read, so under the eager policy every call reaches
the backend. A failed refresh is logged by the cache and otherwise only
shows up as ``cacheStatus: "error"``; these endpoints always answer 200.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from hausaufgaben_api.models.cache import format_timestamp
from hausaufgaben_api.policy import monitoring_read

if TYPE_CHECKING:
    from hausaufgaben_api.state import AppState

ENDPOINTS = [
    "/api/hausaufgaben - Alle Hausaufgaben",
    "/api/hausaufgaben/today - Heutige Hausaufgaben",
    "/api/hausaufgaben/text - Hausaufgaben als Text",
    "/health - Server Status",
]


async def handle_root(state: AppState) -> dict:
    read = await monitoring_read(state.cache, state.settings.cache.policy)
    fetched_at = read.entry.fetched_at
    return {
        "message": "Hausaufgaben API für Chatbase läuft",
        "endpoints": ENDPOINTS,
        "lastDataUpdate": format_timestamp(fetched_at) if fetched_at else "Noch nicht geladen",
    }


async def handle_health(state: AppState) -> dict:
    read = await monitoring_read(state.cache, state.settings.cache.policy)
    now = state.cache.now()
    fetched_at = read.entry.fetched_at
    return {
        "status": "OK",
        "timestamp": format_timestamp(now),
        "dataStatus": "Loaded" if read.entry.found else "Not loaded",
        "lastDataFetch": format_timestamp(fetched_at) if fetched_at else "Never",
        "cacheStatus": state.cache.status(now),
    }
