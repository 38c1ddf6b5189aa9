"""Application state container.

AppState is created once by ``server.build_state`` and attached to the
Starlette app; every request handler receives it explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import asyncio

    import httpx

    from hausaufgaben_api.cache import DocumentCache, RefreshResult
    from hausaufgaben_api.config import Settings


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every request handler."""

    settings: Settings
    cache: DocumentCache
    http_client: httpx.AsyncClient | None = None
    warmup_task: asyncio.Task[RefreshResult] | None = None
