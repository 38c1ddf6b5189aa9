"""Integration test fixtures.

Provides a Starlette app wired to an in-memory backend and a fake clock, and
an httpx client talking to it over ASGI. Backend, clock and settings fixtures
come from tests/conftest.py.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from hausaufgaben_api.cache import DocumentCache
from hausaufgaben_api.server import create_app
from hausaufgaben_api.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.applications import Starlette

    from hausaufgaben_api.config import Settings


@pytest.fixture()
def app_state(settings: Settings, cache: DocumentCache) -> AppState:
    return AppState(settings=settings, cache=cache)


@pytest.fixture()
def app(app_state: AppState) -> Starlette:
    return create_app(app_state)


@pytest.fixture()
async def client(app: Starlette) -> AsyncIterator[httpx.AsyncClient]:
    # The lifespan is not run: the tests control when the backend is called.
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://localhost") as client:
        yield client
