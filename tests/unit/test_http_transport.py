"""Tests for NoStoreHeadersMiddleware and the uvicorn runner.

The middleware is exercised directly via httpx's ASGI transport so no real
server is started. The inner app is a trivial 200-OK echo.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import httpx
import pytest

from hausaufgaben_api.config import Settings
from hausaufgaben_api.transport import (
    NO_STORE_HEADERS,
    NoStoreHeadersMiddleware,
    run_http_server,
)

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _ok_app(scope: Scope, receive: Receive, send: Send) -> None:
    """Minimal ASGI app that always returns 200 OK with a caching header."""
    await send(
        {
            "type": "http.response.start",
            "status": 200,
            "headers": [(b"cache-control", b"max-age=600")],
        }
    )
    await send({"type": "http.response.body", "body": b"ok"})


def _client(app: ASGIApp) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://localhost",
    )


# ---------------------------------------------------------------------------
# NoStoreHeadersMiddleware
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("path", ["/api/hausaufgaben", "/api/hausaufgaben/text", "/api/unknown"])
async def test_api_paths_get_no_store_headers(path: str) -> None:
    app = NoStoreHeadersMiddleware(_ok_app)
    async with _client(app) as client:
        response = await client.get(path)
    assert response.status_code == 200
    for name, value in NO_STORE_HEADERS.items():
        assert response.headers[name] == value


async def test_existing_cache_control_is_replaced() -> None:
    app = NoStoreHeadersMiddleware(_ok_app)
    async with _client(app) as client:
        response = await client.get("/api/hausaufgaben")
    assert response.headers.get_list("cache-control") == ["no-cache, no-store, must-revalidate"]


@pytest.mark.parametrize("path", ["/", "/health", "/apiary"])
async def test_other_paths_untouched(path: str) -> None:
    app = NoStoreHeadersMiddleware(_ok_app)
    async with _client(app) as client:
        response = await client.get(path)
    assert response.headers["cache-control"] == "max-age=600"
    assert "expires" not in response.headers


async def test_custom_prefix() -> None:
    app = NoStoreHeadersMiddleware(_ok_app, path_prefix="/v2/")
    async with _client(app) as client:
        api = await client.get("/api/hausaufgaben")
        v2 = await client.get("/v2/hausaufgaben")
    assert api.headers["cache-control"] == "max-age=600"
    assert v2.headers["expires"] == "0"


# ---------------------------------------------------------------------------
# run_http_server
# ---------------------------------------------------------------------------


def test_run_http_server_uses_configured_address() -> None:
    settings = Settings(server={"host": "127.0.0.1", "port": 3100})
    with patch("hausaufgaben_api.transport.uvicorn.run") as mock_run:
        run_http_server(_ok_app, settings)

    mock_run.assert_called_once_with(_ok_app, host="127.0.0.1", port=3100, log_config=None)
