"""HTTP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Fail fast on missing backend configuration
- Build AppState and the Starlette app (routes, middleware, error handlers)
- Warm the cache and close the HTTP client via the lifespan
- Start uvicorn
"""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import asynccontextmanager, suppress
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

import hausaufgaben_api.handlers.hausaufgaben as h_hausaufgaben
import hausaufgaben_api.handlers.status as h_status
import hausaufgaben_api.handlers.text as h_text
from hausaufgaben_api import __version__
from hausaufgaben_api.backends import build_backend, build_http_client
from hausaufgaben_api.cache import DocumentCache
from hausaufgaben_api.config import Settings
from hausaufgaben_api.errors import ErrorCode, HausaufgabenError
from hausaufgaben_api.models.cache import format_timestamp
from hausaufgaben_api.state import AppState
from hausaufgaben_api.transport import (
    NO_STORE_HEADERS,
    NoStoreHeadersMiddleware,
    run_http_server,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# State and lifespan
# ---------------------------------------------------------------------------


def build_state(settings: Settings) -> AppState:
    """Create the shared HTTP client, backend and cache slot."""
    http_client = build_http_client(settings.backend.timeout_seconds)
    backend = build_backend(settings.backend, http_client)
    cache = DocumentCache(
        backend,
        collection=settings.backend.collection,
        document_id=settings.backend.document_id,
        coalesce_refreshes=settings.cache.coalesce_refreshes,
    )
    return AppState(settings=settings, cache=cache, http_client=http_client)


@asynccontextmanager
async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
    """Warm the cache at startup; release the HTTP client at shutdown."""
    state: AppState = app.state.hausaufgaben
    log.info(
        "server_started",
        version=__version__,
        source=state.cache.source,
        policy=state.settings.cache.policy,
    )

    if state.settings.cache.warm_on_startup:
        state.warmup_task = asyncio.create_task(state.cache.refresh())

    try:
        yield
    finally:
        if state.warmup_task is not None and not state.warmup_task.done():
            state.warmup_task.cancel()
            with suppress(asyncio.CancelledError):
                await state.warmup_task
        if state.http_client is not None:
            await state.http_client.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def _state(request: Request) -> AppState:
    return request.app.state.hausaufgaben


def _log_request_error(request: Request, exc: HausaufgabenError) -> None:
    log.warning(
        "request_error",
        path=request.url.path,
        code=exc.code,
        message=exc.message,
        backend_code=exc.backend_code,
    )


async def root(request: Request) -> Response:
    return JSONResponse(await h_status.handle_root(_state(request)))


async def health(request: Request) -> Response:
    return JSONResponse(await h_status.handle_health(_state(request)))


async def hausaufgaben(request: Request) -> Response:
    try:
        body = await h_hausaufgaben.handle(_state(request))
    except HausaufgabenError as exc:
        _log_request_error(request, exc)
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)
    return JSONResponse(body)


async def hausaufgaben_today(request: Request) -> Response:
    try:
        body = await h_hausaufgaben.handle_today(_state(request))
    except HausaufgabenError as exc:
        _log_request_error(request, exc)
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)
    return JSONResponse(body)


async def hausaufgaben_text(request: Request) -> Response:
    try:
        text = await h_text.handle(_state(request))
    except HausaufgabenError as exc:
        _log_request_error(request, exc)
        return PlainTextResponse(f"{exc.message}\n", status_code=exc.status_code)
    return PlainTextResponse(text)


async def _not_found(request: Request, _exc: Exception) -> Response:
    return JSONResponse(
        {
            "success": False,
            "error": "Endpoint nicht gefunden",
            "code": ErrorCode.ENDPOINT_NOT_FOUND,
            "path": request.url.path,
        },
        status_code=404,
    )


async def _unexpected_error(request: Request, _exc: Exception) -> Response:
    log.error("request_unexpected_error", path=request.url.path, exc_info=True)
    # Rendered by ServerErrorMiddleware, outside the user middleware stack.
    headers = NO_STORE_HEADERS if request.url.path.startswith("/api/") else None
    return JSONResponse(
        {
            "success": False,
            "error": "Interner Serverfehler",
            "code": ErrorCode.INTERNAL_ERROR,
            "timestamp": format_timestamp(_state(request).cache.now()),
        },
        status_code=500,
        headers=headers,
    )


def create_app(state: AppState) -> Starlette:
    """Build the Starlette app around an already wired AppState."""
    routes = [
        Route("/", root, methods=["GET"]),
        Route("/health", health, methods=["GET"]),
        Route("/api/hausaufgaben", hausaufgaben, methods=["GET"]),
        Route("/api/hausaufgaben/today", hausaufgaben_today, methods=["GET"]),
        Route("/api/hausaufgaben/text", hausaufgaben_text, methods=["GET"]),
    ]
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=state.settings.server.cors_origins,
            allow_methods=["GET"],
            allow_headers=["*"],
        ),
        Middleware(NoStoreHeadersMiddleware, path_prefix="/api/"),
    ]
    app = Starlette(
        routes=routes,
        middleware=middleware,
        exception_handlers={404: _not_found, Exception: _unexpected_error},
        lifespan=lifespan,
    )
    app.state.hausaufgaben = state
    return app


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()
    _setup_logging(settings)

    missing = settings.missing_backend_keys()
    if missing:
        log.error("missing_configuration", backend=settings.backend.kind, missing=missing)
        sys.exit(1)

    app = create_app(build_state(settings))
    run_http_server(app, settings)


if __name__ == "__main__":
    main()
