"""Shared test fixtures for the hausaufgaben_api test suite."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from hausaufgaben_api.cache import DocumentCache
from hausaufgaben_api.config import Settings
from hausaufgaben_api.errors import BackendError

T0 = datetime(2026, 10, 19, 7, 30, tzinfo=UTC)

SAMPLE_DOCUMENT: dict[str, Any] = {"math": "p.12", "art": "poster"}


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class FakeBackend:
    """In-memory BackendClient.

    ``document`` is returned on each call (``None`` means not found) unless
    ``error`` is set, in which case it is raised. ``delay`` suspends the call
    so tests can interleave concurrent requests.
    """

    name = "fake"

    def __init__(self, document: dict[str, Any] | None = None) -> None:
        self.document = document
        self.error: Exception | None = None
        self.delay: float = 0.0
        self.calls: list[tuple[str, str | None]] = []

    async def fetch_document(
        self, collection: str, document_id: str | None
    ) -> dict[str, Any] | None:
        self.calls.append((collection, document_id))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return None if self.document is None else dict(self.document)


def backend_error(message: str = "connection refused", code: str | None = None) -> BackendError:
    return BackendError(message, backend="fake", backend_code=code)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend(dict(SAMPLE_DOCUMENT))


@pytest.fixture()
def cache(backend: FakeBackend, clock: FakeClock) -> DocumentCache:
    return DocumentCache(backend, collection="Hausaufgaben", clock=clock)


@pytest.fixture()
def settings() -> Settings:
    """Settings that satisfy the Supabase backend without touching the environment."""
    return Settings(
        backend={"kind": "supabase", "url": "https://demo.supabase.co", "key": "anon-key"},
    )
