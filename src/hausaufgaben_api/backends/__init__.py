"""Document store clients.

Every backend receives the shared ``httpx.AsyncClient`` via constructor
injection; the application lifespan owns the client lifecycle.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from hausaufgaben_api import __version__
from hausaufgaben_api.backends.firestore import FirestoreBackend
from hausaufgaben_api.backends.supabase import SupabaseBackend

if TYPE_CHECKING:
    from hausaufgaben_api.config import BackendSettings
    from hausaufgaben_api.protocols import BackendClient

__all__ = [
    "FirestoreBackend",
    "SupabaseBackend",
    "build_backend",
    "build_http_client",
]


def build_http_client(timeout_seconds: float = 30.0) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        headers={"User-Agent": f"hausaufgaben-api/{__version__}"},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def build_backend(settings: BackendSettings, client: httpx.AsyncClient) -> BackendClient:
    """Wire the configured backend. Assumes required keys were validated."""
    if settings.kind == "firestore":
        if not (settings.project_id and settings.api_key and settings.auth_domain):
            raise ValueError("Firestore needs project_id, api_key and auth_domain")
        return FirestoreBackend(
            client,
            project_id=settings.project_id,
            api_key=settings.api_key.get_secret_value(),
            auth_domain=settings.auth_domain,
            database=settings.database,
        )

    if not (settings.url and settings.key):
        raise ValueError("Supabase needs url and key")
    return SupabaseBackend(client, url=settings.url, key=settings.key.get_secret_value())
