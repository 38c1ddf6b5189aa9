"""Supabase (PostgREST) backend.

Reads the homework row from ``{url}/rest/v1/{table}``. The table is expected
to hold exactly one row, or one row per ``id`` when a document id is set.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from hausaufgaben_api.errors import BackendError

log = structlog.get_logger()

# PostgREST's code for "JSON object requested, multiple (or no) rows returned"
_SINGLE_ROW_VIOLATION = "PGRST116"


class SupabaseBackend:
    """Reads a single row through the PostgREST API."""

    name = "supabase"

    def __init__(self, client: httpx.AsyncClient, *, url: str, key: str) -> None:
        self._client = client
        self._rest_url = f"{url.rstrip('/')}/rest/v1"
        self._key = key

    async def fetch_document(
        self, collection: str, document_id: str | None
    ) -> dict[str, Any] | None:
        params = {"select": "*", "limit": "2"}
        if document_id is not None:
            params["id"] = f"eq.{document_id}"

        try:
            response = await self._client.get(
                f"{self._rest_url}/{collection}",
                params=params,
                headers={
                    "apikey": self._key,
                    "Authorization": f"Bearer {self._key}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as exc:
            raise BackendError(
                f"Network error reading {collection} from Supabase: {exc}",
                backend=self.name,
            ) from exc

        if not response.is_success:
            raise _error_from_response(response)

        try:
            rows = response.json()
        except ValueError as exc:
            raise BackendError(
                "Supabase returned a body that is not JSON",
                backend=self.name,
                status_code=response.status_code,
            ) from exc

        if not isinstance(rows, list):
            raise BackendError(
                "Supabase returned an unexpected payload (expected a list of rows)",
                backend=self.name,
                status_code=response.status_code,
            )

        log.debug("supabase_rows_received", table=collection, row_count=len(rows))

        if not rows:
            return None
        if len(rows) > 1:
            raise BackendError(
                "JSON object requested, multiple (or no) rows returned",
                backend=self.name,
                backend_code=_SINGLE_ROW_VIOLATION,
                status_code=response.status_code,
            )
        return rows[0]


def _error_from_response(response: httpx.Response) -> BackendError:
    """Build a BackendError from a PostgREST error body ``{code, message, ...}``."""
    code: str | None = None
    message = f"HTTP {response.status_code} from Supabase"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        code = body.get("code") or None
        message = body.get("message") or message
    return BackendError(
        message,
        backend="supabase",
        backend_code=code,
        status_code=response.status_code,
    )
