"""Firestore backend via the public REST API.

Authenticates with the web API key, the same way the Firebase web SDK does.
The auth domain is sent as ``Referer`` so keys restricted to the Firebase
hosting domain are accepted.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog

from hausaufgaben_api.errors import BackendError

log = structlog.get_logger()

FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"


def decode_value(value: dict[str, Any]) -> Any:
    """Convert one typed Firestore value (``{"stringValue": "x"}``) to plain JSON."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])  # int64 is transported as a string
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(item) for item in value["arrayValue"].get("values", [])]
    if "geoPointValue" in value:
        point = value["geoPointValue"]
        return {"latitude": point.get("latitude", 0.0), "longitude": point.get("longitude", 0.0)}
    for key in ("stringValue", "timestampValue", "referenceValue", "bytesValue"):
        if key in value:
            return value[key]
    raise ValueError(f"Unknown Firestore value type: {sorted(value)}")


def decode_fields(fields: dict[str, dict[str, Any]]) -> dict[str, Any]:
    return {name: decode_value(value) for name, value in fields.items()}


class FirestoreBackend:
    """Reads a single document by path."""

    name = "firestore"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        project_id: str,
        api_key: str,
        auth_domain: str,
        database: str = "(default)",
    ) -> None:
        self._client = client
        self._documents_url = (
            f"{FIRESTORE_BASE_URL}/projects/{quote(project_id, safe='')}"
            f"/databases/{quote(database, safe='()')}/documents"
        )
        self._api_key = api_key
        self._referer = f"https://{auth_domain}/"

    async def fetch_document(
        self, collection: str, document_id: str | None
    ) -> dict[str, Any] | None:
        if not document_id:
            raise BackendError("Firestore reads need a document id", backend=self.name)

        url = f"{self._documents_url}/{quote(collection, safe='')}/{quote(document_id, safe='')}"
        try:
            response = await self._client.get(
                url,
                params={"key": self._api_key},
                headers={"Referer": self._referer},
            )
        except httpx.HTTPError as exc:
            raise BackendError(
                f"Network error reading {collection}/{document_id} from Firestore: {exc}",
                backend=self.name,
            ) from exc

        if response.status_code == 404:
            log.debug("firestore_document_missing", collection=collection, document_id=document_id)
            return None

        if not response.is_success:
            raise _error_from_response(response)

        try:
            body = response.json()
            return decode_fields(body.get("fields", {}))
        except (ValueError, AttributeError, TypeError) as exc:
            raise BackendError(
                f"Firestore returned an undecodable document: {exc}",
                backend=self.name,
                status_code=response.status_code,
            ) from exc


def _error_from_response(response: httpx.Response) -> BackendError:
    """Build a BackendError from a Google RPC error body ``{"error": {status, message}}``."""
    code: str | None = None
    message = f"HTTP {response.status_code} from Firestore"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        error = body["error"]
        code = error.get("status") or None
        message = error.get("message") or message
    return BackendError(
        message,
        backend="firestore",
        backend_code=code,
        status_code=response.status_code,
    )
