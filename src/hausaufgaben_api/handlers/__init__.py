"""Request handlers.

Each handler receives AppState, applies the refresh policy and returns a
plain dict (or text). No Starlette imports; server.py handles the HTTP
wiring and serialises ``HausaufgabenError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from hausaufgaben_api.errors import ErrorCode, HausaufgabenError
from hausaufgaben_api.models.cache import format_timestamp

if TYPE_CHECKING:
    from hausaufgaben_api.policy import CacheRead

NOT_FOUND_MESSAGE = "Keine Hausaufgaben gefunden"


def require_document(
    read: CacheRead,
    *,
    not_found_message: str = NOT_FOUND_MESSAGE,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Return the cached document or raise the matching HausaufgabenError."""
    if read.error is not None:
        raise HausaufgabenError(
            ErrorCode.BACKEND_REQUEST_FAILED,
            read.error.message,
            timestamp=format_timestamp(read.now),
            backend_code=read.error.backend_code,
        )

    document = read.entry.document
    if document is None:
        # A cached not-found keeps the time it was fetched.
        fetched_at = read.entry.fetched_at or read.now
        raise HausaufgabenError(
            ErrorCode.DOCUMENT_NOT_FOUND,
            not_found_message,
            timestamp=format_timestamp(fetched_at),
            details=details,
        )
    return document
