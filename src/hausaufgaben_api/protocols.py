"""Protocol interfaces for swappable components.

The cache and the request handlers reference ``BackendClient``, never a
concrete document store. This allows:
- Tests to use a lightweight in-memory backend
- Supabase and Firestore deployments to share the same cache and routes
"""

from __future__ import annotations

from typing import Any, Protocol


class BackendClient(Protocol):
    """Interface for the document store holding the homework document."""

    #: Short backend name reported as ``source`` in API responses.
    name: str

    async def fetch_document(
        self, collection: str, document_id: str | None
    ) -> dict[str, Any] | None:
        """Return the document's fields, or ``None`` if it does not exist.

        Raises ``BackendError`` on connectivity, auth and protocol failures.
        """
        ...
