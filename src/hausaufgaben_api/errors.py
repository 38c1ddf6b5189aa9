from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    BACKEND_REQUEST_FAILED = "BACKEND_REQUEST_FAILED"
    ENDPOINT_NOT_FOUND = "ENDPOINT_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.DOCUMENT_NOT_FOUND: 404,
    ErrorCode.BACKEND_REQUEST_FAILED: 500,
    ErrorCode.ENDPOINT_NOT_FOUND: 404,
    ErrorCode.INTERNAL_ERROR: 500,
}


class HausaufgabenError(Exception):
    """Raised by request handlers for all expected failure conditions.

    Caught by server.py and serialised into the JSON (or plain-text) error
    response. Handlers never build error responses themselves.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        timestamp: str,
        backend_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.timestamp = timestamp
        self.backend_code = backend_code
        self.details = details or {}

    @property
    def status_code(self) -> int:
        return _STATUS_BY_CODE[self.code]

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"success": False, "error": self.message}
        if self.backend_code:
            body["code"] = self.backend_code
        body.update(self.details)
        body["timestamp"] = self.timestamp
        return body


class BackendError(Exception):
    """Raised by backend clients when the document store cannot be read.

    Covers network failures, rejected credentials, non-2xx responses and
    bodies that cannot be decoded. ``backend_code`` carries the store's own
    error code (PostgREST ``code`` or Google RPC ``status``) when present.
    """

    def __init__(
        self,
        message: str,
        *,
        backend: str,
        backend_code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.backend = backend
        self.backend_code = backend_code
        self.status_code = status_code
