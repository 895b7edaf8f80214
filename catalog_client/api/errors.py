"""Client failure taxonomy and error envelope helpers."""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any


class ClientErrorCode(StrEnum):
    """Machine-readable failure codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    AUTH_MISSING_TOKEN = "AUTH_MISSING_TOKEN"
    AUTH_FORBIDDEN = "AUTH_FORBIDDEN"
    DRAFT_NOT_OPEN = "DRAFT_NOT_OPEN"
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"
    SESSION_SUPERSEDED = "SESSION_SUPERSEDED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ClientFailure(Exception):
    """Base failure surfaced to the action that triggered it."""

    error_code: ClientErrorCode = ClientErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NetworkFailure(ClientFailure):
    """Request could not complete (connection, timeout, unreadable body)."""

    error_code = ClientErrorCode.NETWORK_ERROR


class ApiFailure(ClientFailure):
    """Backend answered with a non-success status and error envelope."""

    def __init__(self, status: int, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.details = details

    @property
    def error_code(self) -> str:  # type: ignore[override]
        return f"HTTP_{self.status}"

    def __repr__(self) -> str:
        return f"ApiFailure(status={self.status}, message={self.message!r})"


class ValidationFailure(ClientFailure):
    """Client-side check failed before any network call."""

    error_code = ClientErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        *,
        error_code: ClientErrorCode = ClientErrorCode.VALIDATION_ERROR,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code


def parse_error_envelope(text: str, status: int) -> ApiFailure:
    """Build an ``ApiFailure`` from a raw error response body.

    The backend answers errors as ``{"error": {"message": ..., "details": ...}}``.
    Anything else (empty body, HTML from a proxy, malformed JSON) falls back to
    a generic message derived from the status code.
    """
    fallback = f"Request failed with status {status}"
    if not text.strip():
        return ApiFailure(status, fallback)
    try:
        payload = json.loads(text)
    except ValueError:
        return ApiFailure(status, fallback)

    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return ApiFailure(status, fallback)
    message = str(error.get("message") or "").strip() or fallback
    return ApiFailure(status, message, error.get("details"))


_VALIDATION_STATUS = {
    ClientErrorCode.AUTH_MISSING_TOKEN: 401,
    ClientErrorCode.AUTH_FORBIDDEN: 403,
    ClientErrorCode.ENTITY_NOT_FOUND: 404,
    ClientErrorCode.DRAFT_NOT_OPEN: 409,
    ClientErrorCode.SESSION_SUPERSEDED: 409,
}


def failure_status(exc: ClientFailure) -> int:
    """Map a client failure onto the HTTP status reported by the local agent."""
    if isinstance(exc, ApiFailure):
        return exc.status
    if isinstance(exc, NetworkFailure):
        return 502
    if isinstance(exc, ValidationFailure):
        return _VALIDATION_STATUS.get(exc.error_code, 422)
    return 500


def to_error_payload(exc: ClientFailure) -> dict[str, str]:
    """Normalize a client failure into a stable JSON error payload."""
    return {"error_code": str(exc.error_code), "message": exc.message}
