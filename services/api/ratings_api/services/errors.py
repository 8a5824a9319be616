"""Service-level errors.

Services raise these; main.py renders them in the structured error format:
{ "error": { "code": str, "message": str, "detail": object | null } }
"""

from __future__ import annotations

from typing import Any


class ServiceError(RuntimeError):
    """Base class for errors that map to an HTTP response."""

    status_code = 500
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: str | None = None, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail = detail

    def to_payload(self) -> dict[str, Any]:
        return {"error": {"code": self.code, "message": self.message, "detail": self.detail}}


class ValidationFailed(ServiceError):
    status_code = 400
    default_code = "VALIDATION_ERROR"


class AuthenticationFailed(ServiceError):
    status_code = 401
    default_code = "NOT_AUTHENTICATED"


class PermissionDenied(ServiceError):
    status_code = 403
    default_code = "INSUFFICIENT_PERMISSIONS"


class NotFound(ServiceError):
    status_code = 404
    default_code = "NOT_FOUND"


class Conflict(ServiceError):
    status_code = 409
    default_code = "CONFLICT"
