"""
Error taxonomy for AccessDesk.

Every failure is scoped to the single requested operation. Duplicate grant or
subscription inserts are not errors and never reach this module.
"""

from __future__ import annotations

from typing import Any, Optional


class AccessDeskError(Exception):
    """Base class: carries a stable code and the HTTP status it maps to."""

    code = "ACCESSDESK_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        body = {
            "code": self.code,
            "message": self.message,
            "status": self.status_code,
        }
        if self.details:
            body["details"] = self.details
        return {"error": body}


class ValidationError(AccessDeskError):
    """Malformed input, rejected before any store mutation."""

    code = "VALIDATION_FAILED"
    status_code = 422


class StateError(AccessDeskError):
    """The operation does not apply to the current state of the store."""

    code = "INVALID_STATE"
    status_code = 409


class InvalidStateError(StateError):
    """Acting on an access request that is no longer pending, and similar."""


class NotFoundError(StateError):
    code = "NOT_FOUND"
    status_code = 404


class ReferentialIntegrityError(StateError):
    code = "REFERENTIAL_INTEGRITY"
    status_code = 409


class ConflictError(StateError):
    code = "CONFLICT"
    status_code = 409


class AuthenticationError(AccessDeskError):
    code = "AUTHENTICATION_REQUIRED"
    status_code = 401


class PermissionDeniedError(AccessDeskError):
    code = "PERMISSION_DENIED"
    status_code = 403


class StoreError(AccessDeskError):
    """Transport or availability failure from the entity store. Retryable."""

    code = "STORE_UNAVAILABLE"
    status_code = 503
