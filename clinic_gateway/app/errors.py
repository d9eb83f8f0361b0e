"""
Error taxonomy for the practice gateway.

Every expected failure is a ServiceError subclass carrying a stable error
code, a short human-readable message, and the HTTP status the routes map it
to. The response body shape is always {"error": code, "message": message},
the same shape used by the auth layer's HTTPException details.

Services raise these for validation failures before any I/O. Services that
front the relational/object stores return them inside a ServiceResult
instead of raising (see services/results.py).
"""

from typing import Any, Dict


class ServiceError(Exception):
    """Base class for all expected service failures."""

    code = "service_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class ValidationError(ServiceError):
    """Bad input shape or empty required field."""

    code = "validation_error"
    status_code = 422


class ConflictError(ServiceError):
    """Unique-constraint violation, e.g. a duplicate role name."""

    code = "conflict"
    status_code = 409


class AuthError(ServiceError):
    """Missing or invalid session."""

    code = "unauthorized"
    status_code = 401


class PermissionDenied(ServiceError):
    """Authenticated, but not allowed to perform the operation."""

    code = "forbidden"
    status_code = 403


class NotFoundError(ServiceError):
    """Missing row (or a row owned by another tenant)."""

    code = "not_found"
    status_code = 404


class StorageError(ServiceError):
    """Object store upload/download/remove failure."""

    code = "storage_error"
    status_code = 502


class UnknownError(ServiceError):
    """Unexpected exception. The original message is logged, not returned."""

    code = "internal_error"
    status_code = 500


class ProviderError(ServiceError):
    """The video provider rejected or failed a request."""

    code = "provider_error"
    status_code = 502
