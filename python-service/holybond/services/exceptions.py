"""Failure kinds raised by the service layer.

Each kind carries the HTTP status routers answer with, so the mapping lives in
one place and services stay free of FastAPI types.
"""

from __future__ import annotations


class ServiceError(Exception):
    status_code: int = 400
    code: str = "error"

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.code)
        self.detail = detail or self.code


class AuthRequiredError(ServiceError):
    status_code = 401
    code = "auth_required"


class ForbiddenError(ServiceError):
    status_code = 403
    code = "forbidden"


class RoleForbiddenError(ForbiddenError):
    code = "role_forbidden"


class AdminNotAllowedError(RoleForbiddenError):
    """The admin account never takes part in matchmaking."""

    code = "admin_not_allowed"


class SelfActionForbiddenError(ServiceError):
    status_code = 400
    code = "self_action_forbidden"


class NotFoundError(ServiceError):
    status_code = 404
    code = "not_found"


class DuplicateEmailError(ServiceError):
    status_code = 409
    code = "duplicate_email"


class InvalidCredentialError(ServiceError):
    status_code = 401
    code = "invalid_credential"


class ValidationFailedError(ServiceError):
    status_code = 400
    code = "validation_error"


class StorageExceededError(ServiceError):
    status_code = 507
    code = "storage_exceeded"


class ConflictError(ServiceError):
    """A write kept losing its compare-and-set race and was abandoned."""

    status_code = 409
    code = "conflict"


__all__ = [
    "AdminNotAllowedError",
    "AuthRequiredError",
    "ConflictError",
    "DuplicateEmailError",
    "ForbiddenError",
    "InvalidCredentialError",
    "NotFoundError",
    "RoleForbiddenError",
    "SelfActionForbiddenError",
    "ServiceError",
    "StorageExceededError",
    "ValidationFailedError",
]
