"""Error taxonomy shared by the service and HTTP layers.

Each error carries a client-safe ``message`` plus the ``kind`` and HTTP
``status_code`` the endpoint layer answers with.
"""
from __future__ import annotations

from enum import Enum
from http import HTTPStatus


class ErrorKind(Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    AUTH = "auth"
    INTERNAL = "internal"


class AppError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message: str = "internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"message": self.message}


class ValidationError(AppError):
    """Malformed or missing input. Always fixable by the client."""
    kind = ErrorKind.VALIDATION
    status_code = HTTPStatus.BAD_REQUEST
    default_message = "invalid request"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    status_code = HTTPStatus.CONFLICT
    default_message = "email already registered"


class AuthError(AppError):
    """Credential mismatch or unknown account. The message never says which."""
    kind = ErrorKind.AUTH
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "invalid credentials"


class InternalError(AppError):
    """Store outage, hashing failure or misconfiguration. Never retried here."""
    kind = ErrorKind.INTERNAL
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "internal server error"


class ConfigurationError(InternalError):
    default_message = "service misconfigured"


__all__ = [
    "ErrorKind",
    "AppError",
    "ValidationError",
    "ConflictError",
    "AuthError",
    "InternalError",
    "ConfigurationError",
]
