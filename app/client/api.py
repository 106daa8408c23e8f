"""HTTP client for the auth endpoints.

Every call returns ``Ok(value)`` or ``Err(kind, message)``. Server-declared
failures keep the server's message; anything that is not a well-formed
response from the server (unreachable host, timeout, non-JSON body, body of
the wrong shape) becomes ``Err(FailureKind.CONNECTIVITY, ...)``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel, ValidationError as SchemaError

from app.utils.config import settings
from app.utils.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")

CONNECTIVITY_MESSAGE = "unable to reach the server"


class FailureKind(Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    AUTH = "auth"
    INTERNAL = "internal"
    CONNECTIVITY = "connectivity"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    kind: FailureKind
    message: str


class RegisteredUser(BaseModel):
    id: str
    name: str
    email: str


class LoginResponse(BaseModel):
    token: str
    user: RegisteredUser


class ErrorBody(BaseModel):
    message: str


_STATUS_KINDS = {
    400: FailureKind.VALIDATION,
    401: FailureKind.AUTH,
    409: FailureKind.CONFLICT,
}


def _kind_for_status(status_code: int) -> FailureKind:
    if status_code in _STATUS_KINDS:
        return _STATUS_KINDS[status_code]
    if 400 <= status_code < 500:
        return FailureKind.VALIDATION
    return FailureKind.INTERNAL


class AuthClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.request_timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AuthClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def register(self, name: str, email: str, password: str) -> Ok[RegisteredUser] | Err:
        payload = {"name": name, "email": email, "password": password}
        return await self._post("/api/auth/register", payload, RegisteredUser)

    async def login(self, email: str, password: str) -> Ok[LoginResponse] | Err:
        return await self._post("/api/auth/login", {"email": email, "password": password}, LoginResponse)

    async def _post(self, path: str, payload: dict, schema: type[BaseModel]) -> Ok | Err:
        try:
            response = await self._http.post(path, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("auth request failed", path=path, error=type(exc).__name__)
            return Err(FailureKind.CONNECTIVITY, CONNECTIVITY_MESSAGE)

        try:
            body = response.json()
        except ValueError:
            logger.warning("auth response not json", path=path, status=response.status_code)
            return Err(FailureKind.CONNECTIVITY, CONNECTIVITY_MESSAGE)

        try:
            if response.is_success:
                return Ok(schema.model_validate(body))
            error = ErrorBody.model_validate(body)
        except SchemaError:
            logger.warning("auth response has unexpected shape", path=path, status=response.status_code)
            return Err(FailureKind.CONNECTIVITY, CONNECTIVITY_MESSAGE)
        return Err(_kind_for_status(response.status_code), error.message)


__all__ = [
    "AuthClient",
    "Err",
    "ErrorBody",
    "FailureKind",
    "LoginResponse",
    "Ok",
    "RegisteredUser",
]
