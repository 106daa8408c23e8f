"""Signed, time-limited bearer tokens.

Tokens are HS256 JWTs carrying ``sub`` (the user id), ``iat`` and ``exp``.
Nothing is stored server side: a token stays valid until it expires.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import lru_cache
from typing import Callable

from jose import JWTError, jwt
from pydantic import BaseModel

from app.utils.config import settings
from app.utils.errors import ConfigurationError


class InvalidReason(Enum):
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"


class TokenClaims(BaseModel):
    subject: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class InvalidToken:
    reason: InvalidReason


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    def __init__(
        self,
        secret_key: str | None,
        ttl: timedelta,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not secret_key:
            raise ConfigurationError("token signing key is not configured")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._clock = clock or _utcnow
        self.ttl = ttl

    def issue(self, subject_id: str) -> str:
        """Create a signed JWT for `subject_id` expiring `ttl` from now."""
        now = self._clock()
        payload = {
            "sub": str(subject_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims | InvalidToken:
        """Check structure, then signature, then expiry. Never raises."""
        try:
            claims = jwt.get_unverified_claims(token)
        except (JWTError, AttributeError, TypeError):
            return InvalidToken(InvalidReason.MALFORMED)

        subject = claims.get("sub") if isinstance(claims, dict) else None
        issued_at = claims.get("iat") if isinstance(claims, dict) else None
        expires_at = claims.get("exp") if isinstance(claims, dict) else None
        if not isinstance(subject, str) or not subject:
            return InvalidToken(InvalidReason.MALFORMED)
        if not isinstance(issued_at, int) or not isinstance(expires_at, int):
            return InvalidToken(InvalidReason.MALFORMED)

        try:
            # Expiry is checked below against our own clock.
            jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            return InvalidToken(InvalidReason.BAD_SIGNATURE)

        if self._clock().timestamp() >= expires_at:
            return InvalidToken(InvalidReason.EXPIRED)

        return TokenClaims(
            subject=subject,
            issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
        )


@lru_cache
def get_token_issuer() -> TokenIssuer:
    """Process-wide issuer built once from settings.

    Raises ``ConfigurationError`` when no signing key is configured.
    """
    return TokenIssuer(
        secret_key=settings.jwt_secret_key,
        ttl=timedelta(minutes=settings.token_ttl_minutes),
        algorithm=settings.jwt_algorithm,
    )


__all__ = ["InvalidReason", "InvalidToken", "TokenClaims", "TokenIssuer", "get_token_issuer"]
