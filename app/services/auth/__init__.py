from __future__ import annotations

from bson.objectid import ObjectId
from email_validator import EmailNotValidError, validate_email
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from mongoengine import NotUniqueError, ValidationError as DocumentValidationError
from mongoengine.connection import ConnectionFailure
from pydantic import BaseModel
from pymongo.errors import PyMongoError

from app.models.user import User
from app.services.password import MIN_PASSWORD_LENGTH, dummy_verify, hash_password, verify_password
from app.services.token import InvalidToken, TokenIssuer, get_token_issuer
from app.utils.errors import AuthError, ConflictError, InternalError, ValidationError
from app.utils.logging import get_logger


logger = get_logger(__name__)
bearer_scheme = HTTPBearer(auto_error=False)


class UserPublicView(BaseModel):
    """What a client may see of a user. Never carries password material."""
    id: str
    name: str
    email: str


class LoginResult(BaseModel):
    token: str
    user: UserPublicView


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _public_view(user: User) -> UserPublicView:
    return UserPublicView(**user.public_view())


class AuthService:
    """Register and login on top of the user store.

    Holds no per-request state; every call is verified on its own.
    """

    def __init__(self, token_issuer: TokenIssuer) -> None:
        self.token_issuer = token_issuer

    def register(self, name: str | None, email: str | None, password: str | None) -> UserPublicView:
        name = (name or "").strip()
        email = normalize_email(email or "")
        if not name or not email or not password:
            raise ValidationError("missing fields")
        if not is_valid_email(email):
            raise ValidationError("invalid email")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("password too short")
        # bcrypt cannot hash NUL bytes
        if "\x00" in password:
            raise ValidationError("invalid password")

        try:
            # Early exit for the common case; the unique index settles races.
            if User.find_by_email(email):
                raise ConflictError("email already registered")
            user = User(name=name, email=email, password_hash=hash_password(password))
            user.save()
        except NotUniqueError:
            raise ConflictError("email already registered")
        except DocumentValidationError:
            raise ValidationError("invalid email")
        except (ConnectionFailure, PyMongoError) as exc:
            logger.error("user store unavailable", operation="register", error=str(exc))
            raise InternalError("service unavailable") from exc

        logger.info("user registered", user_id=str(user.id))
        return _public_view(user)

    def login(self, email: str | None, password: str | None) -> LoginResult:
        email = normalize_email(email or "")
        if not email or not password:
            raise ValidationError("missing credentials")
        if not is_valid_email(email):
            raise ValidationError("invalid email")

        try:
            user = User.find_by_email(email)
        except (ConnectionFailure, PyMongoError) as exc:
            logger.error("user store unavailable", operation="login", error=str(exc))
            raise InternalError("service unavailable") from exc

        # Same message and comparable timing whether or not the email exists.
        if user is None:
            dummy_verify()
            logger.info("login rejected")
            raise AuthError("invalid credentials")
        if not verify_password(password, user.password_hash):
            logger.info("login rejected")
            raise AuthError("invalid credentials")

        token = self.token_issuer.issue(str(user.id))
        logger.info("login succeeded", user_id=str(user.id))
        return LoginResult(token=token, user=_public_view(user))


def get_auth_service(token_issuer: TokenIssuer = Depends(get_token_issuer)) -> AuthService:
    return AuthService(token_issuer)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> User:
    """Auth dependency that validates a bearer token and returns the user.

    Any invalid outcome (malformed, bad signature, expired) and tokens whose
    subject no longer exists are answered the same way.
    """
    if credentials is None:
        raise AuthError("invalid token")
    outcome = token_issuer.verify(credentials.credentials)
    if isinstance(outcome, InvalidToken):
        logger.info("token rejected", reason=outcome.reason.value)
        raise AuthError("invalid token")

    if not ObjectId.is_valid(outcome.subject):
        raise AuthError("invalid token")
    user = User.objects(id=outcome.subject).first()
    if not user:
        raise AuthError("invalid token")
    return user


__all__ = [
    "AuthService",
    "LoginResult",
    "UserPublicView",
    "get_auth_service",
    "get_current_user",
    "is_valid_email",
    "normalize_email",
]
