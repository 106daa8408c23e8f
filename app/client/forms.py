"""Login and registration form state.

A form runs one submission at a time: submitting again while a request is
in flight raises ``SubmissionInProgress`` instead of queueing. Failures keep
the entered values except passwords, which are always cleared.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from app.client.api import AuthClient, Err, FailureKind, LoginResponse, Ok, RegisteredUser
from app.client.session import SessionCache, UserProfile
from app.utils.logging import get_logger


logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


class SubmissionInProgress(RuntimeError):
    pass


def looks_like_email(value: str) -> bool:
    local, sep, domain = value.partition("@")
    return bool(local and sep and "." in domain.strip(".") and " " not in value)


@dataclass
class _Form(ABC):
    error: str = field(default="", init=False)
    loading: bool = field(default=False, init=False)

    def _begin(self) -> None:
        if self.loading:
            raise SubmissionInProgress("a submission is already in progress")
        self.loading = True
        self.error = ""

    def _fail(self, message: str) -> Err:
        self.error = message
        self.clear_passwords()
        return Err(FailureKind.VALIDATION, message)

    @abstractmethod
    def clear_passwords(self) -> None:
        ...


@dataclass
class LoginForm(_Form):
    email: str = ""
    password: str = ""
    remember: bool = False

    def clear_passwords(self) -> None:
        self.password = ""

    def validate(self) -> str | None:
        if not self.email.strip() or not self.password:
            return "Please enter both email and password."
        if not looks_like_email(self.email.strip()):
            return "Please enter a valid email address."
        return None

    async def submit(self, client: AuthClient, cache: SessionCache) -> Ok[LoginResponse] | Err:
        self._begin()
        try:
            problem = self.validate()
            if problem:
                return self._fail(problem)

            result = await client.login(self.email.strip(), self.password)
            if isinstance(result, Err):
                self.error = result.message
                self.clear_passwords()
                return result

            user = result.value.user
            cache.save(
                result.value.token,
                UserProfile(email=user.email or self.email.strip(), name=user.name, id=user.id),
                remember=self.remember,
            )
            self.clear_passwords()
            return result
        finally:
            self.loading = False


@dataclass
class RegisterForm(_Form):
    name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""

    def clear_passwords(self) -> None:
        self.password = ""
        self.confirm_password = ""

    def validate(self) -> str | None:
        if not self.name.strip() or not self.email.strip() or not self.password:
            return "Please fill in all fields."
        if not looks_like_email(self.email.strip()):
            return "Please enter a valid email address."
        if len(self.password) < MIN_PASSWORD_LENGTH:
            return f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        if self.password != self.confirm_password:
            return "Passwords do not match."
        return None

    async def submit(self, client: AuthClient) -> Ok[RegisteredUser] | Err:
        """Create the account. Does not log in; the caller moves on to login."""
        self._begin()
        try:
            problem = self.validate()
            if problem:
                return self._fail(problem)

            result = await client.register(self.name.strip(), self.email.strip(), self.password)
            if isinstance(result, Err):
                self.error = result.message
            self.clear_passwords()
            return result
        finally:
            self.loading = False


def logout(cache: SessionCache) -> None:
    """Forget the session locally. Tokens are not revoked server side."""
    cache.clear()
    logger.info("logged out")


__all__ = ["LoginForm", "RegisterForm", "SubmissionInProgress", "logout", "looks_like_email"]
