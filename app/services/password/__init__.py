from passlib.context import CryptContext

from app.utils.config import settings


MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(plain: str) -> str:
    """Hash a plaintext password using bcrypt with a fresh random salt.

    The result embeds algorithm, cost, salt and digest (``$2b$12$...``).
    """
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    """Verify plaintext password against a bcrypt hash.

    Anything that is not a well-formed hash verifies as ``False``.
    """
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False


def dummy_verify() -> None:
    """Spend the time of one verification without a stored hash to compare against."""
    pwd_context.dummy_verify()


__all__ = ["MIN_PASSWORD_LENGTH", "hash_password", "verify_password", "dummy_verify"]
