"""Password hashing and password policy.

Hashes use bcrypt through passlib. The cost factor comes from settings so
tests can run with a low cost.

Policy: 8-16 characters, at least one upper-case letter and at least one
special character.
"""

from functools import lru_cache
import re

from passlib.context import CryptContext

from ratings_api.settings import get_settings

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 16

_UPPERCASE_RE = re.compile(r"[A-Z]")
_SPECIAL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


@lru_cache
def _crypt_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def _context() -> CryptContext:
    return _crypt_context(get_settings().bcrypt_rounds)


def password_policy_errors(password: str) -> list[str]:
    """Return human-readable policy violations (empty list if the password is acceptable)."""
    errors: list[str] = []
    if not (PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH):
        errors.append(
            f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters"
        )
    if not _UPPERCASE_RE.search(password):
        errors.append("Password must include at least one uppercase letter")
    if not _SPECIAL_RE.search(password):
        errors.append("Password must include at least one special character")
    return errors


def hash_password(password: str) -> str:
    return _context().hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against a stored hash.

    Malformed hashes count as a mismatch.
    """
    try:
        return _context().verify(password, password_hash)
    except ValueError:
        return False
