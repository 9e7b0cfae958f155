"""Password hashing and opaque session token generation.

Uses passlib with bcrypt for password hashing and :mod:`secrets` for
session identifiers.
"""

import secrets
from functools import lru_cache

from passlib.context import CryptContext

DEFAULT_HASH_ROUNDS = 12
SESSION_TOKEN_BYTES = 64


@lru_cache(maxsize=8)
def _crypt_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(password: str, rounds: int = DEFAULT_HASH_ROUNDS) -> str:
    """Hash a plaintext password using bcrypt.

    Args:
        password: The plaintext password to hash.
        rounds: bcrypt cost factor.

    Returns:
        The bcrypt-hashed password string.
    """
    return _crypt_context(rounds).hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a bcrypt hash.

    The cost factor is read from the hash itself, so verification does not
    depend on the currently configured rounds.

    Args:
        plain_password: The plaintext password to verify.
        hashed_password: The bcrypt hash to verify against.

    Returns:
        True if the password matches, False otherwise.
    """
    return _crypt_context(DEFAULT_HASH_ROUNDS).verify(plain_password, hashed_password)


def generate_session_token() -> str:
    """Generate an opaque, unguessable session identifier (512 bits, hex encoded)."""
    return secrets.token_hex(SESSION_TOKEN_BYTES)
